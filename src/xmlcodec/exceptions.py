# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from enum import StrEnum
from typing import ClassVar

__all__ = (  # noqa: RUF022
    'ErrorKind',
    'XMLError',
    'ParameterRequiredError',
    'NullParameterError',
    'AttributeMissingError',
    'ElementMissingError',
    'ElementMalformedError',
    'CollectionLimitError',
)


class ErrorKind(StrEnum):
    PARAM_REQUIRED = 'PARAM_REQUIRED'
    NULL_PARAM = 'NULL_PARAM'
    ATTRIBUTE_MISSING = 'ATTRIBUTE_MISSING'
    ELEMENT_MISSING = 'ELEMENT_MISSING'
    ELEMENT_MALFORMED = 'ELEMENT_MALFORMED'
    COLLECTION_LIMIT = 'COLLECTION_LIMIT'


class XMLError(Exception):
    """
    Base class for the errors raised while building or loading XML objects.

    These are never transient. They signal either a schema violation in the
    input element or an incompletely populated object, and they abort the
    operation that raised them. The object or element involved should be
    discarded afterwards, as it may have been partially updated.

    """

    kind: ClassVar[ErrorKind]
    template: ClassVar[str]

    def __init__(self, *names: str) -> None:
        super().__init__(self.template.format(*names))
        self.names = names


class ParameterRequiredError(XMLError, TypeError):
    """Raised when a required argument is None."""

    kind = ErrorKind.PARAM_REQUIRED
    template = 'Required parameter {!r} is missing'

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


class NullParameterError(XMLError, ValueError):
    """Raised when an operation needs the element bound to an object, but the object has none yet."""

    kind = ErrorKind.NULL_PARAM
    template = '{!r} has no XML element bound to it'

    def __init__(self, type_name: str) -> None:
        super().__init__(type_name)
        self.type_name = type_name


class AttributeMissingError(XMLError, ValueError):
    """Raised when a mandatory attribute is missing from an element or from the object being built."""

    kind = ErrorKind.ATTRIBUTE_MISSING
    template = 'Missing mandatory attribute {!r} from {!r}'

    def __init__(self, name: str, owner: str) -> None:
        super().__init__(name, owner)
        self.name = name
        self.owner = owner


class ElementMissingError(XMLError, ValueError):
    """Raised when a mandatory child element is missing from an element or from the object being built."""

    kind = ErrorKind.ELEMENT_MISSING
    template = 'Missing mandatory element {!r} from {!r}'

    def __init__(self, name: str, owner: str) -> None:
        super().__init__(name, owner)
        self.name = name
        self.owner = owner


class ElementMalformedError(XMLError, ValueError):
    """Raised when an element does not have the qualified name of the object it is loaded into."""

    kind = ErrorKind.ELEMENT_MALFORMED
    template = 'The element does not match the {!r} element name and namespace'

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


class CollectionLimitError(XMLError, ValueError):
    """Raised when the number of items in a flattened collection is outside its occurrence bounds."""

    kind = ErrorKind.COLLECTION_LIMIT
    template = 'The number of {!r} elements in {!r} is outside the allowed limits'

    def __init__(self, name: str, owner: str) -> None:
        super().__init__(name, owner)
        self.name = name
        self.owner = owner
