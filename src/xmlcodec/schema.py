# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from abc import ABC
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass, field
from math import inf
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Self, overload
from weakref import WeakKeyDictionary

from .datamodel import DataAdapterType, resolve_adapter
from .dom import clark_name

if TYPE_CHECKING:
    from . import XMLCollection, XMLObject

__all__ = (  # noqa: RUF022
    'Namespace',
    'Schema',
    'SchemaRegistry',

    'FieldDescriptor',
    'DataDescriptor',
    'AttributeDescriptor',
    'ElementDescriptor',
    'DataElementDescriptor',
    'ObjectElementDescriptor',

    'Attribute',
    'OptionalAttribute',
    'DataElement',
    'OptionalDataElement',
    'Element',
    'OptionalElement',
    'MultiElement',
    'TextValue',
)


class Namespace(str):
    __slots__ = ('prefix',)

    prefix: str | None

    def __new__(cls, namespace: str, /, *, prefix: str | None = None) -> Self:
        self = super().__new__(cls, namespace)
        self.prefix = prefix
        return self

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({super().__repr__()}, prefix={self.prefix!r})'

    def __setattr__(self, name: str, value: object, /) -> None:
        if name in self.__slots__ and hasattr(self, name):
            raise AttributeError(f'{self.__class__.__name__} object attribute {name!r} is read-only')
        return super().__setattr__(name, value)


@dataclass(frozen=True, slots=True)
class Schema:
    """The XML mapping of an XMLObject type: its qualified name and its fields in declaration order"""

    name: str
    namespace: str | None = None
    prefix: str | None = None
    attributes: Mapping[str, 'AttributeDescriptor'] = field(default_factory=lambda: MappingProxyType({}))
    elements: Mapping[str, 'ElementDescriptor'] = field(default_factory=lambda: MappingProxyType({}))
    content: 'TextValue | None' = None

    @property
    def qualname(self) -> str:
        return f'{self.prefix}:{self.name}' if self.prefix else self.name

    @property
    def tag(self) -> str:
        return clark_name(self.name, self.namespace)


class SchemaRegistry:
    _schemas: ClassVar[MutableMapping[type, Schema]] = WeakKeyDictionary()

    @classmethod
    def associate(cls, object_type: type, schema: Schema) -> None:
        cls._schemas[object_type] = schema

    @classmethod
    def find_schema(cls, object_type: type) -> Schema | None:
        return cls._schemas.get(object_type, None)

    @classmethod
    def get_schema(cls, object_type: type) -> Schema:
        try:
            return cls._schemas[object_type]
        except KeyError:
            raise TypeError(f'{object_type.__qualname__!r} does not specify an element name and has no schema') from None


class FieldDescriptor[F](ABC):
    """
    Base class for the XMLObject fields.

    A field descriptor describes how a property maps to XML and it is also
    the accessor (get) and mutator (set) for the property value. Values are
    stored in the instance's _values_ mapping and changing a value drops the
    element cached by the instance.
    """

    kind: ClassVar[str] = 'field'

    name: str | None
    type: type[F]
    required: bool
    default: F | None

    def __set_name__(self, owner: type, name: str) -> None:
        if self.name is None:
            self.name = name
        elif name != self.name:
            raise TypeError(f'cannot assign the same {self.__class__.__name__} descriptor to two different names: {self.name} and {name}')

    @overload
    def __get__(self, instance: None, owner: type) -> Self: ...

    @overload
    def __get__(self, instance: 'XMLObject', owner: type | None = None) -> F | None: ...

    def __get__(self, instance: 'XMLObject | None', owner: type | None = None) -> Self | F | None:
        if instance is None:
            return self
        return self.get(instance)

    def __set__(self, instance: 'XMLObject', value: F | None) -> None:
        self.set(instance, value)

    def __delete__(self, instance: 'XMLObject') -> None:
        if self.required:
            raise AttributeError(f'mandatory {self.kind} {self.name!r} cannot be deleted')
        self.set(instance, self.default)

    def get(self, instance: 'XMLObject') -> F | None:
        return instance._values_.get(self.name, self.default)

    def set(self, instance: 'XMLObject', value: F | None) -> None:
        # an optional field set to None takes its default, which is also what an element without it loads as
        if value is None and not self.required:
            value = self.default
        if value is not None and not isinstance(value, self.type):
            raise TypeError(f'the {self.name!r} {self.kind} must be of type {self.type.__qualname__}')
        current = self.get(instance)
        instance._values_[self.name] = value
        if value is not current and value != current:
            instance._cache_.invalidate()

    def bind(self, owner_namespace: str | None) -> None:  # noqa: B027
        """Called when the type that declares the field is created"""


class DataDescriptor[D](FieldDescriptor[D], ABC):
    """A field holding a value that converts to and from text"""

    adapter: DataAdapterType[D] | None
    xml_parse: Callable[[str], D]
    xml_build: Callable[[D], str]

    def _setup_conversion(self, data_type: type[D], adapter: DataAdapterType[D] | None) -> None:
        self.type = data_type
        self.adapter = adapter
        self.xml_parse, self.xml_build = resolve_adapter(data_type, adapter)

    def to_xml(self, value: D | None) -> str | None:
        return None if value is None else self.xml_build(value)

    def from_xml(self, text: str) -> D:
        return self.xml_parse(text)

    def emits(self, value: D | None) -> bool:
        """Whether the value is written out (default values of optional fields are omitted)"""
        return value is not None and (self.required or value != self.default)


class AttributeDescriptor[D](DataDescriptor[D], ABC):
    kind = 'attribute'

    xml_name: str
    xml_namespace: str | None

    def __init__(self, data_type: type[D], /, *, name: str | None, namespace: str | None, default: D | None, required: bool, adapter: DataAdapterType[D] | None) -> None:
        self.name = None
        self.xml_name = name or ''
        self.xml_namespace = namespace or None
        self.default = default
        self.required = required
        self._setup_conversion(data_type, adapter)

    def __repr__(self) -> str:
        name = self.xml_name if self.xml_name != self.name else None
        adapter_name = self.adapter.__qualname__ if self.adapter else None
        return f'{self.__class__.__name__}({self.type.__qualname__}, {name=}, namespace={self.xml_namespace!r}, default={self.default!r}, adapter={adapter_name})'

    def __set_name__(self, owner: type, name: str) -> None:
        super().__set_name__(owner, name)
        self.xml_name = self.xml_name or name

    @property
    def xml_key(self) -> str:
        return clark_name(self.xml_name, self.xml_namespace)


class Attribute[D](AttributeDescriptor[D]):
    def __init__(self, data_type: type[D], /, *, name: str | None = None, namespace: str | None = None, adapter: DataAdapterType[D] | None = None) -> None:
        super().__init__(data_type, name=name, namespace=namespace, default=None, required=True, adapter=adapter)


class OptionalAttribute[D](AttributeDescriptor[D]):
    def __init__(self, data_type: type[D], /, *, name: str | None = None, namespace: str | None = None, default: D | None = None, adapter: DataAdapterType[D] | None = None) -> None:
        super().__init__(data_type, name=name, namespace=namespace, default=default, required=False, adapter=adapter)


class ElementDescriptor[F](FieldDescriptor[F], ABC):
    """
    A field that maps to child elements.

    Leaf elements (DataElementDescriptor) carry a converted text value, while
    object elements (ObjectElementDescriptor) carry a nested XMLObject that is
    created by the descriptor's factory. A flattened collection (no_root) is
    an object element whose items are written directly under the parent.
    """

    kind = 'element'

    xml_name: str
    xml_namespace: str | None
    prefix: str | None
    factory: Callable[[], F] | None = None
    no_root: bool = False
    min_occurs: int = 0
    max_occurs: int | float = 1

    @property
    def xml_tag(self) -> str:
        return clark_name(self.xml_name, self.xml_namespace)

    @property
    def xml_qualname(self) -> str:
        return f'{self.prefix}:{self.xml_name}' if self.prefix else self.xml_name


class DataElementDescriptor[D](ElementDescriptor[D], DataDescriptor[D], ABC):
    def __init__(self, data_type: type[D], /, *, name: str | None, namespace: str | None, prefix: str | None, default: D | None, required: bool, adapter: DataAdapterType[D] | None) -> None:
        self.name = None
        self.xml_name = name or ''
        self.xml_namespace = namespace or None
        self.prefix = prefix if prefix is not None else getattr(namespace, 'prefix', None)
        self.default = default
        self.required = required
        self.min_occurs = 1 if required else 0
        self._bound = namespace is not None
        self._setup_conversion(data_type, adapter)

    def __repr__(self) -> str:
        name = self.xml_name if self.xml_name != self.name else None
        adapter_name = self.adapter.__qualname__ if self.adapter else None
        return f'{self.__class__.__name__}({self.type.__qualname__}, namespace={self.xml_namespace!r}, {name=}, default={self.default!r}, adapter={adapter_name})'

    def __set_name__(self, owner: type, name: str) -> None:
        super().__set_name__(owner, name)
        self.xml_name = self.xml_name or name

    def bind(self, owner_namespace: str | None) -> None:
        # leaf elements without an explicit namespace live in the namespace of the first type that declares them
        if not self._bound:
            self._bound = True
            self.xml_namespace = owner_namespace or None
            if self.prefix is None:
                self.prefix = getattr(owner_namespace, 'prefix', None)


class DataElement[D](DataElementDescriptor[D]):
    def __init__(self, data_type: type[D], /, *, name: str | None = None, namespace: str | None = None, prefix: str | None = None, adapter: DataAdapterType[D] | None = None) -> None:
        super().__init__(data_type, name=name, namespace=namespace, prefix=prefix, default=None, required=True, adapter=adapter)


class OptionalDataElement[D](DataElementDescriptor[D]):
    def __init__(self, data_type: type[D], /, *, name: str | None = None, namespace: str | None = None, prefix: str | None = None, default: D | None = None, adapter: DataAdapterType[D] | None = None) -> None:
        super().__init__(data_type, name=name, namespace=namespace, prefix=prefix, default=default, required=False, adapter=adapter)


class ObjectElementDescriptor[E: 'XMLObject'](ElementDescriptor[E], ABC):
    factory: Callable[[], E]
    element_type: type[E]
    schema: Schema

    def __init__(self, element_type: type[E], /, *, factory: Callable[[], E] | None, required: bool) -> None:
        schema = SchemaRegistry.find_schema(element_type) if isinstance(element_type, type) else None
        if schema is None:
            raise TypeError(f'{getattr(element_type, "__qualname__", element_type)!r} must specify an element name to be usable as element type')
        self.name = None
        self.type = self.element_type = element_type
        self.factory = factory or element_type
        self.required = required
        self.default = None
        self.schema = schema
        self.xml_name = schema.name
        self.xml_namespace = schema.namespace
        self.prefix = schema.prefix
        self.min_occurs = 1 if required else 0

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.type.__name__})'


class Element[E: 'XMLObject'](ObjectElementDescriptor[E]):
    def __init__(self, element_type: type[E], /, *, factory: Callable[[], E] | None = None) -> None:
        super().__init__(element_type, factory=factory, required=True)


class OptionalElement[E: 'XMLObject'](ObjectElementDescriptor[E]):
    def __init__(self, element_type: type[E], /, *, factory: Callable[[], E] | None = None) -> None:
        super().__init__(element_type, factory=factory, required=False)


class MultiElement[C: 'XMLCollection'](ObjectElementDescriptor[C]):
    """
    A collection of items written directly under the parent element.

    The collection type must be an XMLCollection that declares its item type.
    Its own element name (if it has any) is not used, the items are matched
    by the item type's qualified name instead.
    """

    no_root = True

    def __init__(self, collection_type: type[C], /, *, min_occurs: int = 0, max_occurs: int | float = inf, factory: Callable[[], C] | None = None) -> None:
        item_type = getattr(collection_type, '_item_type_', None)
        if item_type is None:
            raise TypeError(f'{getattr(collection_type, "__qualname__", collection_type)!r} must be a collection that specifies its item type')
        if not 0 <= min_occurs <= max_occurs:
            raise ValueError(f'invalid occurrence limits: {min_occurs=}, {max_occurs=}')
        item_schema = SchemaRegistry.get_schema(item_type)
        self.name = None
        self.type = self.element_type = collection_type
        self.factory = factory or collection_type
        self.required = min_occurs > 0
        self.default = None
        self.schema = item_schema
        self.xml_name = item_schema.name
        self.xml_namespace = item_schema.namespace
        self.prefix = item_schema.prefix
        self.min_occurs = min_occurs
        self.max_occurs = max_occurs

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.type.__name__}, min_occurs={self.min_occurs}, max_occurs={self.max_occurs})'

    def get(self, instance: 'XMLObject') -> C:
        values = instance._values_
        collection = values.get(self.name)
        if collection is None:
            collection = values[self.name] = self.factory()
        return collection

    def set(self, instance: 'XMLObject', value: C | None) -> None:
        if value is None:
            value = self.factory()
        super().set(instance, value)

    def within_limits(self, count: int) -> bool:
        return self.min_occurs <= count <= self.max_occurs


class TextValue[D](DataDescriptor[D]):
    """
    A field mapped to the text content of the element itself.

    Only the text nodes directly under the element are used, so in <p>a<b/>c</p>
    the text value is 'ac'. Leaf elements use the whole text content instead.
    """

    kind = 'text value'

    def __init__(self, data_type: type[D], /, *, default: D | None = None, required: bool = False, adapter: DataAdapterType[D] | None = None) -> None:
        self.name = None
        self.default = default
        self.required = required
        self._setup_conversion(data_type, adapter)

    def __repr__(self) -> str:
        adapter_name = self.adapter.__qualname__ if self.adapter else None
        return f'{self.__class__.__name__}({self.type.__qualname__}, default={self.default!r}, required={self.required!r}, adapter={adapter_name})'


def collect_fields(namespace: Mapping[str, Any]) -> dict[str, FieldDescriptor]:
    return {name: value for name, value in namespace.items() if isinstance(value, FieldDescriptor)}
