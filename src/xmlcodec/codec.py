# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Conversion between XML objects and lxml elements.

build() walks an object's schema in declaration order and produces its
element, load() does the reverse and fills in an object from an element.
Both keep the element in the object's cache, which build() reuses for as
long as neither the object nor any of its nested objects have changed.
"""

import logging
from collections.abc import Iterable
from itertools import count
from typing import TYPE_CHECKING

from lxml import etree

from .dom import ETreeElement, element_children, matches
from .exceptions import AttributeMissingError, CollectionLimitError, ElementMalformedError, ElementMissingError, ParameterRequiredError
from .schema import DataDescriptor, DataElementDescriptor, ElementDescriptor, SchemaRegistry

if TYPE_CHECKING:
    from . import XMLObject

__all__ = 'ElementCache', 'build', 'has_changed', 'load'


logger = logging.getLogger(__name__)


class ElementCache:
    """
    The element last built by or loaded into an XML object.

    A flattened collection has no element of its own, as its items live
    directly under the parent element. Once its items were written to or
    read from a parent element, the cache is marked as inline instead.
    """

    __slots__ = 'element', 'inline'

    element: ETreeElement | None
    inline: bool

    def __init__(self) -> None:
        self.element = None
        self.inline = False

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(element={self.element!r}, inline={self.inline!r})'

    @property
    def valid(self) -> bool:
        return self.element is not None or self.inline

    def store(self, element: ETreeElement) -> None:
        self.element = element
        self.inline = False

    def mark_inline(self) -> None:
        self.element = None
        self.inline = True

    def invalidate(self) -> None:
        self.element = None
        self.inline = False


def _element_fields(instance: 'XMLObject') -> Iterable[ElementDescriptor]:
    schema = SchemaRegistry.find_schema(type(instance))
    return schema.elements.values() if schema is not None else ()


def has_changed(instance: 'XMLObject') -> bool:
    """Check if the object needs to rebuild its element"""
    if not instance._cache_.valid:
        return True
    for descriptor in _element_fields(instance):
        if descriptor.factory is not None:
            value = descriptor.get(instance)
            if value is not None and value.has_changed():
                return True
    return False


def build(instance: 'XMLObject') -> ETreeElement:
    cache = instance._cache_
    schema = SchemaRegistry.get_schema(type(instance))

    if cache.element is not None and not instance.has_changed():
        logger.debug('Reusing the cached %r element', schema.qualname)
        return cache.element

    owner = schema.name
    element = instance.create_element()

    for attribute in schema.attributes.values():
        value = attribute.get(instance)
        if attribute.required and value is None:
            raise AttributeMissingError(attribute.xml_name, owner)
        if attribute.emits(value):
            element.set(attribute.xml_key, attribute.to_xml(value))

    if (content := schema.content) is not None:
        value = content.get(instance)
        if content.required and value is None:
            raise ElementMissingError(owner, owner)
        if content.emits(value):
            element.text = content.to_xml(value)

    for descriptor in schema.elements.values():
        value = descriptor.get(instance)
        if descriptor.no_root:
            items = value.item_elements()
            if not descriptor.within_limits(len(items)):
                raise CollectionLimitError(descriptor.xml_name, owner)
            element.extend(items)
            value._cache_.mark_inline()
        elif descriptor.factory is not None:
            if value is not None:
                element.append(value.get_xml())
            elif descriptor.required:
                raise ElementMissingError(descriptor.xml_name, owner)
        else:
            assert isinstance(descriptor, DataElementDescriptor)  # noqa: S101 (used by type checkers)
            if descriptor.required and value is None:
                raise ElementMissingError(descriptor.xml_name, owner)
            if descriptor.emits(value):
                _add_data_element(element, descriptor, descriptor.to_xml(value))

    instance.on_get_xml(element)

    if _hides_unqualified_elements(element):
        element = _with_prefixed_namespace(element)
        logger.debug('Declared the %r namespace with the %r prefix, as the element contains unqualified elements', element.nsmap[element.prefix], element.prefix)

    cache.store(element)
    logger.debug('Built the %r element', schema.qualname)
    return element


def load(instance: 'XMLObject', element: ETreeElement | None) -> None:
    if element is None:
        raise ParameterRequiredError('element')

    schema = SchemaRegistry.get_schema(type(instance))
    owner = schema.name

    if not matches(element, schema.name, schema.namespace):
        raise ElementMalformedError(owner)

    for attribute in schema.attributes.values():
        text = element.get(attribute.xml_key)
        if text is not None:
            attribute.set(instance, _parse(attribute, attribute.xml_name, text, owner))
        elif attribute.required:
            raise AttributeMissingError(attribute.xml_name, owner)
        else:
            attribute.set(instance, attribute.default)

    if (content := schema.content) is not None:
        # only the element's own text nodes, the text of child elements belongs to the fields that map them
        text = ''.join(element.xpath('text()'))
        if not text and not content.required:
            content.set(instance, content.default)
        else:
            content.set(instance, _parse(content, owner, text, owner))

    children = element_children(element)

    for descriptor in schema.elements.values():
        if descriptor.no_root:
            collection = descriptor.factory()
            collection.load_items(element)
            if not descriptor.within_limits(len(collection)):
                raise CollectionLimitError(descriptor.xml_name, owner)
            collection._cache_.mark_inline()
            descriptor.set(instance, collection)
            continue

        child_element = next((child for child in children if matches(child, descriptor.xml_name, descriptor.xml_namespace)), None)

        if child_element is None:
            if descriptor.required:
                raise ElementMissingError(descriptor.xml_name, owner)
            descriptor.set(instance, descriptor.default)
        elif descriptor.factory is not None:
            child = descriptor.factory()
            child.load_xml(child_element)
            descriptor.set(instance, child)
        else:
            assert isinstance(descriptor, DataElementDescriptor)  # noqa: S101 (used by type checkers)
            descriptor.set(instance, _parse(descriptor, descriptor.xml_qualname, ''.join(child_element.itertext()), owner))

    instance.on_load_xml(element)

    instance.prefix = element.prefix or ''
    instance._cache_.store(element)
    logger.debug('Loaded %r from the %r element', type(instance).__qualname__, schema.qualname)


def _parse[D](descriptor: DataDescriptor[D], name: str, text: str, owner: str) -> D:
    try:
        return descriptor.from_xml(text)
    except ValueError as exc:
        raise ValueError(f'Invalid value for {descriptor.kind} {name!r} from {owner!r}: {exc!s}') from exc


def _hides_unqualified_elements(element: ETreeElement) -> bool:
    # lxml does not write xmlns="" for elements without a namespace, so a default namespace in scope would capture them
    if not element.nsmap.get(None):
        return False
    return any(etree.QName(node).namespace is None and node.nsmap.get(None) for node in element.iterdescendants(etree.Element))


def _with_prefixed_namespace(element: ETreeElement) -> ETreeElement:
    """Return a copy of element that declares its default namespace with a prefix, with the content moved over"""
    nsmap = {prefix: namespace for prefix, namespace in element.nsmap.items() if prefix is not None}
    prefix = next(f'ns{index}' for index in count() if f'ns{index}' not in nsmap)
    nsmap[prefix] = element.nsmap[None]
    replacement = element.makeelement(element.tag, attrib=dict(element.attrib), nsmap=nsmap)
    replacement.text = element.text
    replacement.extend(list(element))
    return replacement


def _add_data_element(parent: ETreeElement, descriptor: DataElementDescriptor, text: str | None) -> ETreeElement:
    # reuse the parent's namespace declarations when possible
    namespace = descriptor.xml_namespace
    prefix = descriptor.prefix or None
    if namespace is None:
        nsmap = None
    elif prefix is not None:
        nsmap = {prefix: namespace} if parent.nsmap.get(prefix) != namespace else None
    else:
        nsmap = {None: namespace} if namespace not in parent.nsmap.values() else None
    child = etree.SubElement(parent, descriptor.xml_tag, nsmap=nsmap)
    child.text = text
    return child
