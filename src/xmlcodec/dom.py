# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Element tree helpers used by the XML objects.

The helpers operate on lxml elements. Wherever a node is accepted, it can be
either an element or a document (an lxml element tree), in which case the
document's root element is used.
"""

from xml.sax.saxutils import quoteattr

from lxml import etree

from .exceptions import AttributeMissingError, ElementMissingError

__all__ = (  # noqa: RUF022
    'DEFAULT_ROOT_NAME',
    'ETreeElement',
    'ETreeDocument',
    'ETreeNode',

    'parse',
    'to_string',
    'create_document',
    'create_element',

    'clark_name',
    'local_name',
    'namespace_uri',
    'qualified_name',
    'matches',

    'element_children',
    'get_children',
    'get_first_child',
    'get_child',
    'get_element',
    'get_element_by_id',
    'has_attribute',
    'get_attribute',
)


# noinspection PyProtectedMember
type ETreeElement = etree._Element  # noqa: SLF001
# noinspection PyProtectedMember
type ETreeDocument = etree._ElementTree  # noqa: SLF001
type ETreeNode = ETreeElement | ETreeDocument

DEFAULT_ROOT_NAME = 'xml_root'

parser = etree.XMLParser(resolve_entities=False, no_network=True)

# str input is parsed from its UTF-8 encoding, whatever encoding it declares
text_parser = etree.XMLParser(encoding='utf-8', resolve_entities=False, no_network=True)


def _root(node: ETreeNode) -> ETreeElement:
    # noinspection PyProtectedMember
    return node.getroot() if isinstance(node, etree._ElementTree) else node  # noqa: SLF001


def parse(text: str | bytes) -> ETreeDocument:
    if isinstance(text, str):
        return etree.fromstring(text.encode('utf-8'), text_parser).getroottree()
    return etree.fromstring(text, parser).getroottree()


def to_string(node: ETreeNode) -> str:
    return etree.tostring(node, encoding='unicode')


def create_document(root: str = DEFAULT_ROOT_NAME, namespace: str | None = None, prefix: str | None = None) -> ETreeDocument:
    """
    Create a document that only contains an empty root element.

    The prefix is only used together with a namespace, without a namespace
    the root element name is always unprefixed.
    """
    if namespace:
        name = f'{prefix}:{root}' if prefix else root
        declaration = f' xmlns:{prefix}={quoteattr(namespace)}' if prefix else f' xmlns={quoteattr(namespace)}'
    else:
        name = root
        declaration = ''
    return parse(f'<{name}{declaration}></{name}>')


def create_element(document: ETreeDocument | None, local_name: str, namespace: str | None = None, prefix: str | None = None) -> ETreeElement:
    """Create an element that belongs to the document's context (a new document is created if none is given)"""
    if document is None:
        document = create_document(local_name, namespace, prefix)
    nsmap = {prefix or None: namespace} if namespace else None
    return document.getroot().makeelement(clark_name(local_name, namespace), nsmap=nsmap)


def clark_name(local_name: str, namespace: str | None = None) -> str:
    return f'{{{namespace}}}{local_name}' if namespace else local_name


def local_name(element: ETreeElement) -> str:
    return etree.QName(element).localname


def namespace_uri(element: ETreeElement) -> str | None:
    return etree.QName(element).namespace


def qualified_name(element: ETreeElement) -> str:
    name = local_name(element)
    return f'{element.prefix}:{name}' if element.prefix else name


def matches(element: ETreeElement, local_name: str, namespace: str | None) -> bool:
    """Check if the element has the given local name and namespace (None means no namespace)"""
    qname = etree.QName(element)
    return qname.localname == local_name and qname.namespace == (namespace or None)


def element_children(node: ETreeNode) -> list[ETreeElement]:
    return list(_root(node).iterchildren(etree.Element))


def get_children(node: ETreeNode, local_name: str, namespace: str | None = None) -> list[ETreeElement]:
    """Return the child elements with the given local name (and namespace, if one is given)"""
    return [child for child in element_children(node) if _name_matches(child, local_name, namespace)]


def get_first_child(node: ETreeNode, local_name: str, namespace: str | None = None) -> ETreeElement | None:
    for child in _root(node).iterchildren(etree.Element):
        if _name_matches(child, local_name, namespace):
            return child
    return None


def get_child(node: ETreeNode, local_name: str, namespace: str | None = None, *, required: bool = True) -> ETreeElement | None:
    child = get_first_child(node, local_name, namespace)
    if child is None and required:
        raise ElementMissingError(local_name, etree.QName(_root(node)).localname)
    return child


def get_element(element: ETreeElement, name: str, *, required: bool = True) -> ETreeElement | None:
    """Return the first descendant element with the given qualified name ('*' matches any element)"""
    for descendant in element.iterdescendants(etree.Element):
        if name == '*' or qualified_name(descendant) == name:
            return descendant
    if required:
        raise ElementMissingError(name, local_name(element))
    return None


def get_element_by_id(node: ETreeNode | None, id_value: str | None) -> ETreeElement | None:
    """
    Find an element by its ID.

    Attributes declared as IDs (through a DTD, or xml:id) are only known at
    the document level, so they are only looked up when node is a document.
    Otherwise, or when nothing is found, the attributes named Id, ID and id
    are searched, in this order, throughout the document containing node.
    """
    if node is None or id_value is None:
        return None
    # noinspection PyProtectedMember
    if isinstance(node, etree._ElementTree):  # noqa: SLF001
        found = node.xpath('id($value)', value=id_value)
        if found:
            return found[0]
    for attribute in ('Id', 'ID', 'id'):
        found = node.xpath(f'//*[@{attribute}=$value]', value=id_value)
        if found:
            return found[0]
    return None


def has_attribute(element: ETreeElement, name: str, namespace: str | None = None) -> bool:
    return clark_name(name, namespace) in element.attrib


def get_attribute(element: ETreeElement, name: str, default: str | None = None, *, required: bool = True, namespace: str | None = None) -> str | None:
    value = element.get(clark_name(name, namespace))
    if value is not None:
        return value
    if required:
        raise AttributeMissingError(name, local_name(element))
    return default


def _name_matches(element: ETreeElement, name: str, namespace: str | None) -> bool:
    # without a namespace, elements match by local name alone
    if namespace:
        return matches(element, name, namespace)
    return etree.QName(element).localname == name