# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from collections.abc import Callable, Iterable, Iterator
from types import MappingProxyType
from typing import Any, ClassVar, Self, overload

from . import codec, dom
from .codec import ElementCache
from .datamodel import (
    AdapterRegistry,
    Base64BinaryAdapter,
    BooleanAdapter,
    ByteAdapter,
    DataAdapter,
    DataConverter,
    DateAdapter,
    DatetimeAdapter,
    DecimalAdapter,
    DoubleAdapter,
    HexBinaryAdapter,
    IntAdapter,
    IntegerAdapter,
    LongAdapter,
    NegativeIntegerAdapter,
    NonNegativeIntegerAdapter,
    NonPositiveIntegerAdapter,
    PositiveIntegerAdapter,
    ShortAdapter,
    UnsignedByteAdapter,
    UnsignedIntAdapter,
    UnsignedLongAdapter,
    UnsignedShortAdapter,
)
from .dom import ETreeDocument, ETreeElement
from .exceptions import (
    AttributeMissingError,
    CollectionLimitError,
    ElementMalformedError,
    ElementMissingError,
    ErrorKind,
    NullParameterError,
    ParameterRequiredError,
    XMLError,
)
from .schema import (
    Attribute,
    AttributeDescriptor,
    DataElement,
    Element,
    ElementDescriptor,
    FieldDescriptor,
    MultiElement,
    Namespace,
    OptionalAttribute,
    OptionalDataElement,
    OptionalElement,
    Schema,
    SchemaRegistry,
    TextValue,
    collect_fields,
)

__all__ = (  # noqa: RUF022
    'XMLObject',
    'XMLCollection',

    'Namespace',
    'Schema',
    'SchemaRegistry',

    'Attribute',
    'OptionalAttribute',
    'DataElement',
    'OptionalDataElement',
    'Element',
    'OptionalElement',
    'MultiElement',
    'TextValue',

    'DataConverter',
    'DataAdapter',
    'AdapterRegistry',
    'Base64BinaryAdapter',
    'HexBinaryAdapter',
    'BooleanAdapter',
    'DatetimeAdapter',
    'DateAdapter',
    'DecimalAdapter',
    'DoubleAdapter',
    'IntegerAdapter',
    'PositiveIntegerAdapter',
    'NegativeIntegerAdapter',
    'NonNegativeIntegerAdapter',
    'NonPositiveIntegerAdapter',
    'ByteAdapter',
    'ShortAdapter',
    'IntAdapter',
    'LongAdapter',
    'UnsignedByteAdapter',
    'UnsignedShortAdapter',
    'UnsignedIntAdapter',
    'UnsignedLongAdapter',

    'ErrorKind',
    'XMLError',
    'ParameterRequiredError',
    'NullParameterError',
    'AttributeMissingError',
    'ElementMissingError',
    'ElementMalformedError',
    'CollectionLimitError',
)


class XMLObject:
    # Public attributes. These can either be overwritten by subclasses, or preferably specified via class parameters:
    #
    # class MyElement(XMLObject, name=..., namespace=..., prefix=...):
    #     ...
    #
    # Note that class parameters use normal names, while class attributes use sunder names to avoid conflicts with
    # application defined XMLObject attributes and elements.

    _name_: ClassVar[str | None] = None
    _namespace_: ClassVar[str | None] = None
    _prefix_: ClassVar[str | None] = None

    # Derived and internal attributes (these should not be overwritten in subclasses)

    _fields_: ClassVar[dict[str, FieldDescriptor]] = {}
    _abstract_: ClassVar[bool] = True

    _values_: dict[str, Any]
    _cache_: ElementCache

    def __init_subclass__(cls, name: str | None = None, namespace: str | None = None, prefix: str | None = None, **kw: object) -> None:
        super().__init_subclass__(**kw)

        if name is not None:
            if '_name_' in cls.__dict__ and cls._name_ != name:
                raise TypeError(f'The name specified via class parameter and the "_name_" class attribute are different ({name!r} != {cls._name_!r})')
            cls._name_ = name
        if namespace is not None:
            if '_namespace_' in cls.__dict__ and cls._namespace_ != namespace:
                raise TypeError(f'The namespace specified via class parameter and the "_namespace_" class attribute are different ({namespace!r} != {cls._namespace_!r})')
            cls._namespace_ = namespace
        if prefix is not None:
            cls._prefix_ = prefix

        local_fields = collect_fields(cls.__dict__)
        for descriptor in local_fields.values():
            descriptor.bind(cls._namespace_)

        # all the fields on this object (both inherited and locally defined), in declaration order
        fields = cls._fields_ | local_fields

        attributes = {key: value for key, value in fields.items() if isinstance(value, AttributeDescriptor)}
        elements = {key: value for key, value in fields.items() if isinstance(value, ElementDescriptor)}
        text_values = [value for value in fields.values() if isinstance(value, TextValue)]

        if len(text_values) > 1:
            raise TypeError(f'{cls.__qualname__} can only have one text value, not {len(text_values)}')

        cls._fields_ = fields
        cls._abstract_ = cls._name_ is None

        if cls._name_ is not None:
            ns = cls._namespace_ or None
            schema = Schema(
                name=cls._name_,
                namespace=ns,
                prefix=cls._prefix_ if cls._prefix_ is not None else getattr(ns, 'prefix', None),
                attributes=MappingProxyType(attributes),
                elements=MappingProxyType(elements),
                content=text_values[0] if text_values else None,
            )
            SchemaRegistry.associate(cls, schema)

    def __init__(self, **kw: object) -> None:
        if self._abstract_:
            raise TypeError(f'Cannot instantiate abstract class {self.__class__.__qualname__!r} that does not specify an element name')
        schema = SchemaRegistry.find_schema(self.__class__)
        self._values_ = {}
        self._cache_ = ElementCache()
        self._prefix = schema.prefix if schema is not None else None
        for name, value in kw.items():
            if name not in self._fields_:
                raise TypeError(f'got an unexpected keyword argument {name!r}')
            setattr(self, name, value)

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}({", ".join(f"{name}={value!r}" for name, value in self._values_.items())})'

    def __str__(self) -> str:
        return self.to_string()

    @property
    def local_name(self) -> str:
        return SchemaRegistry.get_schema(self.__class__).name

    @property
    def namespace_uri(self) -> str | None:
        return SchemaRegistry.get_schema(self.__class__).namespace

    @property
    def prefix(self) -> str | None:
        return self._prefix

    @prefix.setter
    def prefix(self, value: str | None) -> None:
        if value != self._prefix:
            self._prefix = value
            self._cache_.invalidate()

    # Conversion

    def has_changed(self) -> bool:
        return codec.has_changed(self)

    def get_xml(self) -> ETreeElement:
        return codec.build(self)

    def load_xml(self, element: ETreeElement) -> None:
        codec.load(self, element)

    def on_get_xml(self, element: ETreeElement) -> None:
        """Called after the element was built from the declared fields, to further customize it"""

    def on_load_xml(self, element: ETreeElement) -> None:
        """Called after the declared fields were loaded from the element, to process any additional data in it"""

    def to_string(self) -> str:
        return dom.to_string(self.get_xml())

    @classmethod
    def from_xml(cls, element: ETreeElement) -> Self:
        instance = cls()
        instance.load_xml(element)
        return instance

    @classmethod
    def from_string(cls, text: str | bytes) -> Self:
        return cls.from_xml(dom.parse(text).getroot())

    parse = staticmethod(dom.parse)

    # Element creation

    def create_document(self) -> ETreeDocument:
        return dom.create_document(self.local_name, self.namespace_uri, self.prefix)

    def create_element(self, document: ETreeDocument | None = None, local_name: str | None = None, namespace: str | None = None, prefix: str | None = None) -> ETreeElement:
        local_name = local_name or self.local_name
        namespace = namespace or self.namespace_uri
        prefix = self.prefix if prefix is None else prefix
        return dom.create_element(document, local_name, namespace, prefix)

    # Lookups in the bound element

    def _bound_element(self) -> ETreeElement:
        element = self._cache_.element
        if element is None:
            raise NullParameterError(self._name_ or self.__class__.__qualname__)
        return element

    def get_element(self, name: str, *, required: bool = True) -> ETreeElement | None:
        return dom.get_element(self._bound_element(), name, required=required)

    def get_attribute(self, name: str, default: str | None = None, *, required: bool = True) -> str | None:
        return dom.get_attribute(self._bound_element(), name, default, required=required)

    def get_children(self, local_name: str, namespace: str | None = None) -> list[ETreeElement]:
        return dom.get_children(self._bound_element(), local_name, namespace or self.namespace_uri)

    def get_child(self, local_name: str, *, required: bool = True) -> ETreeElement | None:
        return dom.get_child(self._bound_element(), local_name, self.namespace_uri, required=required)

    def get_first_child(self, local_name: str, namespace: str | None = None) -> ETreeElement | None:
        return dom.get_first_child(self._bound_element(), local_name, namespace)

    def get_element_by_id(self, node: dom.ETreeNode | None, id_value: str | None) -> ETreeElement | None:
        return dom.get_element_by_id(node, id_value)


class XMLCollection[T: XMLObject](XMLObject):
    """
    A homogeneous collection of XML objects.

    The item type is specified with the item_type class parameter:

      class Transforms(XMLCollection[Transform], name='Transforms', namespace=ns_dsig, item_type=Transform):
          pass

    A collection with a name is written as a wrapper element that contains
    the items. Used through a MultiElement field, the collection does not
    need a name, as its items are written directly under the parent element.
    Subclasses that override on_get_xml or on_load_xml must call the parent
    implementation.
    """

    _item_type_: ClassVar[type[XMLObject] | None] = None

    _items: list[T]

    def __init_subclass__(cls, item_type: type[T] | None = None, **kw: Any) -> None:
        super().__init_subclass__(**kw)
        if item_type is not None:
            if not (isinstance(item_type, type) and issubclass(item_type, XMLObject)):
                raise TypeError(f"item type must be a subclass of XMLObject, not '{type(item_type)}'")
            if SchemaRegistry.find_schema(item_type) is None:
                raise TypeError(f'{item_type.__qualname__!r} must specify an element name to be usable as item type')
            cls._item_type_ = item_type
        cls._abstract_ = cls._item_type_ is None

    def __init__(self, items: Iterable[T] = (), /, **kw: object) -> None:
        super().__init__(**kw)
        self._items = []
        for item in items:
            self.add(item)

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}({self._items!r})'

    def __contains__(self, item: object) -> bool:
        return any(element is item for element in self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @overload
    def __getitem__(self, key: int) -> T: ...

    @overload
    def __getitem__(self, key: slice) -> list[T]: ...

    def __getitem__(self, key: int | slice) -> T | list[T]:
        return self._items[key]

    def __delitem__(self, key: int | slice) -> None:
        del self._items[key]
        self._cache_.invalidate()

    def __iadd__(self, other: Iterable[T]) -> Self:
        for item in other:
            self.add(item)
        return self

    def index(self, item: T) -> int:
        # find item by identity not equality
        for index, element in enumerate(self._items):
            if element is item:
                return index
        raise ValueError(f'{item!r} is not in {self.__class__.__name__}')

    def add(self, item: T) -> None:
        assert self._item_type_ is not None  # noqa: S101 (used by type checkers)
        if not isinstance(item, self._item_type_):
            raise TypeError(f'item must be of type {self._item_type_.__qualname__}')
        if item in self:
            return
        self._items.append(item)
        self._cache_.invalidate()

    def remove(self, item: T) -> None:
        self._items.pop(self.index(item))
        self._cache_.invalidate()

    def clear(self) -> None:
        if self._items:
            self._items.clear()
            self._cache_.invalidate()

    def has_changed(self) -> bool:
        return super().has_changed() or any(item.has_changed() for item in self._items)

    def item_elements(self) -> list[ETreeElement]:
        return [item.get_xml() for item in self._items]

    def load_items(self, element: ETreeElement) -> None:
        """Load the items from the direct children of element that match the item type"""
        item_type: Callable[[], T] = self._item_type_  # type: ignore[assignment]
        schema = SchemaRegistry.get_schema(self._item_type_)  # type: ignore[arg-type]
        items = []
        for child in dom.element_children(element):
            if dom.matches(child, schema.name, schema.namespace):
                item = item_type()
                item.load_xml(child)
                items.append(item)
        self._items = items

    def on_get_xml(self, element: ETreeElement) -> None:
        element.extend(self.item_elements())

    def on_load_xml(self, element: ETreeElement) -> None:
        self.load_items(element)
