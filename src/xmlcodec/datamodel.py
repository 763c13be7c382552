# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from binascii import Error as BinasciiError
from binascii import a2b_base64 as base64decode
from binascii import a2b_hex as hexdecode
from binascii import b2a_base64 as base64encode
from binascii import b2a_hex as hexencode
from collections.abc import Callable, MutableMapping
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from math import inf, isinf, isnan
from typing import ClassVar, Protocol, Self, cast, runtime_checkable

__all__ = (  # noqa: RUF022
    'DataConverter',
    'DataAdapter',
    'DataAdapterType',
    'AdapterRegistry',
    'resolve_adapter',

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
)


@runtime_checkable
class DataConverter(Protocol):
    """A data type that knows how to convert itself to and from its XML lexical form"""

    @classmethod
    def xml_parse(cls, value: str) -> Self:
        """Build an instance from its XML lexical form"""
        ...

    def xml_build(self: Self) -> str:
        """Return the XML lexical form of the instance"""
        ...


@runtime_checkable
class DataAdapter[T](Protocol):
    """An external converter between a data type T and its XML lexical form"""

    @staticmethod
    def xml_parse(value: str, /) -> T:
        """Convert the XML lexical form into a T"""
        ...

    @staticmethod
    def xml_build(value: T, /) -> str:
        """Convert a T into its XML lexical form"""
        ...


type DataAdapterType[T] = type[DataAdapter[T]]


class AdapterRegistry[T]:
    """Default adapters for data types that do not implement DataConverter"""

    _adapters: ClassVar[MutableMapping[type, type[DataAdapter]]] = {}

    @classmethod
    def associate(cls, data_type: type[T], adapter: type[DataAdapter[T]]) -> None:
        if issubclass(data_type, DataConverter):
            raise TypeError(f'{data_type.__qualname__} implements the DataConverter protocol and cannot have a default adapter')
        cls._adapters[data_type] = adapter

    @classmethod
    def get_adapter(cls, data_type: type[T]) -> type[DataAdapter[T]] | None:
        return cls._adapters.get(data_type, None)


def resolve_adapter[T](data_type: type[T], adapter: DataAdapterType[T] | None = None) -> tuple[Callable[[str], T], Callable[[T], str]]:
    """
    Return the (xml_parse, xml_build) pair used to convert values of data_type.

    An explicit adapter takes precedence, followed by the data type itself if
    it implements the DataConverter protocol, followed by the adapter that is
    registered for the data type. As a last resort the data type constructor
    is used for parsing and str() for building.
    """
    if adapter is None:
        if issubclass(data_type, DataConverter):
            adapter = cast(DataAdapterType[T], data_type)
        else:
            adapter = AdapterRegistry.get_adapter(data_type)
    if adapter is not None:
        return adapter.xml_parse, adapter.xml_build
    return cast(Callable[[str], T], data_type), str


class Base64BinaryAdapter:
    @staticmethod
    def xml_parse(value: str) -> bytes:
        try:
            return base64decode(value)
        except BinasciiError as exc:
            raise ValueError(f'Invalid base64 value: {exc!s}') from exc

    @staticmethod
    def xml_build(value: bytes) -> str:
        return base64encode(value, newline=False).decode('ascii')


class HexBinaryAdapter:
    @staticmethod
    def xml_parse(value: str) -> bytes:
        try:
            return hexdecode(value.strip())
        except BinasciiError as exc:
            raise ValueError(f'Invalid hex value: {exc!s}') from exc

    @staticmethod
    def xml_build(value: bytes) -> str:
        return hexencode(value).decode('ascii').upper()


class BooleanAdapter:
    @staticmethod
    def xml_parse(value: str) -> bool:
        match value.strip():
            case 'true' | '1':
                return True
            case 'false' | '0':
                return False
            case _:
                raise ValueError(f'Invalid boolean value: {value!r}')

    @staticmethod
    def xml_build(value: bool) -> str:  # noqa: FBT001
        return 'true' if value else 'false'


class DatetimeAdapter:
    @staticmethod
    def xml_parse(value: str) -> datetime:
        return datetime.fromisoformat(value.strip()).astimezone(UTC)

    @staticmethod
    def xml_build(value: datetime) -> str:
        return value.astimezone(UTC).isoformat()


class DateAdapter:
    @staticmethod
    def xml_parse(value: str) -> date:
        return date.fromisoformat(value.strip())

    @staticmethod
    def xml_build(value: date) -> str:
        return value.isoformat()


class DecimalAdapter:
    @staticmethod
    def xml_parse(value: str) -> Decimal:
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f'Invalid decimal value: {value!r}') from None
        if not number.is_finite():
            raise ValueError(f'Invalid decimal value: {value!r}')
        return number

    @staticmethod
    def xml_build(value: Decimal) -> str:
        return format(value, 'f')


class DoubleAdapter:
    @staticmethod
    def xml_parse(value: str) -> float:
        match value.strip():
            case 'INF' | '+INF':
                return inf
            case '-INF':
                return -inf
            case 'NaN':
                return float('nan')
            case text if text.lstrip('+-').lower() in {'inf', 'infinity', 'nan'}:
                raise ValueError(f'Invalid double value: {value!r}')
            case text:
                return float(text)

    @staticmethod
    def xml_build(value: float) -> str:
        if isnan(value):
            return 'NaN'
        if isinf(value):
            return 'INF' if value > 0 else '-INF'
        return repr(float(value))


AdapterRegistry.associate(bool, BooleanAdapter)
AdapterRegistry.associate(bytes, Base64BinaryAdapter)
AdapterRegistry.associate(datetime, DatetimeAdapter)
AdapterRegistry.associate(date, DateAdapter)
AdapterRegistry.associate(Decimal, DecimalAdapter)
AdapterRegistry.associate(float, DoubleAdapter)


class IntegerAdapter:
    """
    Adapter for xsd:integer and its restrictions.

    Restrictions are defined by subclassing with either explicit bounds:

      class PercentAdapter(IntegerAdapter, min_value=0, max_value=100, name='percent'):
          pass

    or with a bit size, which computes both the bounds and the name:

      class ShortAdapter(IntegerAdapter, bits=16):
          pass
    """

    lower_bound: ClassVar[int | float] = -inf
    upper_bound: ClassVar[int | float] = +inf
    type_name: ClassVar[str] = 'integer'

    def __init_subclass__(cls, *, min_value: int | None = None, max_value: int | None = None, name: str | None = None, bits: int | None = None, unsigned: bool = False, **kw: object) -> None:
        super().__init_subclass__(**kw)
        if bits is not None:
            if bits <= 0:
                raise ValueError('when specified, bits must be a positive integer')
            offset = 0 if unsigned else 2 ** (bits - 1)
            cls.lower_bound = -offset
            cls.upper_bound = 2**bits - 1 - offset
            cls.type_name = f'{"unsigned" if unsigned else "signed"} {bits}-bit integer'
        else:
            if min_value is not None:
                cls.lower_bound = min_value
            if max_value is not None:
                cls.upper_bound = max_value
            if name is not None:
                cls.type_name = name

    @classmethod
    def check(cls, number: int) -> int:
        if cls.lower_bound <= number <= cls.upper_bound:
            return number
        raise ValueError(f"invalid value '{number}' for {cls.type_name}")

    @classmethod
    def xml_parse(cls, value: str) -> int:
        return cls.check(int(value))

    @classmethod
    def xml_build(cls, value: int) -> str:
        return str(cls.check(value))


class PositiveIntegerAdapter(IntegerAdapter, min_value=+1, name='positive integer'):
    pass


class NegativeIntegerAdapter(IntegerAdapter, max_value=-1, name='negative integer'):
    pass


class NonNegativeIntegerAdapter(IntegerAdapter, min_value=0, name='non-negative integer'):
    pass


class NonPositiveIntegerAdapter(IntegerAdapter, max_value=0, name='non-positive integer'):
    pass


class ByteAdapter(IntegerAdapter, bits=8):
    pass


class ShortAdapter(IntegerAdapter, bits=16):
    pass


class IntAdapter(IntegerAdapter, bits=32):
    pass


class LongAdapter(IntegerAdapter, bits=64):
    pass


class UnsignedByteAdapter(IntegerAdapter, bits=8, unsigned=True):
    pass


class UnsignedShortAdapter(IntegerAdapter, bits=16, unsigned=True):
    pass


class UnsignedIntAdapter(IntegerAdapter, bits=32, unsigned=True):
    pass


class UnsignedLongAdapter(IntegerAdapter, bits=64, unsigned=True):
    pass
