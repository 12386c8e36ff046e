# pg2xlsx/cells.py
"""
Value classification: map raw database values to typed spreadsheet cells.

Every value returned by the driver is first wrapped in one of the RawValue
variants below, then classified into a Cell carrying a display kind and the
text written for that kind.

Example
-------
::

    >>> cell_from_db('0042')
    Cell(kind='string', text='0042')
    >>> cell_from_db('19.99')
    Cell(kind='number', text='19.99')
    >>> cell_from_db(True)
    Cell(kind='string', text='Y')
"""

import datetime as dt
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, NamedTuple, Union

__all__ = ['CellKind', 'Cell', 'RawValue', 'NullValue', 'TextValue', 'BooleanValue',
           'IntegerValue', 'FloatValue', 'TimestampValue', 'OtherValue',
           'to_raw_value', 'classify', 'cell_from_db', 'format_timestamp']


class CellKind:
    """
    Display kinds understood by the spreadsheet writer.

    - STRING: stored as shared/inline text
    - NUMBER: stored as a numeric value
    - DATETIME: stored as an Excel date with a datetime number format
    """
    STRING = 'string'
    NUMBER = 'number'
    DATETIME = 'datetime'

    @classmethod
    def values(cls):
        return [getattr(cls, attr) for attr in dir(cls) if not attr.startswith('_') and attr.isupper()]


class Cell(NamedTuple):
    """One output value: its display kind and the text written for it."""
    kind: str
    text: str


# RawValue variants. One per representation a driver can hand back for a cell.

@dataclass(frozen=True)
class NullValue:
    pass


@dataclass(frozen=True)
class TextValue:
    data: Union[bytes, str]


@dataclass(frozen=True)
class BooleanValue:
    value: bool


@dataclass(frozen=True)
class IntegerValue:
    value: int


@dataclass(frozen=True)
class FloatValue:
    value: float


@dataclass(frozen=True)
class TimestampValue:
    value: dt.datetime


@dataclass(frozen=True)
class OtherValue:
    value: Any


RawValue = Union[NullValue, TextValue, BooleanValue, IntegerValue,
                 FloatValue, TimestampValue, OtherValue]

NULL = NullValue()
EMPTY_CELL = Cell(CellKind.STRING, '')


def to_raw_value(obj: Any) -> RawValue:
    """
    Wrap a value returned by a DB-API driver in its RawValue variant.

    Decimals are treated as text, the same way numeric columns arrive as
    text from drivers that do not convert them. Dates become midnight
    timestamps.
    """
    if obj is None:
        return NULL
    # bool is a subclass of int, so it has to be checked first
    elif isinstance(obj, bool):
        return BooleanValue(obj)
    elif isinstance(obj, int):
        return IntegerValue(obj)
    elif isinstance(obj, float):
        return FloatValue(obj)
    elif isinstance(obj, dt.datetime):
        return TimestampValue(obj)
    elif isinstance(obj, dt.date):
        return TimestampValue(dt.datetime(obj.year, obj.month, obj.day))
    elif isinstance(obj, (str, bytes)):
        return TextValue(obj)
    elif isinstance(obj, (bytearray, memoryview)):
        return TextValue(bytes(obj))
    elif isinstance(obj, Decimal):
        # fixed point keeps the column scale, str() gives 0E-8 for 0.00000000
        return TextValue(format(obj, 'f'))
    else:
        return OtherValue(obj)


def format_timestamp(value: dt.datetime) -> str:
    """
    Render a timestamp as RFC 3339 with whole seconds.

    Naive values are taken to be UTC, so the offset is always present.
    """
    offset = value.utcoffset()
    if not offset:
        suffix = 'Z'
    else:
        minutes = int(offset.total_seconds() / 60)
        sign = '-' if minutes < 0 else '+'
        hours, minutes = divmod(abs(minutes), 60)
        suffix = f'{sign}{hours:02d}:{minutes:02d}'
    return (f'{value.year:04d}-{value.month:02d}-{value.day:02d}'
            f'T{value.hour:02d}:{value.minute:02d}:{value.second:02d}{suffix}')


def _format_float(value: float) -> Cell:
    if math.isfinite(value):
        return Cell(CellKind.NUMBER, f'{value:.6f}')
    # a spreadsheet number cannot hold NaN or infinity
    if math.isnan(value):
        return Cell(CellKind.STRING, 'NaN')
    return Cell(CellKind.STRING, '+Inf' if value > 0 else '-Inf')


def _is_float(text: str) -> bool:
    """True if text is a plain finite floating point literal."""
    if not text.isascii() or text != text.strip() or '_' in text:
        return False
    try:
        return math.isfinite(float(text))
    except ValueError:
        return False


def _classify_text(data: Union[bytes, str]) -> Cell:
    text = data.decode('utf-8', errors='replace') if isinstance(data, bytes) else data
    if not text:
        return Cell(CellKind.STRING, text)
    # zero-prefixed values without a decimal point are codes (zip, UPC, ids),
    # converting them to numbers would drop the leading zeroes
    if '.' in text or text[0] != '0':
        if _is_float(text):
            return Cell(CellKind.NUMBER, text)
    return Cell(CellKind.STRING, text)


def classify(raw: RawValue) -> Cell:
    """
    Classify a raw database value into a spreadsheet cell.

    Args:
        raw: RawValue variant produced by to_raw_value()

    Returns:
        Cell with its display kind and text. Never raises.
    """
    if isinstance(raw, NullValue):
        return EMPTY_CELL
    elif isinstance(raw, BooleanValue):
        return Cell(CellKind.STRING, 'Y' if raw.value else 'N')
    elif isinstance(raw, IntegerValue):
        return Cell(CellKind.NUMBER, str(raw.value))
    elif isinstance(raw, FloatValue):
        return _format_float(raw.value)
    elif isinstance(raw, TimestampValue):
        return Cell(CellKind.DATETIME, format_timestamp(raw.value))
    elif isinstance(raw, TextValue):
        return _classify_text(raw.data)
    else:
        value = getattr(raw, 'value', raw)
        return Cell(CellKind.STRING, str(value))


def cell_from_db(obj: Any) -> Cell:
    """Shortcut for classify(to_raw_value(obj))."""
    return classify(to_raw_value(obj))
