"""Type coercion between store value cells and Python values.

Two directions are covered:

- *generic* conversion (:func:`to_python`, :func:`values_to_python`) turns
  cells into the natural Python value for their :class:`PropertyType`;
- *typed* conversion (:func:`convert_values`) reads cells as a requested
  :class:`TargetType`, one converter per target.

A cell that cannot be read as the requested target is not an error: the
conversion yields ``None``. For array requests every value is converted on
its own and the ones that fail are dropped, so ``["1", "x", "3"]`` read as an
integer array gives ``[1, 3]``.
"""

from __future__ import annotations

import io
import math
import struct
from collections.abc import Callable, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from principalfs.kernel.domain.values import PropertyType, TargetType
from principalfs.kernel.logging import get_logger
from principalfs.kernel.ports.identity_store import (
    Binary,
    PropertyValue,
    ValueFormatError,
)
from principalfs.kernel.streams import LazyInputStream

logger = get_logger(__name__)

_TRUE_WORDS = frozenset({"true"})
_FALSE_WORDS = frozenset({"false"})


def _wrap_int(value: int, bits: int) -> int:
    """Truncate ``value`` to a signed two's complement integer of ``bits`` bits."""
    half = 1 << (bits - 1)
    return (value + half) % (1 << bits) - half


def _to_float32(value: float) -> float:
    """Round a double to the nearest IEEE-754 single precision value."""
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


_CONVERTERS: dict[TargetType, Callable[[PropertyValue], Any]] = {
    TargetType.STRING: lambda cell: cell.get_string(),
    TargetType.BYTE: lambda cell: _wrap_int(cell.get_long(), 8),
    TargetType.SHORT: lambda cell: _wrap_int(cell.get_long(), 16),
    TargetType.INTEGER: lambda cell: _wrap_int(cell.get_long(), 32),
    TargetType.LONG: lambda cell: cell.get_long(),
    TargetType.FLOAT: lambda cell: _to_float32(cell.get_double()),
    TargetType.DOUBLE: lambda cell: cell.get_double(),
    TargetType.DECIMAL: lambda cell: cell.get_decimal(),
    TargetType.BOOLEAN: lambda cell: cell.get_boolean(),
    TargetType.DATETIME: lambda cell: cell.get_date(),
    TargetType.DATE: lambda cell: cell.get_date().date(),
    TargetType.TIMESTAMP: lambda cell: cell.get_date().timestamp(),
    TargetType.BINARY: lambda cell: cell.get_binary(),
    TargetType.INPUT_STREAM: lambda cell: cell.get_binary().get_stream(),
    TargetType.VALUE: lambda cell: cell,
}


def to_python(cell: PropertyValue) -> Any:
    """Convert a cell to the Python value matching its native type.

    Binary cells become a :class:`LazyInputStream`; name, path, reference and
    undefined cells are returned as strings.
    """
    match cell.type:
        case PropertyType.DECIMAL:
            return cell.get_decimal()
        case PropertyType.BINARY:
            return LazyInputStream(cell)
        case PropertyType.BOOLEAN:
            return cell.get_boolean()
        case PropertyType.DATE:
            return cell.get_date()
        case PropertyType.DOUBLE:
            return cell.get_double()
        case PropertyType.LONG:
            return cell.get_long()
        case _:
            return cell.get_string()


def values_to_python(cells: Sequence[PropertyValue] | None) -> Any:
    """Convert the cells of one property: a scalar for one value, else a list."""
    if cells is None:
        return None
    if len(cells) == 1:
        return to_python(cells[0])
    return [to_python(cell) for cell in cells]


def convert_value(cell: PropertyValue, target: TargetType) -> Any:
    """Read one cell as ``target``.

    Raises
    ------
    ValueFormatError
        If the cell cannot be represented as the target type.
    """
    return _CONVERTERS[target](cell)


def _convert_array(cells: Sequence[PropertyValue], target: TargetType) -> list[Any] | None:
    values: list[Any] = []
    for cell in cells:
        try:
            values.append(convert_value(cell, target))
        except ValueFormatError:
            logger.debug("Dropping value of type {} not convertible to {}", cell.type, target)
    return values or None


def convert_values(
    cells: Sequence[PropertyValue] | None, target: TargetType, *, array: bool = False
) -> Any:
    """Read the cells of one property as ``target``.

    Parameters
    ----------
    cells : Sequence[PropertyValue] | None
        All values of the property, in store order
    target : TargetType
        Requested category
    array : bool, default=False
        Return a list with every convertible value instead of a scalar

    Returns
    -------
    Any
        The converted scalar (the first value for multi-value properties),
        a non-empty list for array requests, or ``None`` when nothing could
        be converted.
    """
    if cells is None:
        return None
    if array:
        return _convert_array(cells, target)
    if not cells:
        return None
    try:
        return convert_value(cells[0], target)
    except ValueFormatError as e:
        logger.debug("Cannot convert value to {}: {}", target, e)
        return None


def target_for_default(value: Any) -> TargetType | None:
    """Pick the conversion target matching the runtime type of a default value."""
    match value:
        case bool():
            return TargetType.BOOLEAN
        case int():
            return TargetType.LONG
        case float():
            return TargetType.DOUBLE
        case Decimal():
            return TargetType.DECIMAL
        case str():
            return TargetType.STRING
        case datetime():
            return TargetType.DATETIME
        case date():
            return TargetType.DATE
        case io.IOBase():
            return TargetType.INPUT_STREAM
        case PropertyValue():
            return TargetType.VALUE
        case Binary():
            return TargetType.BINARY
        case _:
            return None


def _parse_bool(value: str) -> bool | None:
    normalized = value.strip().lower()
    if normalized in _TRUE_WORDS:
        return True
    if normalized in _FALSE_WORDS:
        return False
    return None


def _coerce_scalar(value: Any, target: TargetType) -> Any:
    """Convert an already materialized Python value, or return ``None``."""
    try:
        match target:
            case TargetType.STRING:
                if isinstance(value, str | int | float | Decimal | datetime | date):
                    return str(value)
                return None
            case TargetType.BYTE | TargetType.SHORT | TargetType.INTEGER | TargetType.LONG:
                if isinstance(value, bool) or not isinstance(value, int | str):
                    return None
                number = int(value)
                bits = {TargetType.BYTE: 8, TargetType.SHORT: 16, TargetType.INTEGER: 32}
                return _wrap_int(number, bits[target]) if target in bits else number
            case TargetType.FLOAT | TargetType.DOUBLE:
                if isinstance(value, bool) or not isinstance(value, int | float | str | Decimal):
                    return None
                number = float(value)
                return _to_float32(number) if target is TargetType.FLOAT else number
            case TargetType.DECIMAL:
                if isinstance(value, bool) or not isinstance(value, int | float | str | Decimal):
                    return None
                return Decimal(str(value))
            case TargetType.BOOLEAN:
                if isinstance(value, bool):
                    return value
                return _parse_bool(value) if isinstance(value, str) else None
            case TargetType.DATETIME:
                if isinstance(value, datetime):
                    return value
                return datetime.fromisoformat(value) if isinstance(value, str) else None
            case TargetType.INPUT_STREAM:
                return value if isinstance(value, io.IOBase) else None
            case _:
                return None
    except (ValueError, InvalidOperation):
        return None


def coerce_object(value: Any, target: TargetType, *, array: bool = False) -> Any:
    """Convert a computed (non-stored) property value to ``target``.

    Follows the same rules as :func:`convert_values`: the first value for
    scalar requests, every convertible value for array requests.
    """
    if value is None:
        return None
    items = list(value) if isinstance(value, list | tuple) else [value]
    if array:
        converted = [c for c in (_coerce_scalar(item, target) for item in items) if c is not None]
        return converted or None
    return _coerce_scalar(items[0], target) if items else None


__all__ = [
    "coerce_object",
    "convert_value",
    "convert_values",
    "target_for_default",
    "to_python",
    "values_to_python",
]
