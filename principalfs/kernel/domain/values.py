"""Value categories used by the property views.

``PropertyType`` describes what the identity store holds in a value cell;
``TargetType`` is the closed set of categories a caller may ask a cell to be
converted into.
"""

from __future__ import annotations

from enum import StrEnum


class PropertyType(StrEnum):
    """Native type of a store value cell."""

    STRING = "string"
    BINARY = "binary"
    LONG = "long"
    DOUBLE = "double"
    DECIMAL = "decimal"
    DATE = "date"
    BOOLEAN = "boolean"
    NAME = "name"
    PATH = "path"
    REFERENCE = "reference"
    UNDEFINED = "undefined"


class TargetType(StrEnum):
    """Requested conversion target for typed property reads.

    Integer widths follow fixed-width two's complement semantics, so
    ``BYTE`` wraps at 8 bits, ``SHORT`` at 16 and ``INTEGER`` at 32.
    ``LONG`` is a plain Python ``int``.
    """

    STRING = "string"
    BYTE = "byte"
    SHORT = "short"
    INTEGER = "integer"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    TIMESTAMP = "timestamp"
    BINARY = "binary"
    INPUT_STREAM = "input_stream"
    VALUE = "value"


__all__ = ["PropertyType", "TargetType"]
