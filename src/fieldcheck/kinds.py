"""Closed set of value kinds the engine dispatches on, plus zero/presence checks."""

from __future__ import annotations

import dataclasses
import datetime as dt
from collections.abc import Callable, Mapping, Set
from collections.abc import Sequence as AbcSequence
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any


class Kind(str, Enum):
    """Kind of a (converted) value, independent of its concrete type."""

    INVALID = "invalid"  # absent (None)
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BYTES = "bytes"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    SHAPE = "shape"
    DATETIME = "datetime"
    DATE = "date"
    DURATION = "duration"
    OTHER = "other"


NUMERIC_KINDS: frozenset[Kind] = frozenset({Kind.INT, Kind.FLOAT})
SIZED_KINDS: frozenset[Kind] = frozenset({Kind.STRING, Kind.BYTES, Kind.SEQUENCE, Kind.MAPPING})
TEMPORAL_KINDS: frozenset[Kind] = frozenset({Kind.DATETIME, Kind.DATE})

Extractor = Callable[[Any], tuple[Any, Kind]]


def is_shape(value: object) -> bool:
    """Return True for dataclass *instances* (not dataclass types)."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def is_shape_type(tp: object) -> bool:
    """Return True for dataclass *types*."""
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def kind_of(value: object) -> Kind:
    """Classify *value*.  Order matters: bool before int, datetime before date."""
    if value is None:
        return Kind.INVALID
    if isinstance(value, bool):
        return Kind.BOOL
    if isinstance(value, int):
        return Kind.INT
    if isinstance(value, (float, Decimal, Fraction)):
        return Kind.FLOAT
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Kind.BYTES
    if isinstance(value, dt.datetime):
        return Kind.DATETIME
    if isinstance(value, dt.date):
        return Kind.DATE
    if isinstance(value, dt.timedelta):
        return Kind.DURATION
    if isinstance(value, Mapping):
        return Kind.MAPPING
    if is_shape(value):
        return Kind.SHAPE
    if isinstance(value, (AbcSequence, Set)):
        return Kind.SEQUENCE
    return Kind.OTHER


def is_zero(value: Any, kind: Kind, extract: Extractor) -> bool:
    """Return True when *value* equals the zero value of its kind.

    A shape is zero when every one of its fields is zero.
    """
    if kind is Kind.INVALID:
        return True
    if kind in NUMERIC_KINDS or kind is Kind.BOOL:
        return not value
    if kind in SIZED_KINDS:
        return len(value) == 0
    if kind is Kind.DATETIME:
        return bool(value.replace(tzinfo=None) == dt.datetime.min)
    if kind is Kind.DATE:
        return bool(value == dt.date.min)
    if kind is Kind.DURATION:
        return bool(value == dt.timedelta(0))
    if kind is Kind.SHAPE:
        for f in dataclasses.fields(value):
            inner, inner_kind = extract(getattr(value, f.name))
            if not is_zero(inner, inner_kind, extract):
                return False
        return True
    return False


def has_value(
    value: Any, kind: Kind, extract: Extractor, *, require_shape: bool = False
) -> bool:
    """Presence check used by ``required`` and the conditional family.

    Containers are present whenever they are not ``None``, even if empty.
    Shapes likewise, unless *require_shape* asks for a non-zero shape.
    """
    if kind is Kind.INVALID:
        return False
    if kind in (Kind.SEQUENCE, Kind.MAPPING):
        return True
    if kind is Kind.SHAPE:
        return not require_shape or not is_zero(value, kind, extract)
    return not is_zero(value, kind, extract)
