"""Cross-field rules: compare a field with a sibling (``*field``) or with a
field reached from the top of the value tree (``*csfield``).

A blank parameter refers to the parent itself, which is how
``Validator.validate_value_with`` compares two free-standing values.
"""

from __future__ import annotations

import operator
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from fieldcheck.errors import ConfigurationError
from fieldcheck.kinds import NUMERIC_KINDS, SIZED_KINDS, TEMPORAL_KINDS, Kind

if TYPE_CHECKING:
    from fieldcheck.engine.context import FieldLevel

Compare = Callable[[Any, Any], bool]


def _other(fl: FieldLevel, cross: bool) -> tuple[Any, Kind, bool]:
    if cross:
        return fl.get_cross_field(fl.param)
    return fl.get_struct_field(fl.param)


def _same_family(kind: Kind, other: Kind) -> bool:
    if kind in NUMERIC_KINDS:
        return other in NUMERIC_KINDS
    return kind is other


def _equal(fl: FieldLevel, cross: bool) -> bool:
    other, other_kind, found = _other(fl, cross)
    if not found or other_kind is Kind.INVALID:
        return False
    if not _same_family(fl.kind, other_kind):
        return False
    return bool(fl.value == other)


def _ordered(rule: str, op: Compare, cross: bool) -> Callable[[FieldLevel], bool]:
    def check(fl: FieldLevel) -> bool:
        other, other_kind, found = _other(fl, cross)
        if not found or other_kind is Kind.INVALID:
            return False
        if not _same_family(fl.kind, other_kind):
            return False
        kind = fl.kind
        if kind in SIZED_KINDS:
            return op(len(fl.value), len(other))
        if kind in NUMERIC_KINDS or kind in TEMPORAL_KINDS or kind is Kind.DURATION:
            return op(fl.value, other)
        msg = f"Rule '{rule}' cannot compare {kind.value} values"
        raise ConfigurationError(msg)

    check.__name__ = f"is_{rule}"
    return check


def _eq(cross: bool) -> Callable[[FieldLevel], bool]:
    return lambda fl: _equal(fl, cross)


def _ne(cross: bool) -> Callable[[FieldLevel], bool]:
    return lambda fl: not _equal(fl, cross)


def field_contains(fl: FieldLevel) -> bool:
    """The field's string contains the sibling's string."""
    other, other_kind, found = fl.get_struct_field(fl.param)
    if not found or other_kind is not Kind.STRING:
        return False
    if fl.kind is not Kind.STRING:
        msg = f"Rule 'fieldcontains' cannot be applied to a {fl.kind.value} value"
        raise ConfigurationError(msg)
    return other in fl.value


def field_excludes(fl: FieldLevel) -> bool:
    """The field's string does not contain the sibling's string."""
    other, other_kind, found = fl.get_struct_field(fl.param)
    if not found or other_kind is not Kind.STRING:
        return True
    if fl.kind is not Kind.STRING:
        msg = f"Rule 'fieldexcludes' cannot be applied to a {fl.kind.value} value"
        raise ConfigurationError(msg)
    return other not in fl.value


CROSSFIELD_RULES: dict[str, Callable[[FieldLevel], bool]] = {
    "eqfield": _eq(cross=False),
    "nefield": _ne(cross=False),
    "gtfield": _ordered("gtfield", operator.gt, cross=False),
    "gtefield": _ordered("gtefield", operator.ge, cross=False),
    "ltfield": _ordered("ltfield", operator.lt, cross=False),
    "ltefield": _ordered("ltefield", operator.le, cross=False),
    "eqcsfield": _eq(cross=True),
    "necsfield": _ne(cross=True),
    "gtcsfield": _ordered("gtcsfield", operator.gt, cross=True),
    "gtecsfield": _ordered("gtecsfield", operator.ge, cross=True),
    "ltcsfield": _ordered("ltcsfield", operator.lt, cross=True),
    "ltecsfield": _ordered("ltecsfield", operator.le, cross=True),
    "fieldcontains": field_contains,
    "fieldexcludes": field_excludes,
}
