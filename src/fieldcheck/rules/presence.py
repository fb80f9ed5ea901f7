"""Presence rules: ``required``, the conditional required/excluded family and
``isdefault``.

These all run on absent values.  Parameters are whitespace-separated field
names, or ``field value`` pairs for the ``_if``/``_unless`` variants; single
quotes allow spaces in a value and ``None`` matches an absent sibling.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from fieldcheck.errors import ConfigurationError
from fieldcheck.kinds import NUMERIC_KINDS, Kind, has_value
from fieldcheck.rules.params import as_bool, as_float, as_int, split_params

if TYPE_CHECKING:
    from fieldcheck.engine.context import FieldLevel

ABSENT_LITERAL = "None"


# ---------------------------------------------------------------------------
# Sibling helpers
# ---------------------------------------------------------------------------


def _pairs(fl: FieldLevel) -> list[tuple[str, str]]:
    params = split_params(fl.param)
    if not params or len(params) % 2:
        msg = f"Rule '{fl.tag}' needs 'field value' pairs, got '{fl.param}'"
        raise ConfigurationError(msg)
    return list(zip(params[::2], params[1::2]))


def _names(fl: FieldLevel) -> list[str]:
    names = split_params(fl.param)
    if not names:
        msg = f"Rule '{fl.tag}' needs at least one field name"
        raise ConfigurationError(msg)
    return names


def _sibling_present(fl: FieldLevel, name: str) -> bool:
    value, kind, found = fl.get_struct_field(name)
    return found and has_value(value, kind, fl.extract)


def _sibling_matches(fl: FieldLevel, name: str, expected: str) -> bool:
    """Compare a sibling with a literal, interpreting it by the sibling's kind."""
    value, kind, found = fl.get_struct_field(name)
    if not found or kind is Kind.INVALID:
        return expected == ABSENT_LITERAL
    if kind is Kind.STRING:
        return bool(value == expected)
    if kind is Kind.BOOL:
        return value is as_bool(expected, fl.tag)
    if kind is Kind.INT:
        return bool(value == as_int(expected, fl.tag))
    if kind in NUMERIC_KINDS:
        return bool(value == as_float(expected, fl.tag))
    if kind in (Kind.BYTES, Kind.SEQUENCE, Kind.MAPPING):
        return len(value) == as_int(expected, fl.tag)
    return str(value) == expected


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def is_required(fl: FieldLevel) -> bool:
    return fl.has_value()


def is_default(fl: FieldLevel) -> bool:
    return not fl.has_value()


def required_if(fl: FieldLevel) -> bool:
    """Required when every ``field value`` pair matches."""
    if all(_sibling_matches(fl, n, v) for n, v in _pairs(fl)):
        return fl.has_value()
    return True


def required_unless(fl: FieldLevel) -> bool:
    """Required unless some ``field value`` pair matches."""
    if any(_sibling_matches(fl, n, v) for n, v in _pairs(fl)):
        return True
    return fl.has_value()


def _when(
    condition: Callable[[Any, Any], bool], *, present: bool, excluded: bool
) -> Callable[[FieldLevel], bool]:
    """Build a with/without rule.

    *condition* is ``any`` or ``all`` over the named siblings' presence (or
    absence when *present* is false).  When it holds the field must be
    present (or absent when *excluded*).
    """

    def check(fl: FieldLevel) -> bool:
        triggered = condition(_sibling_present(fl, n) is present for n in _names(fl))
        if not triggered:
            return True
        return not fl.has_value() if excluded else fl.has_value()

    return check


def excluded_if(fl: FieldLevel) -> bool:
    """Must be absent when every ``field value`` pair matches."""
    if all(_sibling_matches(fl, n, v) for n, v in _pairs(fl)):
        return not fl.has_value()
    return True


def excluded_unless(fl: FieldLevel) -> bool:
    """Must be absent unless every ``field value`` pair matches."""
    if all(_sibling_matches(fl, n, v) for n, v in _pairs(fl)):
        return True
    return not fl.has_value()


PRESENCE_RULES: dict[str, Callable[[FieldLevel], bool]] = {
    "required_if": required_if,
    "required_unless": required_unless,
    "required_with": _when(any, present=True, excluded=False),
    "required_with_all": _when(all, present=True, excluded=False),
    "required_without": _when(any, present=False, excluded=False),
    "required_without_all": _when(all, present=False, excluded=False),
    "excluded_if": excluded_if,
    "excluded_unless": excluded_unless,
    "excluded_with": _when(any, present=True, excluded=True),
    "excluded_with_all": _when(all, present=True, excluded=True),
    "excluded_without": _when(any, present=False, excluded=True),
    "excluded_without_all": _when(all, present=False, excluded=True),
}
