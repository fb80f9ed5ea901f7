"""Kind-polymorphic comparisons: ``len min max eq ne gt gte lt lte``.

Strings compare by code point count, bytes by byte count, containers by
element count, numbers by magnitude, durations by length, and datetimes and
dates chronologically against the current instant (optionally shifted by a
duration parameter).  ``eq``/``ne`` compare strings and bools by value.
"""

from __future__ import annotations

import datetime as dt
import operator
from collections.abc import Callable
from typing import Any

from fieldcheck.errors import ConfigurationError
from fieldcheck.kinds import NUMERIC_KINDS, SIZED_KINDS, Kind, kind_of
from fieldcheck.rules.params import as_bool, as_int, as_number, parse_duration

Compare = Callable[[Any, Any], bool]


def _unsupported(rule: str, kind: Kind) -> ConfigurationError:
    return ConfigurationError(f"Rule '{rule}' cannot be applied to a {kind.value} value")


def _now_like(value: dt.date, rule: str, param: str) -> dt.date:
    offset = parse_duration(param, rule) if param else dt.timedelta(0)
    if isinstance(value, dt.datetime):
        now = dt.datetime.now(tz=value.tzinfo) if value.tzinfo else dt.datetime.now()
        return now + offset
    return dt.date.today() + offset


def _ordered(rule: str, op: Compare) -> Callable[[Any, str], bool]:
    """Build an ordering rule.

    The parser lets ``gt gte lt lte`` through without a parameter because a
    bare ``gt`` on a datetime or date means "after now".  On any other kind a
    missing parameter is only caught here, on the first value checked.
    """

    def check(value: Any, param: str) -> bool:
        kind = kind_of(value)
        if not param and kind not in (Kind.DATETIME, Kind.DATE):
            msg = f"Rule '{rule}' needs a parameter on a {kind.value} value"
            raise ConfigurationError(msg)
        if kind in SIZED_KINDS:
            return op(len(value), as_int(param, rule))
        if kind in NUMERIC_KINDS:
            return op(value, as_number(param, rule, value))
        if kind is Kind.DURATION:
            return op(value, parse_duration(param, rule))
        if kind in (Kind.DATETIME, Kind.DATE):
            return op(value, _now_like(value, rule, param))
        raise _unsupported(rule, kind)

    check.__name__ = f"is_{rule}"
    return check


def _equality(rule: str, op: Compare) -> Callable[[Any, str], bool]:
    def check(value: Any, param: str) -> bool:
        kind = kind_of(value)
        if kind is Kind.STRING:
            return op(value, param)
        if kind is Kind.BOOL:
            return op(value, as_bool(param, rule))
        if kind in SIZED_KINDS:
            return op(len(value), as_int(param, rule))
        if kind in NUMERIC_KINDS:
            return op(value, as_number(param, rule, value))
        if kind is Kind.DURATION:
            return op(value, parse_duration(param, rule))
        raise _unsupported(rule, kind)

    check.__name__ = f"is_{rule}"
    return check


def has_length(value: Any, param: str) -> bool:
    """``len``: exact size for sized kinds, exact value for numbers and durations."""
    kind = kind_of(value)
    if kind in SIZED_KINDS:
        return len(value) == as_int(param, "len")
    if kind in NUMERIC_KINDS:
        return bool(value == as_number(param, "len", value))
    if kind is Kind.DURATION:
        return bool(value == parse_duration(param, "len"))
    raise _unsupported("len", kind)


is_eq = _equality("eq", operator.eq)
is_ne = _equality("ne", operator.ne)
is_gt = _ordered("gt", operator.gt)
is_gte = _ordered("gte", operator.ge)
is_lt = _ordered("lt", operator.lt)
is_lte = _ordered("lte", operator.le)
has_min = _ordered("min", operator.ge)
has_max = _ordered("max", operator.le)

COMPARISON_RULES: dict[str, Callable[[Any, str], bool]] = {
    "len": has_length,
    "min": has_min,
    "max": has_max,
    "eq": is_eq,
    "ne": is_ne,
    "gt": is_gt,
    "gte": is_gte,
    "lt": is_lt,
    "lte": is_lte,
}

# Rules whose parameter may be left out (datetimes compare against "now").
OPTIONAL_PARAM: frozenset[str] = frozenset({"gt", "gte", "lt", "lte"})
