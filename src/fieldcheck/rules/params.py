"""Parameter parsing shared by the built-in rules.

Unparsable parameters are configuration errors, never violations.
"""

from __future__ import annotations

import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Any

from fieldcheck.errors import ConfigurationError

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_DURATION_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_PARAM_RE = re.compile(r"'([^']*)'|(\S+)")


def _bad(param: str, rule: str, expected: str) -> ConfigurationError:
    return ConfigurationError(f"Bad parameter '{param}' for rule '{rule}': expected {expected}")


def as_int(param: str, rule: str) -> int:
    """Parse an integer; ``0x``/``0o``/``0b`` prefixes are accepted."""
    try:
        return int(param, 0)
    except ValueError:
        pass
    try:
        # int(..., 0) rejects leading zeros such as "010".
        return int(param, 10)
    except ValueError:
        raise _bad(param, rule, "an integer") from None


def as_float(param: str, rule: str) -> float:
    try:
        return float(param)
    except ValueError:
        raise _bad(param, rule, "a number") from None


def as_number(param: str, rule: str, like: Any) -> Any:
    """Parse *param* into the numeric type of *like*."""
    if isinstance(like, bool):
        raise _bad(param, rule, "a numeric field")
    if isinstance(like, int):
        return as_int(param, rule)
    if isinstance(like, Decimal):
        try:
            return Decimal(param)
        except InvalidOperation:
            raise _bad(param, rule, "a decimal") from None
    if isinstance(like, Fraction):
        try:
            return Fraction(param)
        except (ValueError, ZeroDivisionError):
            raise _bad(param, rule, "a fraction") from None
    return as_float(param, rule)


def as_bool(param: str, rule: str) -> bool:
    if param in _TRUE:
        return True
    if param in _FALSE:
        return False
    raise _bad(param, rule, "a boolean")


def parse_duration(param: str, rule: str) -> dt.timedelta:
    """Parse ``"1h30m"``, ``"-1.5h"``, ``"300ms"``; a bare number means seconds."""
    text = param.strip()
    if not text:
        raise _bad(param, rule, "a duration")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    try:
        return dt.timedelta(seconds=sign * float(text))
    except ValueError:
        pass

    seconds = 0.0
    pos = 0
    for m in _DURATION_RE.finditer(text):
        if m.start() != pos:
            raise _bad(param, rule, "a duration")
        seconds += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos == 0 or pos != len(text):
        raise _bad(param, rule, "a duration")
    return dt.timedelta(seconds=sign * seconds)


def split_params(param: str) -> list[str]:
    """Split on whitespace; single quotes group a value containing spaces."""
    return [m.group(1) if m.group(1) is not None else m.group(2) for m in _PARAM_RE.finditer(param)]
