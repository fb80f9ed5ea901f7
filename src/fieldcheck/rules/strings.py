"""Small catalog of plain ``(value, param) -> bool`` predicates.

String predicates raise :class:`ConfigurationError` on non-string values.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from fieldcheck.errors import ConfigurationError
from fieldcheck.kinds import Kind, kind_of
from fieldcheck.rules.params import as_number, split_params

ALPHA_RE = re.compile(r"^[a-zA-Z]+$")
ALPHANUMERIC_RE = re.compile(r"^[a-zA-Z0-9]+$")
NUMERIC_RE = re.compile(r"^[-+]?[0-9]+(?:\.[0-9]+)?$")
NUMBER_RE = re.compile(r"^[0-9]+$")
HEXADECIMAL_RE = re.compile(r"^(0[xX])?[0-9a-fA-F]+$")
HEXCOLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_BYTE = r"(?:0|[1-9]\d?|1\d\d|2[0-4]\d|25[0-5])"
_PCT = r"(?:0|[1-9]\d?|100)%"
_ALPHA = r"(?:0(?:\.\d+)?|1(?:\.0+)?|\.\d+)"
_HUE = r"(?:0|[1-9]\d?|[12]\d\d|3[0-5]\d|360)"
RGB_RE = re.compile(
    rf"^rgb\(\s*(?:{_BYTE}\s*,\s*{_BYTE}\s*,\s*{_BYTE}|{_PCT}\s*,\s*{_PCT}\s*,\s*{_PCT})\s*\)$"
)
RGBA_RE = re.compile(
    rf"^rgba\(\s*(?:{_BYTE}\s*,\s*{_BYTE}\s*,\s*{_BYTE}|{_PCT}\s*,\s*{_PCT}\s*,\s*{_PCT})"
    rf"\s*,\s*{_ALPHA}\s*\)$"
)
HSL_RE = re.compile(rf"^hsl\(\s*{_HUE}\s*,\s*{_PCT}\s*,\s*{_PCT}\s*\)$")
HSLA_RE = re.compile(rf"^hsla\(\s*{_HUE}\s*,\s*{_PCT}\s*,\s*{_PCT}\s*,\s*{_ALPHA}\s*\)$")
EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def _string(value: Any, rule: str) -> str:
    if not isinstance(value, str):
        msg = f"Rule '{rule}' cannot be applied to a {kind_of(value).value} value"
        raise ConfigurationError(msg)
    return value


def _pattern(rule: str, regex: re.Pattern[str]) -> Callable[[Any, str], bool]:
    def check(value: Any, _param: str) -> bool:
        return regex.match(_string(value, rule)) is not None

    check.__name__ = f"is_{rule}"
    return check


def is_one_of(value: Any, param: str) -> bool:
    """Value equals one of the space-separated options (strings or numbers)."""
    options = split_params(param)
    kind = kind_of(value)
    if kind is Kind.STRING:
        return value in options
    if kind in (Kind.INT, Kind.FLOAT):
        return any(value == as_number(opt, "oneof", value) for opt in options)
    msg = f"Rule 'oneof' cannot be applied to a {kind.value} value"
    raise ConfigurationError(msg)


def is_lowercase(value: Any, _param: str) -> bool:
    text = _string(value, "lowercase")
    return text != "" and text == text.lower()


def is_uppercase(value: Any, _param: str) -> bool:
    text = _string(value, "uppercase")
    return text != "" and text == text.upper()


def contains(value: Any, param: str) -> bool:
    return param in _string(value, "contains")


def contains_any(value: Any, param: str) -> bool:
    text = _string(value, "containsany")
    return any(ch in text for ch in param)


def contains_rune(value: Any, param: str) -> bool:
    text = _string(value, "containsrune")
    return bool(param) and param[0] in text


def excludes(value: Any, param: str) -> bool:
    return param not in _string(value, "excludes")


def excludes_all(value: Any, param: str) -> bool:
    text = _string(value, "excludesall")
    return not any(ch in text for ch in param)


def excludes_rune(value: Any, param: str) -> bool:
    text = _string(value, "excludesrune")
    return not param or param[0] not in text


def starts_with(value: Any, param: str) -> bool:
    return _string(value, "startswith").startswith(param)


def ends_with(value: Any, param: str) -> bool:
    return _string(value, "endswith").endswith(param)


PATTERN_RULES: dict[str, Callable[[Any, str], bool]] = {
    "alpha": _pattern("alpha", ALPHA_RE),
    "alphanum": _pattern("alphanum", ALPHANUMERIC_RE),
    "numeric": _pattern("numeric", NUMERIC_RE),
    "number": _pattern("number", NUMBER_RE),
    "hexadecimal": _pattern("hexadecimal", HEXADECIMAL_RE),
    "hexcolor": _pattern("hexcolor", HEXCOLOR_RE),
    "rgb": _pattern("rgb", RGB_RE),
    "rgba": _pattern("rgba", RGBA_RE),
    "hsl": _pattern("hsl", HSL_RE),
    "hsla": _pattern("hsla", HSLA_RE),
    "email": _pattern("email", EMAIL_RE),
    "uuid": _pattern("uuid", UUID_RE),
    "lowercase": is_lowercase,
    "uppercase": is_uppercase,
}

# Rules below require a parameter.
PARAM_RULES: dict[str, Callable[[Any, str], bool]] = {
    "oneof": is_one_of,
    "contains": contains,
    "containsany": contains_any,
    "containsrune": contains_rune,
    "excludes": excludes,
    "excludesall": excludes_all,
    "excludesrune": excludes_rune,
    "startswith": starts_with,
    "endswith": ends_with,
}
