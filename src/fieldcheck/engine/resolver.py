"""Cross-reference resolution: ``"Inner.Items[0][key]"`` -> value.

A name the shape definition does not have is a configuration error.  Paths
broken by the data itself (a ``None`` on the way, a missing mapping key, an
index out of range or negative) resolve to ``found=False``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from fieldcheck.errors import ConfigurationError
from fieldcheck.kinds import Kind

if TYPE_CHECKING:
    from fieldcheck.cache import MetadataCache

_TOKEN_RE = re.compile(r"\[([^\]]*)\]|([^.\[\]]+)")


def split_path(path: str) -> list[str]:
    """``"a.b[0][k]"`` -> ``["a", "b", "0", "k"]``."""
    tokens: list[str] = []
    pos = 0
    for m in _TOKEN_RE.finditer(path):
        gap = path[pos : m.start()]
        if gap.strip("."):
            msg = f"Malformed field path '{path}'"
            raise ConfigurationError(msg)
        tokens.append(m.group(1) if m.group(1) is not None else m.group(2))
        pos = m.end()
    if path[pos:].strip("."):
        msg = f"Malformed field path '{path}'"
        raise ConfigurationError(msg)
    return tokens


def _mapping_get(mapping: Mapping[Any, Any], token: str) -> tuple[Any, bool]:
    if token in mapping:
        return mapping[token], True
    try:
        as_int = int(token)
    except ValueError:
        return None, False
    if as_int in mapping:
        return mapping[as_int], True
    return None, False


def resolve(
    start: Any,
    path: str,
    cache: MetadataCache,
    extract: Callable[[Any], tuple[Any, Kind]],
) -> tuple[Any, Kind, bool]:
    """Walk *path* from *start*.  Returns ``(value, kind, found)``."""
    current, kind = extract(start)
    for token in split_path(path):
        if kind is Kind.INVALID:
            return None, Kind.INVALID, False

        if kind is Kind.SHAPE:
            descriptor = cache.shape(type(current))
            member = descriptor.by_name.get(token)
            if member is None:
                msg = f"Field '{token}' not found on shape '{descriptor.name}' (path '{path}')"
                raise ConfigurationError(msg)
            current = member.get(current)
        elif kind is Kind.MAPPING:
            current, found = _mapping_get(current, token)
            if not found:
                return None, Kind.INVALID, False
        elif kind is Kind.SEQUENCE:
            try:
                index = int(token)
            except ValueError:
                msg = f"Index '{token}' in path '{path}' is not an integer"
                raise ConfigurationError(msg) from None
            items = list(current)
            if not 0 <= index < len(items):
                return None, Kind.INVALID, False
            current = items[index]
        else:
            msg = f"Cannot resolve '{token}' of path '{path}' on a {kind.value} value"
            raise ConfigurationError(msg)

        current, kind = extract(current)

    return current, kind, True
