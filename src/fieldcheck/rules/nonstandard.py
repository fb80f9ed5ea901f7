"""Opt-in rules that are not registered by default.

>>> v = Validator()
>>> v.register_rule("notblank", not_blank, needs_context=True)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fieldcheck.kinds import Kind

if TYPE_CHECKING:
    from fieldcheck.engine.context import FieldLevel


def not_blank(fl: FieldLevel) -> bool:
    """Strings must have non-whitespace content; containers must be non-empty.

    Absent values fail; any other kind passes when not ``None``.
    """
    kind = fl.kind
    if kind is Kind.STRING:
        return fl.value.strip() != ""
    if kind in (Kind.BYTES, Kind.SEQUENCE, Kind.MAPPING):
        return len(fl.value) > 0
    return kind is not Kind.INVALID
