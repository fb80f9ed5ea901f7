"""Extension registry: rule predicates, aliases, type converters and shape hooks.

Registration is expected at start-up.  Writes are serialized with a lock and
publish a fresh dict (copy-on-write), so validation threads read the tables
without taking any lock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from fieldcheck.errors import ConfigurationError
from fieldcheck.kinds import is_shape_type

if TYPE_CHECKING:
    from fieldcheck.engine.context import ShapeLevel

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DIVE = "dive"
KEYS = "keys"
END_KEYS = "endkeys"
OMIT_EMPTY = "omitempty"
OMIT_NIL = "omitnil"
STRUCT_ONLY = "structonly"
NO_STRUCT_LEVEL = "nostructlevel"
SKIP = "-"

RESERVED_WORDS: frozenset[str] = frozenset(
    {DIVE, KEYS, END_KEYS, OMIT_EMPTY, OMIT_NIL, STRUCT_ONLY, NO_STRUCT_LEVEL, SKIP, "|"}
)
RESTRICTED_CHARS = ".[],|=+()`~!@#$%^&*\\\"/?<>{}"

Converter = Callable[[Any], Any]
ShapeHook = Callable[["ShapeLevel"], None]


class ParamPolicy(str, Enum):
    """Whether a rule accepts a ``=param`` part."""

    NONE = "none"
    REQUIRED = "required"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class RegisteredRule:
    """A named predicate.

    Plain predicates are called as ``predicate(value, param) -> bool``.
    With *needs_context* they receive a single
    :class:`~fieldcheck.engine.context.FieldLevel` instead.  Rules flagged
    *call_when_absent* also run when the field value is ``None``; every other
    rule treats an absent value as vacuously valid.
    """

    name: str
    predicate: Callable[..., bool]
    needs_context: bool = False
    call_when_absent: bool = False
    param: ParamPolicy = ParamPolicy.OPTIONAL


def check_name(name: str, what: str) -> None:
    """Reject empty, reserved, or punctuation-bearing rule and alias names."""
    if not name:
        msg = f"{what} name cannot be empty"
        raise ConfigurationError(msg)
    if name in RESERVED_WORDS or any(ch in RESTRICTED_CHARS for ch in name):
        msg = (
            f"{what} '{name}' either contains restricted characters or is the same "
            f"as a restricted tag needed for normal operation"
        )
        raise ConfigurationError(msg)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class Registry:
    """Process-held tables consulted by the parser and the evaluator."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rules: dict[str, RegisteredRule] = {}
        self._aliases: dict[str, str] = {}
        self._converters: dict[type, Converter] = {}
        self._hooks: dict[type, ShapeHook] = {}

    # -- rules --------------------------------------------------------------

    def register_rule(
        self,
        name: str,
        predicate: Callable[..., bool],
        needs_context: bool = False,
        *,
        call_when_absent: bool = False,
        param: ParamPolicy = ParamPolicy.OPTIONAL,
    ) -> RegisteredRule:
        """Register (or replace) the predicate behind rule *name*."""
        check_name(name, "Rule")
        if not callable(predicate):
            msg = f"Rule '{name}': predicate must be callable"
            raise ConfigurationError(msg)
        rule = RegisteredRule(
            name=name,
            predicate=predicate,
            needs_context=needs_context,
            call_when_absent=call_when_absent,
            param=ParamPolicy(param),
        )
        with self._lock:
            if name in self._rules:
                logger.warning("Overriding registered rule '%s'", name)
            self._rules = {**self._rules, name: rule}
        logger.debug("Registered rule '%s' (needs_context=%s)", name, needs_context)
        return rule

    def rule(self, name: str) -> RegisteredRule | None:
        return self._rules.get(name)

    @property
    def rule_names(self) -> frozenset[str]:
        return frozenset(self._rules)

    # -- aliases ------------------------------------------------------------

    def register_alias(self, name: str, expansion: str) -> None:
        """Make *name* shorthand for the rule string *expansion*."""
        check_name(name, "Alias")
        if not expansion or not expansion.strip():
            msg = f"Alias '{name}': expansion cannot be empty"
            raise ConfigurationError(msg)
        with self._lock:
            if name in self._aliases:
                logger.warning("Overriding alias '%s'", name)
            self._aliases = {**self._aliases, name: expansion}
        logger.debug("Registered alias '%s' -> '%s'", name, expansion)

    def alias(self, name: str) -> str | None:
        return self._aliases.get(name)

    # -- type converters ----------------------------------------------------

    def register_type_converter(self, fn: Converter, *types: type) -> None:
        """Convert values of exactly *types* with *fn* before rules see them."""
        if not types:
            msg = "register_type_converter requires at least one type"
            raise ConfigurationError(msg)
        for tp in types:
            if not isinstance(tp, type):
                msg = f"Type converter target must be a type, got {tp!r}"
                raise ConfigurationError(msg)
        with self._lock:
            self._converters = {**self._converters, **dict.fromkeys(types, fn)}
        logger.debug("Registered type converter for %s", ", ".join(t.__name__ for t in types))

    def converter(self, tp: type) -> Converter | None:
        return self._converters.get(tp)

    @property
    def has_converters(self) -> bool:
        return bool(self._converters)

    # -- shape hooks --------------------------------------------------------

    def register_shape_hook(self, fn: ShapeHook, *shape_types: type) -> None:
        """Run *fn* after the per-field rules of every value of *shape_types*."""
        if not shape_types:
            msg = "register_shape_hook requires at least one shape type"
            raise ConfigurationError(msg)
        for tp in shape_types:
            if not is_shape_type(tp):
                msg = f"Shape hook target must be a dataclass type, got {tp!r}"
                raise ConfigurationError(msg)
        with self._lock:
            self._hooks = {**self._hooks, **dict.fromkeys(shape_types, fn)}
        logger.debug("Registered shape hook for %s", ", ".join(t.__name__ for t in shape_types))

    def hook(self, tp: type) -> ShapeHook | None:
        return self._hooks.get(tp)
