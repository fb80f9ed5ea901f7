"""Recursive evaluator: runs rule chains over a value tree, collecting violations.

Per field:

1. Converters are applied and the value is classified into a :class:`Kind`.
2. An absent value only runs the rules that ask to run on absence (the
   ``required`` family); at most one violation is reported and nothing is
   dived into or recursed into.
3. A present value runs its chain in order and stops at the first failing
   rule.  ``omitempty`` on a zero value ends the chain early.
4. ``dive`` applies the element chain to each element or mapping value (and
   the key chain to each key); a nested shape without ``dive`` is recursed.

After the members of a shape, the shape hook registered for its exact type
runs.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from fieldcheck.engine.context import (
    FieldLevel,
    Location,
    ShapeLevel,
    ValidationContext,
    _Abort,
)
from fieldcheck.engine.resolver import resolve
from fieldcheck.errors import ConfigurationError, ValidationErrors, Violation
from fieldcheck.grammar import NodeType, RuleChain, RuleNode
from fieldcheck.kinds import Kind, is_zero, kind_of

if TYPE_CHECKING:
    from fieldcheck.cache import MetadataCache
    from fieldcheck.registry import Registry

_MAX_CONVERSIONS = 16


class Evaluator:
    """Stateless across calls; all per-call state lives in :class:`ValidationContext`."""

    def __init__(
        self,
        registry: Registry,
        cache: MetadataCache,
        *,
        require_shape: bool = False,
        validator: Any = None,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self.require_shape = require_shape
        self.validator = validator

    # -- helpers used by views ----------------------------------------------

    def extract(self, value: Any) -> tuple[Any, Kind]:
        """Run type converters until the type stops changing, then classify."""
        if self.registry.has_converters:
            for _ in range(_MAX_CONVERSIONS):
                convert = self.registry.converter(type(value))
                if convert is None:
                    break
                converted = convert(value)
                if type(converted) is type(value):
                    value = converted
                    break
                value = converted
        return value, kind_of(value)

    def resolve(self, start: Any, path: str) -> tuple[Any, Kind, bool]:
        return resolve(start, path, self.cache, self.extract)

    # -- entry points -------------------------------------------------------

    def run_shape(self, ctx: ValidationContext, value: Any) -> ValidationErrors | None:
        """Validate a top-level shape value."""
        loc = Location.root(type(value).__name__)
        return self._finish(ctx, lambda: self._shape(ctx, value, loc))

    def run_mapping(
        self, ctx: ValidationContext, data: Mapping[Any, Any], rules: Mapping[Any, Any]
    ) -> ValidationErrors | None:
        """Validate loosely-typed *data* against a parallel mapping of rule strings."""
        return self._finish(ctx, lambda: self._mapping(ctx, data, rules, Location()))

    def run_value(
        self, ctx: ValidationContext, value: Any, parent: Any, chain: RuleChain
    ) -> ValidationErrors | None:
        """Validate a single value against *chain* with an empty namespace."""
        return self._finish(ctx, lambda: self._field(ctx, parent, value, chain, Location(), ""))

    def _finish(
        self, ctx: ValidationContext, walk: Callable[[], None]
    ) -> ValidationErrors | None:
        try:
            walk()
        except _Abort:
            pass
        if not ctx.violations:
            return None
        return ValidationErrors(ctx.violations)

    # -- traversal ----------------------------------------------------------

    def _shape(
        self, ctx: ValidationContext, value: Any, loc: Location, *, hook_only: bool = False
    ) -> None:
        descriptor = self.cache.shape(type(value))
        if not hook_only:
            for fd in descriptor.fields:
                if fd.ignored:
                    continue
                child = loc.member(fd.display_name, fd.name)
                if ctx.skipped(child.path):
                    continue
                self._field(
                    ctx, value, fd.get(value), fd.chain, child, descriptor.name, fd.message
                )

        hook = self.registry.hook(type(value))
        if hook is not None:
            hook(ShapeLevel(self, ctx, value, loc))

    def _mapping(
        self,
        ctx: ValidationContext,
        data: Mapping[Any, Any],
        rules: Mapping[Any, Any],
        loc: Location,
    ) -> None:
        for key, rule in rules.items():
            child = loc.member(str(key), str(key))
            if ctx.skipped(child.path):
                continue
            raw = data.get(key) if isinstance(data, Mapping) else None
            if isinstance(rule, Mapping):
                nested, kind = self.extract(raw)
                # Non-mapping data checks the nested rules against absence.
                self._mapping(ctx, nested if kind is Kind.MAPPING else {}, rule, child)
            elif isinstance(rule, str):
                self._field(ctx, data, raw, self.cache.chain(rule, str(key)), child, "")
            else:
                msg = f"Rule for key '{key}' must be a string or mapping, not {type(rule).__name__}"
                raise ConfigurationError(msg)

    def _field(
        self,
        ctx: ValidationContext,
        parent: Any,
        raw: Any,
        chain: RuleChain | None,
        loc: Location,
        shape_name: str,
        message: str | None = None,
    ) -> None:
        value, kind = self.extract(raw)

        if chain is None or chain.is_empty:
            if kind is Kind.SHAPE:
                self._shape(ctx, value, loc)
            return
        if chain.skip:
            return

        fl = FieldLevel(self, ctx.top, parent, value, kind, loc.field, loc.struct_field)

        if kind is Kind.INVALID:
            self._absent(ctx, fl, chain, loc, shape_name, message)
            return

        struct_only = False
        no_struct_level = False
        for node in chain.nodes:
            if node.type is NodeType.OMIT_EMPTY:
                if is_zero(value, kind, self.extract):
                    return
                continue
            if node.type is NodeType.OMIT_NIL:
                continue
            if node.type is NodeType.STRUCT_ONLY:
                struct_only = True
                continue
            if node.type is NodeType.NO_STRUCT_LEVEL:
                no_struct_level = True
                continue
            if not self._check(node, fl, absent=False):
                self._report(ctx, node, fl, loc, shape_name, message)
                return

        if chain.dive is not None:
            self._dive(ctx, parent, value, kind, chain, loc, shape_name, message)
        elif kind is Kind.SHAPE and not no_struct_level:
            self._shape(ctx, value, loc, hook_only=struct_only)

    def _absent(
        self,
        ctx: ValidationContext,
        fl: FieldLevel,
        chain: RuleChain,
        loc: Location,
        shape_name: str,
        message: str | None,
    ) -> None:
        for node in chain.nodes:
            if node.type in (NodeType.OMIT_EMPTY, NodeType.OMIT_NIL):
                return
            if not node.runs_when_absent:
                continue
            if not self._check(node, fl, absent=True):
                self._report(ctx, node, fl, loc, shape_name, message)
                return

    def _dive(
        self,
        ctx: ValidationContext,
        parent: Any,
        value: Any,
        kind: Kind,
        chain: RuleChain,
        loc: Location,
        shape_name: str,
        message: str | None,
    ) -> None:
        if kind is Kind.SEQUENCE:
            for index, item in enumerate(value):
                child = loc.element(str(index))
                if ctx.skipped(child.path):
                    continue
                self._field(ctx, parent, item, chain.dive, child, shape_name, message)
        elif kind is Kind.MAPPING:
            for key, item in value.items():
                child = loc.element(str(key))
                if ctx.skipped(child.path):
                    continue
                if chain.dive_keys is not None:
                    self._field(ctx, parent, key, chain.dive_keys, child, shape_name, message)
                self._field(ctx, parent, item, chain.dive, child, shape_name, message)
        else:
            msg = (
                f"'dive' on field '{loc.struct_namespace}' needs a sequence or mapping, "
                f"got {kind.value}"
            )
            raise ConfigurationError(msg)

    # -- rules --------------------------------------------------------------

    def _check(self, node: RuleNode, fl: FieldLevel, *, absent: bool) -> bool:
        if node.type is NodeType.OR:
            return any(self._check(alt, fl, absent=absent) for alt in node.alternatives)

        rule = node.rule
        if rule is None:
            return True
        if absent and not rule.call_when_absent:
            # Plain predicates cannot accept absence.
            return False

        fl.param = node.param
        fl.tag = node.name
        if rule.needs_context:
            ok = bool(rule.predicate(fl))
        else:
            ok = bool(rule.predicate(fl.value, node.param))
        return ok is not node.negated

    def _report(
        self,
        ctx: ValidationContext,
        node: RuleNode,
        fl: FieldLevel,
        loc: Location,
        shape_name: str,
        message: str | None,
    ) -> None:
        ctx.add(
            Violation(
                namespace=loc.namespace,
                struct_namespace=loc.struct_namespace,
                shape=shape_name,
                field=loc.field,
                struct_field=loc.struct_field,
                tag=node.tag,
                actual_tag=node.actual_tag,
                param=node.param,
                kind=fl.kind,
                type=type(fl.value),
                value=fl.value,
                message=message,
            )
        )
