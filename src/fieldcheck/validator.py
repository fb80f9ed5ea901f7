"""Public facade: one :class:`Validator` owns a registry, a cache and an evaluator.

A validator is safe to share between threads once registration is done.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from fieldcheck.cache import MetadataCache, TagNameFunc
from fieldcheck.config import ValidatorConfig, load_config
from fieldcheck.engine import Evaluator, ValidationContext
from fieldcheck.errors import InvalidValidationError, ValidationErrors, ValidationFailed
from fieldcheck.kinds import is_shape
from fieldcheck.registry import Converter, ParamPolicy, Registry, ShapeHook
from fieldcheck.rulefile import load_rule_file
from fieldcheck.rules import register_builtins

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def _under(path: str, prefix: str) -> bool:
    """True when *path* is *prefix* or lies below it."""
    if not path.startswith(prefix):
        return False
    rest = path[len(prefix) :]
    return rest == "" or rest[0] in ".["


def _only(names: Iterable[str]) -> Callable[[str], bool]:
    wanted = tuple(names)

    def skip(path: str) -> bool:
        return not any(_under(path, n) or _under(n, path) for n in wanted)

    return skip


def _without(names: Iterable[str]) -> Callable[[str], bool]:
    unwanted = tuple(names)

    def skip(path: str) -> bool:
        return any(_under(path, n) for n in unwanted)

    return skip


class Validator:
    """Validates dataclass instances and plain mappings against rule strings.

    >>> @dataclass
    ... class User:
    ...     name: str = field(metadata={"validate": "required,min=2"})
    >>> Validator().validate(User(name="a"))[0].tag
    'min'
    """

    def __init__(self, config: ValidatorConfig | None = None) -> None:
        self.config = config if config is not None else ValidatorConfig()
        self._registry = Registry()
        register_builtins(self._registry)
        self._cache = MetadataCache(self._registry, self.config)
        self._evaluator = Evaluator(
            self._registry,
            self._cache,
            require_shape=self.config.required_shape_enabled,
            validator=self,
        )
        for name, expansion in self.config.aliases.items():
            self.register_alias(name, expansion)

    @classmethod
    def from_config_file(cls, path: Path) -> Validator:
        """Build a validator from a YAML config file."""
        return cls(load_config(path))

    @property
    def registry(self) -> Registry:
        return self._registry

    # -- registration -------------------------------------------------------

    def register_rule(
        self,
        name: str,
        predicate: Callable[..., bool],
        needs_context: bool = False,
        *,
        call_when_absent: bool = False,
        param: ParamPolicy = ParamPolicy.OPTIONAL,
    ) -> None:
        """Add or replace rule *name*.

        Plain predicates are called as ``predicate(value, param)``; with
        *needs_context* they get a :class:`~fieldcheck.engine.FieldLevel`.
        """
        self._registry.register_rule(
            name,
            predicate,
            needs_context,
            call_when_absent=call_when_absent,
            param=param,
        )
        self._cache.clear()

    def register_alias(self, name: str, expansion: str) -> None:
        """Make *name* expand to *expansion*, which must itself parse."""
        self._cache.chain(expansion, name)
        self._registry.register_alias(name, expansion)
        self._cache.clear()

    def register_type_converter(self, fn: Converter, *types: type) -> None:
        self._registry.register_type_converter(fn, *types)
        self._cache.clear()

    def register_shape_hook(self, fn: ShapeHook, *shape_types: type) -> None:
        self._registry.register_shape_hook(fn, *shape_types)
        self._cache.clear()

    def register_tag_name_func(self, fn: TagNameFunc) -> None:
        """Derive display names from fields; returning ``"-"`` excludes a field."""
        self._cache.tag_name_func = fn
        self._cache.clear()

    def load_rule_file(self, path: Path) -> dict[str, Any]:
        """Register a rule file's aliases and return its rules for :meth:`validate_map`."""
        rule_file = load_rule_file(path)
        for name, expansion in rule_file.aliases.items():
            self.register_alias(name, expansion)
        return rule_file.rules

    # -- validation ---------------------------------------------------------

    def _context(self, top: Any, skip: Callable[[str], bool] | None = None) -> ValidationContext:
        return ValidationContext(top=top, fail_fast=self.config.fail_fast, skip=skip)

    def _shape_run(
        self, value: Any, skip: Callable[[str], bool] | None
    ) -> ValidationErrors | None:
        if value is None:
            raise InvalidValidationError(None)
        if not is_shape(value):
            raise InvalidValidationError(type(value))
        return self._evaluator.run_shape(self._context(value, skip), value)

    def validate(self, value: Any) -> ValidationErrors | None:
        """Validate every field of dataclass instance *value*.

        Returns ``None`` when valid, otherwise a non-empty ``ValidationErrors``.
        Raises ``InvalidValidationError`` for ``None`` or a non-dataclass and
        ``ConfigurationError`` for broken rules.
        """
        return self._shape_run(value, None)

    def validate_partial(self, value: Any, *fields: str) -> ValidationErrors | None:
        """Validate only *fields* (native paths such as ``"Inner.name"``).

        Ancestors of a listed path are entered and descendants are included.
        """
        return self._shape_run(value, _only(fields))

    def validate_except(self, value: Any, *fields: str) -> ValidationErrors | None:
        """Validate everything but *fields* and what lies below them."""
        return self._shape_run(value, _without(fields))

    def validate_filtered(
        self, value: Any, skip: Callable[[str], bool]
    ) -> ValidationErrors | None:
        """Validate, skipping every native path for which *skip* returns True."""
        return self._shape_run(value, skip)

    def validate_map(
        self, data: Mapping[Any, Any], rules: Mapping[Any, Any]
    ) -> ValidationErrors | None:
        """Validate a plain mapping against a parallel mapping of rule strings."""
        if not isinstance(data, Mapping):
            raise InvalidValidationError(type(data))
        return self._evaluator.run_mapping(self._context(data), data, rules)

    def validate_value(self, value: Any, rules: str) -> ValidationErrors | None:
        """Validate a single value; violations have an empty namespace."""
        chain = self._cache.chain(rules)
        return self._evaluator.run_value(self._context(value), value, value, chain)

    def validate_value_with(self, value: Any, other: Any, rules: str) -> ValidationErrors | None:
        """Validate *value*; cross-field rules with a blank parameter compare against *other*."""
        chain = self._cache.chain(rules)
        return self._evaluator.run_value(self._context(other), value, other, chain)

    def assert_valid(self, value: Any) -> None:
        """Like :meth:`validate` but raises ``ValidationFailed`` on violations."""
        errors = self.validate(value)
        if errors is not None:
            logger.debug(
                "Validation of %s failed with %d violation(s)", type(value).__name__, len(errors)
            )
            raise ValidationFailed(errors)
