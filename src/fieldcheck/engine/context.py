"""Per-call validation state and the views handed to rules and shape hooks."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from fieldcheck.errors import Violation
from fieldcheck.kinds import Kind, has_value

if TYPE_CHECKING:
    from fieldcheck.engine.evaluator import Evaluator
    from fieldcheck.errors import ValidationErrors

logger = logging.getLogger(__name__)


class _Abort(Exception):
    """Unwinds a fail-fast run after its first violation."""


def _join(*parts: str) -> str:
    return ".".join(p for p in parts if p)


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Location:
    """Where the evaluator currently is.

    *namespace* uses display names, *struct_namespace* native names; both
    always have the same number of segments.  *path* is the native path
    relative to the top-level value, used by the partial/except filters.
    """

    namespace: str = ""
    struct_namespace: str = ""
    field: str = ""
    struct_field: str = ""
    path: str = ""

    @classmethod
    def root(cls, shape_name: str) -> Location:
        return cls(namespace=shape_name, struct_namespace=shape_name)

    def member(self, display: str, native: str) -> Location:
        return Location(
            namespace=_join(self.namespace, display),
            struct_namespace=_join(self.struct_namespace, native),
            field=display,
            struct_field=native,
            path=_join(self.path, native),
        )

    def element(self, token: str) -> Location:
        suffix = f"[{token}]"
        return Location(
            namespace=self.namespace + suffix,
            struct_namespace=self.struct_namespace + suffix,
            field=self.field + suffix,
            struct_field=self.struct_field + suffix,
            path=self.path + suffix,
        )


# ---------------------------------------------------------------------------
# Per-call context
# ---------------------------------------------------------------------------


@dataclass
class ValidationContext:
    """State of one top-level call; created and dropped per call."""

    top: Any
    fail_fast: bool = False
    skip: Callable[[str], bool] | None = None
    violations: list[Violation] = field(default_factory=list)

    def add(self, violation: Violation) -> None:
        self.violations.append(violation)
        if self.fail_fast:
            logger.debug("Fail-fast abort at %s", violation.namespace)
            raise _Abort

    def skipped(self, path: str) -> bool:
        return self.skip is not None and self.skip(path)


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


class FieldLevel:
    """What a context-aware rule sees: the field, its parent and the top value.

    ``param`` and ``tag`` are updated as the evaluator walks the chain, so a
    ``FieldLevel`` must not be kept beyond the predicate call.
    """

    __slots__ = (
        "_evaluator",
        "field_name",
        "kind",
        "param",
        "parent",
        "struct_field_name",
        "tag",
        "top",
        "value",
    )

    def __init__(
        self,
        evaluator: Evaluator,
        top: Any,
        parent: Any,
        value: Any,
        kind: Kind,
        field_name: str,
        struct_field_name: str,
    ) -> None:
        self._evaluator = evaluator
        self.top = top
        self.parent = parent
        self.value = value
        self.kind = kind
        self.field_name = field_name
        self.struct_field_name = struct_field_name
        self.param = ""
        self.tag = ""

    def extract(self, value: Any) -> tuple[Any, Kind]:
        """Apply registered type converters to *value* and classify it."""
        return self._evaluator.extract(value)

    def has_value(self) -> bool:
        return has_value(
            self.value,
            self.kind,
            self._evaluator.extract,
            require_shape=self._evaluator.require_shape,
        )

    def get_struct_field(self, path: str) -> tuple[Any, Kind, bool]:
        """Resolve *path* from the parent; ``""`` yields the parent itself."""
        return self._evaluator.resolve(self.parent, path)

    def get_cross_field(self, path: str) -> tuple[Any, Kind, bool]:
        """Resolve *path* from the top-level value."""
        return self._evaluator.resolve(self.top, path)


class ShapeLevel:
    """What a shape hook sees: the shape value and a way to report problems."""

    def __init__(
        self,
        evaluator: Evaluator,
        ctx: ValidationContext,
        current: Any,
        location: Location,
    ) -> None:
        self._evaluator = evaluator
        self._ctx = ctx
        self._location = location
        self.current = current
        self.top = ctx.top

    @property
    def validator(self) -> Any:
        """The :class:`~fieldcheck.validator.Validator` running this call."""
        return self._evaluator.validator

    def extract(self, value: Any) -> tuple[Any, Kind]:
        return self._evaluator.extract(value)

    def report_error(
        self,
        value: Any,
        field: str,
        struct_field: str = "",
        tag: str = "",
        param: str = "",
    ) -> None:
        """Record a violation on member *field* of the current shape."""
        value, kind = self._evaluator.extract(value)
        struct_field = struct_field or field
        loc = self._location.member(field, struct_field)
        self._ctx.add(
            Violation(
                namespace=loc.namespace,
                struct_namespace=loc.struct_namespace,
                shape=type(self.current).__name__,
                field=field,
                struct_field=struct_field,
                tag=tag,
                actual_tag=tag,
                param=param,
                kind=kind,
                type=type(value),
                value=value,
            )
        )

    def report_violations(
        self, namespace: str, struct_namespace: str, errors: ValidationErrors
    ) -> None:
        """Re-home violations from a nested ``validate`` call under this shape."""
        for v in errors:
            self._ctx.add(
                Violation(
                    namespace=_join(self._location.namespace, namespace, v.namespace),
                    struct_namespace=_join(
                        self._location.struct_namespace, struct_namespace, v.struct_namespace
                    ),
                    shape=v.shape,
                    field=v.field,
                    struct_field=v.struct_field,
                    tag=v.tag,
                    actual_tag=v.actual_tag,
                    param=v.param,
                    kind=v.kind,
                    type=v.type,
                    value=v.value,
                    message=v.message,
                )
            )
