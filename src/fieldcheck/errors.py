"""Violation model and exception taxonomy.

Configuration problems (bad rule strings, unknown rules, bad registrations) are
raised as exceptions.  Data that fails its rules is never raised: it is returned
as a :class:`ValidationErrors` sequence of :class:`Violation` records.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, overload

if TYPE_CHECKING:
    from fieldcheck.kinds import Kind

_FIELD_ERR_MSG = "Key: '{ns}' Error:Field validation for '{field}' failed on the '{tag}' tag"

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FieldcheckError(Exception):
    """Base class for every exception raised by fieldcheck."""


class ConfigurationError(FieldcheckError, ValueError):
    """Raised when rules, registrations or config do not make sense.

    These are programmer mistakes: a malformed rule string, an unknown rule
    name, a comparison naming a field the shape does not have, a rule applied
    to a kind it cannot handle.  They are never reported as violations.
    """


class InvalidValidationError(FieldcheckError, TypeError):
    """Raised when the value handed to ``validate`` is not a shape."""

    def __init__(self, value_type: type | None) -> None:
        self.value_type = value_type
        if value_type is None:
            msg = "fieldcheck: (None)"
        else:
            msg = f"fieldcheck: (non-shape {value_type.__qualname__})"
        super().__init__(msg)


class ValidationFailed(FieldcheckError):
    """Raised by :meth:`Validator.assert_valid` when violations were found."""

    def __init__(self, errors: ValidationErrors) -> None:
        self.errors = errors
        super().__init__(errors.summary())


# ---------------------------------------------------------------------------
# Violations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """A single field that failed a single rule.

    Attributes
    ----------
    namespace:
        Display namespace, using serialization names where configured,
        e.g. ``"User.fname"`` or ``"Order.items[2].sku"``.
    struct_namespace:
        Same path using native member names, e.g. ``"User.FirstName"``.
    shape:
        Name of the shape type owning the field (``""`` for bare values).
    field:
        Display name of the field, including any index suffix (``"items[2]"``).
    struct_field:
        Native name of the field.
    tag:
        Rule as written in the rule string; the alias name when the rule came
        from an alias, the whole group text for a failed alternation.
    actual_tag:
        The rule that actually failed, with aliases expanded.
    param:
        Raw parameter of the failed rule (``""`` when none).
    kind:
        Kind of the offending value after type conversion.
    type:
        Runtime type of the offending value after type conversion.
    value:
        The offending value after type conversion.
    message:
        Custom message declared on the field, if any.
    """

    namespace: str
    struct_namespace: str
    shape: str
    field: str
    struct_field: str
    tag: str
    actual_tag: str
    param: str
    kind: Kind
    type: type
    value: Any
    message: str | None = None

    def __str__(self) -> str:
        return _FIELD_ERR_MSG.format(ns=self.namespace, field=self.field, tag=self.tag)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view for serialisation and translators."""
        return {
            "namespace": self.namespace,
            "struct_namespace": self.struct_namespace,
            "shape": self.shape,
            "field": self.field,
            "struct_field": self.struct_field,
            "tag": self.tag,
            "actual_tag": self.actual_tag,
            "param": self.param,
            "kind": self.kind.value,
            "type": self.type.__name__,
            "value": self.value,
            "message": self.message,
        }


class ValidationErrors(Sequence[Violation]):
    """Non-empty, ordered, read-only collection of violations.

    Validation returns ``None`` when nothing failed, so an instance of this
    class always holds at least one violation.
    """

    __slots__ = ("_items",)

    def __init__(self, violations: Sequence[Violation]) -> None:
        if not violations:
            msg = "ValidationErrors requires at least one violation"
            raise ValueError(msg)
        self._items: tuple[Violation, ...] = tuple(violations)

    @overload
    def __getitem__(self, index: int) -> Violation: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[Violation]: ...

    def __getitem__(self, index: int | slice) -> Violation | Sequence[Violation]:
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Violation]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ValidationErrors):
            return self._items == other._items
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ValidationErrors({list(self._items)!r})"

    def __str__(self) -> str:
        return "\n".join(str(v) for v in self._items)

    def to_list(self) -> list[dict[str, Any]]:
        """Return every violation as a plain dict, in order."""
        return [v.to_dict() for v in self._items]

    def by_namespace(self) -> dict[str, Violation]:
        """Index violations by display namespace (first one wins)."""
        result: dict[str, Violation] = {}
        for v in self._items:
            result.setdefault(v.namespace, v)
        return result

    def translate(self, translator: Callable[[Violation], str]) -> dict[str, str]:
        """Render each violation with *translator*, keyed by display namespace."""
        return {v.namespace: translator(v) for v in self._items}

    def summary(self) -> str:
        """Human-readable summary preferring custom messages where declared."""
        lines: list[str] = []
        for v in self._items:
            if v.message:
                lines.append(f"{v.field}: {v.message} ({v.actual_tag})")
            else:
                lines.append(str(v))
        return "\n".join(lines)
