"""Per-validator metadata cache: shape descriptors and parsed rule strings.

Reads are plain dict lookups and never block.  A miss builds the entry
outside the lock and stores it under the lock; two threads racing on the
same shape both build it and the later write wins, which is harmless since
building is a pure function of the type.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import sys
import threading
import types
import typing
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Any

from fieldcheck.config import INLINE_KEY, ValidatorConfig
from fieldcheck.errors import ConfigurationError
from fieldcheck.grammar import RuleChain, RuleParser
from fieldcheck.kinds import is_shape_type
from fieldcheck.registry import SKIP

if TYPE_CHECKING:
    from fieldcheck.registry import Registry

logger = logging.getLogger(__name__)

TagNameFunc = Callable[[dataclasses.Field], "str | None"]


# ---------------------------------------------------------------------------
# Declaration helpers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rules:
    """``Annotated`` marker carrying a rule string.

    >>> @dataclass
    ... class User:
    ...     name: Annotated[str, Rules("required,min=2")]
    """

    text: str


def rule_field(
    rules: str = "",
    *,
    message: str | None = None,
    inline: bool = False,
    tag_name: str = "validate",
    message_key: str = "message",
    **kwargs: Any,
) -> Any:
    """``dataclasses.field`` with rule metadata filled in."""
    metadata: dict[str, Any] = dict(kwargs.pop("metadata", None) or {})
    if rules:
        metadata[tag_name] = rules
    if message is not None:
        metadata[message_key] = message
    if inline:
        metadata[INLINE_KEY] = True
    return field(metadata=metadata, **kwargs)


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldDescriptor:
    """How to reach and check one member of a shape.

    *access* is the attribute path from the owning shape; members pulled in
    from an ``inline`` field have more than one step.  With *by_key* the single
    step is a mapping key instead of an attribute name.
    """

    name: str
    display_name: str
    access: tuple[str, ...]
    chain: RuleChain | None
    ignored: bool = False
    by_key: bool = False
    message: str | None = None

    @property
    def omit_empty(self) -> bool:
        return self.chain is not None and self.chain.omit_empty

    def get(self, owner: Any) -> Any:
        """Read this member from *owner*; a ``None`` along the path reads as ``None``."""
        value = owner
        for step in self.access:
            if value is None:
                return None
            if self.by_key:
                value = value.get(step) if isinstance(value, Mapping) else None
            else:
                value = getattr(value, step, None)
        return value


@dataclass(frozen=True)
class ShapeDescriptor:
    """Ordered, flattened members of one shape type plus a native-name index."""

    shape_type: type
    name: str
    fields: tuple[FieldDescriptor, ...]
    by_name: Mapping[str, FieldDescriptor]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _strip_optional(hint: Any) -> Any:
    """``X | None`` / ``Optional[X]`` -> ``X``; anything else unchanged."""
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _split_annotated(hint: Any) -> tuple[Any, str | None]:
    """Return the bare type and the rule text of a ``Rules`` marker, if any."""
    hint = _strip_optional(hint)
    if typing.get_origin(hint) is not Annotated:
        return hint, None
    rules = [m.text for m in hint.__metadata__ if isinstance(m, Rules)]
    if len(rules) > 1:
        msg = f"Multiple Rules markers in {hint!r}"
        raise ConfigurationError(msg)
    return _strip_optional(typing.get_args(hint)[0]), (rules[0] if rules else None)


def _owner(tp: type, name: str) -> type:
    """The class in *tp*'s MRO that declares member *name*."""
    for klass in tp.__mro__:
        if name in inspect.get_annotations(klass):
            return klass
    return tp


def _resolve_hint(tp: type, f: dataclasses.Field) -> Any:
    """Evaluate the string annotation of *f* in its declaring class's namespace."""
    if not isinstance(f.type, str):
        return f.type
    owner = _owner(tp, f.name)
    module = sys.modules.get(owner.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    localns = dict(vars(owner))
    localns.setdefault(owner.__name__, owner)
    try:
        return eval(f.type, globalns, localns)  # noqa: S307
    except (NameError, AttributeError, TypeError, SyntaxError) as exc:
        if "Rules" in f.type:
            msg = (
                f"Cannot resolve annotation '{f.type}' of field '{tp.__name__}.{f.name}' "
                f"carrying a Rules marker: {exc}"
            )
            raise ConfigurationError(msg) from exc
        logger.debug("Unresolved annotation on %s.%s: %s", tp.__qualname__, f.name, exc)
        return f.type


def _type_hints(tp: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(tp, include_extras=True)
    except (NameError, AttributeError, TypeError):
        # One unresolvable hint spoils the batch; resolve member by member.
        return {f.name: _resolve_hint(tp, f) for f in dataclasses.fields(tp)}


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class MetadataCache:
    """Lazily built descriptors, owned by one :class:`~fieldcheck.validator.Validator`."""

    def __init__(
        self,
        registry: Registry,
        config: ValidatorConfig,
        tag_name_func: TagNameFunc | None = None,
    ) -> None:
        self._config = config
        self._parser = RuleParser(registry)
        self._lock = threading.Lock()
        self._shapes: dict[type, ShapeDescriptor] = {}
        self._chains: dict[str, RuleChain] = {}
        self.tag_name_func = tag_name_func

    # -- rule strings -------------------------------------------------------

    def chain(self, text: str, field_name: str = "") -> RuleChain:
        """Parsed chain for *text*, parsing on first use."""
        cached = self._chains.get(text)
        if cached is not None:
            return cached
        parsed = self._parser.parse(text, field_name)
        with self._lock:
            self._chains[text] = parsed
        return parsed

    # -- shapes -------------------------------------------------------------

    def shape(self, tp: type) -> ShapeDescriptor:
        """Descriptor for dataclass type *tp*, building it on first use."""
        cached = self._shapes.get(tp)
        if cached is not None:
            return cached
        fields = tuple(self._collect(tp, prefix=(), seen=(tp,)))
        descriptor = ShapeDescriptor(
            shape_type=tp,
            name=tp.__name__,
            fields=fields,
            by_name={fd.name: fd for fd in fields},
        )
        with self._lock:
            self._shapes[tp] = descriptor
        logger.debug("Built descriptor for %s (%d fields)", tp.__qualname__, len(fields))
        return descriptor

    def clear(self) -> None:
        """Forget every descriptor and chain (after a registration)."""
        with self._lock:
            self._shapes = {}
            self._chains = {}
        logger.debug("Metadata cache cleared")

    def _collect(
        self, tp: type, prefix: tuple[str, ...], seen: tuple[type, ...]
    ) -> list[FieldDescriptor]:
        hints = _type_hints(tp)
        out: list[FieldDescriptor] = []

        for f in dataclasses.fields(tp):
            if f.name.startswith("_") and not self._config.private_fields:
                continue

            bare, annotated_rules = _split_annotated(hints.get(f.name, f.type))
            meta_rules = f.metadata.get(self._config.tag_name)
            if meta_rules is not None and annotated_rules is not None:
                msg = f"Field '{tp.__name__}.{f.name}' declares rules twice"
                raise ConfigurationError(msg)
            text = meta_rules if meta_rules is not None else (annotated_rules or "")

            if f.metadata.get(INLINE_KEY):
                if not is_shape_type(bare):
                    msg = f"Inline field '{tp.__name__}.{f.name}' must be a dataclass, got {bare!r}"
                    raise ConfigurationError(msg)
                if bare in seen:
                    msg = f"Inline field '{f.name}' embeds {bare.__name__} recursively"
                    raise ConfigurationError(msg)
                out.extend(self._collect(bare, (*prefix, f.name), (*seen, bare)))
                continue

            display = self._display_name(f)
            if display is None or text == SKIP:
                out.append(
                    FieldDescriptor(
                        name=f.name,
                        display_name=display or f.name,
                        access=(*prefix, f.name),
                        chain=None,
                        ignored=True,
                    )
                )
                continue

            chain = self.chain(text, f.name) if text else None
            message = f.metadata.get(self._config.message_key) if self._config.message_key else None
            out.append(
                FieldDescriptor(
                    name=f.name,
                    display_name=display,
                    access=(*prefix, f.name),
                    chain=chain,
                    ignored=chain is not None and chain.skip,
                    message=message,
                )
            )
        return out

    def _display_name(self, f: dataclasses.Field) -> str | None:
        """Display name for *f*; ``None`` means the field is excluded."""
        name: str | None = None
        if self.tag_name_func is not None:
            name = self.tag_name_func(f)
        elif self._config.name_key:
            raw = f.metadata.get(self._config.name_key)
            # "name,omitempty" style serialization hints keep the first part.
            name = str(raw).split(",", 1)[0] if raw is not None else None
        if name == SKIP:
            return None
        if name and any(c in name for c in ".[]"):
            msg = f"Display name '{name}' of field '{f.name}' must not contain '.', '[' or ']'"
            raise ConfigurationError(msg)
        return name or f.name
