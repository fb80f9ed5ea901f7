"""Validator configuration: defaults, mapping/YAML loading and checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any

import yaml

from fieldcheck.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TAG_NAME = "validate"
DEFAULT_MESSAGE_KEY = "message"
INLINE_KEY = "inline"

_BOOL_OPTIONS: frozenset[str] = frozenset({"fail_fast", "required_shape_enabled", "private_fields"})
_STR_OPTIONS: frozenset[str] = frozenset({"tag_name"})
_OPTIONAL_STR_OPTIONS: frozenset[str] = frozenset({"name_key", "message_key"})


@dataclass(frozen=True)
class ValidatorConfig:
    """Options applied when a :class:`~fieldcheck.validator.Validator` is built.

    Attributes
    ----------
    tag_name:
        Field metadata key holding the rule string.
    name_key:
        Field metadata key holding the serialization name used for display
        namespaces (e.g. ``"json"``).  ``None`` keeps native names.
    message_key:
        Field metadata key holding a custom violation message.
    fail_fast:
        Stop the whole call at the first violation.
    required_shape_enabled:
        Make ``required`` on a nested shape fail when the shape is all-zero.
    private_fields:
        Also validate fields whose name starts with an underscore.
    aliases:
        Alias name -> rule string expansion, registered at start-up.
    """

    tag_name: str = DEFAULT_TAG_NAME
    name_key: str | None = None
    message_key: str | None = DEFAULT_MESSAGE_KEY
    fail_fast: bool = False
    required_shape_enabled: bool = False
    private_fields: bool = False
    aliases: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.tag_name or not self.tag_name.strip():
            msg = "config: 'tag_name' cannot be empty"
            raise ConfigurationError(msg)
        if self.tag_name == INLINE_KEY:
            msg = f"config: 'tag_name' cannot be '{INLINE_KEY}'"
            raise ConfigurationError(msg)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ValidatorConfig:
        """Build a config from plain data, rejecting unknown keys and bad types."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"config: unknown option(s) {unknown}, expected some of {sorted(known)}"
            raise ConfigurationError(msg)

        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in _BOOL_OPTIONS:
                if not isinstance(value, bool):
                    msg = f"config: '{key}' must be a boolean"
                    raise ConfigurationError(msg)
            elif key in _STR_OPTIONS:
                if not isinstance(value, str):
                    msg = f"config: '{key}' must be a string"
                    raise ConfigurationError(msg)
            elif key in _OPTIONAL_STR_OPTIONS:
                if value is not None and not isinstance(value, str):
                    msg = f"config: '{key}' must be a string or null"
                    raise ConfigurationError(msg)
            elif key == "aliases":
                value = _parse_aliases(value)
            kwargs[key] = value

        return cls(**kwargs)


def _parse_aliases(raw: object) -> dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        msg = "config: 'aliases' must be a mapping of alias name to rule string"
        raise ConfigurationError(msg)
    aliases: dict[str, str] = {}
    for name, expansion in raw.items():
        if not isinstance(expansion, str):
            msg = f"config: alias '{name}' must map to a rule string"
            raise ConfigurationError(msg)
        aliases[str(name)] = expansion
    return aliases


def load_config(path: Path) -> ValidatorConfig:
    """Read a YAML config file.

    An empty file yields the defaults.  Raises ``ConfigurationError`` when
    the document is not a mapping or contains unknown/mistyped options.
    """
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"{path.name} must be a YAML mapping"
        raise ConfigurationError(msg)

    logger.debug("Loaded validator config from %s", path)
    return ValidatorConfig.from_mapping(data)
