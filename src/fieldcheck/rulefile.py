"""YAML rule files for :meth:`Validator.validate_map`.

Schema::

    version: 1
    aliases:                 # optional
      iscolor: hexcolor|rgb|rgba
    rules:
      name: required,min=2
      address:               # nested data gets nested rules
        city: required
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import yaml

from fieldcheck.errors import ConfigurationError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})


@dataclass(frozen=True)
class RuleFile:
    """Parsed rule file: a nested mapping of key -> rule string plus aliases."""

    rules: dict[str, Any]
    aliases: dict[str, str] = field(default_factory=dict)


def _check_rules(name: str, node: object, where: str) -> dict[str, Any]:
    if not isinstance(node, dict):
        msg = f"{name}: '{where}' must be a mapping"
        raise ConfigurationError(msg)
    checked: dict[str, Any] = {}
    for key, value in node.items():
        path = f"{where}.{key}"
        if isinstance(value, dict):
            checked[str(key)] = _check_rules(name, value, path)
        elif isinstance(value, str):
            checked[str(key)] = value
        elif value is None:
            checked[str(key)] = ""
        else:
            msg = f"{name}: '{path}' must be a rule string or a mapping"
            raise ConfigurationError(msg)
    return checked


def load_rule_file(path: Path) -> RuleFile:
    """Parse a rule file.

    Raises ``ConfigurationError`` on schema errors (missing or unsupported
    version, non-mapping ``rules``, non-string rules or aliases).  Rule
    strings themselves are parsed when first used.
    """
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    name = path.name
    if not isinstance(data, dict):
        msg = f"{name} must be a YAML mapping"
        raise ConfigurationError(msg)

    version = data.get("version")
    if version is None:
        msg = f"{name}: missing required 'version' field"
        raise ConfigurationError(msg)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"{name}: unsupported version {version}, expected one of {expected}"
        raise ConfigurationError(msg)

    unknown = sorted(set(data) - {"version", "rules", "aliases"})
    if unknown:
        msg = f"{name}: unknown top-level key(s) {unknown}"
        raise ConfigurationError(msg)

    rules = _check_rules(name, data.get("rules", {}), "rules")

    aliases_raw = data.get("aliases") or {}
    if not isinstance(aliases_raw, dict):
        msg = f"{name}: 'aliases' must be a mapping"
        raise ConfigurationError(msg)
    aliases: dict[str, str] = {}
    for alias, expansion in aliases_raw.items():
        if not isinstance(expansion, str) or not expansion.strip():
            msg = f"{name}: alias '{alias}' must map to a non-empty rule string"
            raise ConfigurationError(msg)
        aliases[str(alias)] = expansion

    logger.debug("Loaded rule file %s (%d top-level keys)", path, len(rules))
    return RuleFile(rules=rules, aliases=aliases)
