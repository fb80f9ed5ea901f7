"""Rule string parser: ``"required,min=3,dive,len=2"`` -> :class:`RuleChain`.

Grammar (per field)::

    rules    := segment ("," segment)*
    segment  := alt ("|" alt)*  |  marker
    alt      := ["!"] name ["=" param]
    marker   := "-" | "omitempty" | "omitnil" | "structonly" | "nostructlevel"
              | "dive" ["," "keys" "," rules "," "endkeys"]

A backslash escapes ``,`` ``|`` and ``\\`` anywhere.  Inside parameters
``0x2C`` and ``0x7C`` are accepted as spellings of ``,`` and ``|``.

Every problem found here raises :class:`~fieldcheck.errors.ConfigurationError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from fieldcheck.errors import ConfigurationError
from fieldcheck.registry import (
    DIVE,
    END_KEYS,
    KEYS,
    NO_STRUCT_LEVEL,
    OMIT_EMPTY,
    OMIT_NIL,
    RESERVED_WORDS,
    SKIP,
    STRUCT_ONLY,
    ParamPolicy,
    RegisteredRule,
)

if TYPE_CHECKING:
    from fieldcheck.registry import Registry

_ESCAPE = "\\"
_PARAM_ESCAPES: tuple[tuple[str, str], ...] = (("0x2C", ","), ("0x7C", "|"))

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


class NodeType(str, Enum):
    """What a :class:`RuleNode` does when the evaluator reaches it."""

    RULE = "rule"
    OR = "or"
    OMIT_EMPTY = "omitempty"
    OMIT_NIL = "omitnil"
    STRUCT_ONLY = "structonly"
    NO_STRUCT_LEVEL = "nostructlevel"


_MARKERS: dict[str, NodeType] = {
    OMIT_EMPTY: NodeType.OMIT_EMPTY,
    OMIT_NIL: NodeType.OMIT_NIL,
    STRUCT_ONLY: NodeType.STRUCT_ONLY,
    NO_STRUCT_LEVEL: NodeType.NO_STRUCT_LEVEL,
}


@dataclass(frozen=True)
class RuleNode:
    """One step of a rule chain.

    For ``NodeType.OR`` the node carries its *alternatives* and *name* holds
    the group text as written (``"hexcolor|rgb"``).  *alias* is the alias
    name the node was expanded from, if any.
    """

    type: NodeType
    name: str
    param: str = ""
    negated: bool = False
    alias: str | None = None
    rule: RegisteredRule | None = None
    alternatives: tuple[RuleNode, ...] = ()

    @property
    def actual_tag(self) -> str:
        """Rule as executed: ``"!eq"`` for negations, the group text for ORs."""
        if self.negated:
            return f"!{self.name}"
        return self.name

    @property
    def tag(self) -> str:
        """Rule as written in the field's rule string (alias name if aliased)."""
        return self.alias if self.alias is not None else self.actual_tag

    @property
    def runs_when_absent(self) -> bool:
        if self.type is NodeType.OR:
            return any(alt.runs_when_absent for alt in self.alternatives)
        return self.rule is not None and self.rule.call_when_absent


@dataclass(frozen=True)
class RuleChain:
    """Parsed rules of one field.

    *nodes* apply to the field itself.  After a ``dive`` marker the
    remaining rules form *dive*, applied to every element (or mapping
    value); *dive_keys* holds the ``keys ... endkeys`` chain for mapping
    keys.  *skip* is set when the field was tagged ``-``.
    """

    raw: str
    nodes: tuple[RuleNode, ...] = ()
    dive: RuleChain | None = None
    dive_keys: RuleChain | None = None
    skip: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.nodes and self.dive is None and not self.skip

    @property
    def omit_empty(self) -> bool:
        return any(n.type is NodeType.OMIT_EMPTY for n in self.nodes)

    @property
    def runs_when_absent(self) -> bool:
        return any(n.runs_when_absent for n in self.nodes)


@dataclass(frozen=True)
class _Token:
    text: str
    alias: str | None


# ---------------------------------------------------------------------------
# Lexing helpers
# ---------------------------------------------------------------------------


def split_unescaped(text: str, sep: str) -> list[str]:
    """Split *text* on *sep* except where it is escaped with a backslash.

    Escapes are kept in the pieces; :func:`unescape` removes them later.
    """
    pieces: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == _ESCAPE and i + 1 < len(text):
            current.append(text[i : i + 2])
            i += 2
            continue
        if ch == sep:
            pieces.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    pieces.append("".join(current))
    return pieces


def unescape(text: str) -> str:
    """Drop backslash escapes: ``\\,`` -> ``,``."""
    if _ESCAPE not in text:
        return text
    out: list[str] = []
    i = 0
    while i < len(text):
        if text[i] == _ESCAPE and i + 1 < len(text):
            out.append(text[i + 1])
            i += 2
        else:
            out.append(text[i])
            i += 1
    return "".join(out)


def _decode_param(raw: str) -> str:
    param = unescape(raw)
    for encoded, plain in _PARAM_ESCAPES:
        param = param.replace(encoded, plain)
    return param


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class RuleParser:
    """Turns rule strings into chains, resolving names against a registry."""

    def __init__(self, registry: Registry) -> None:
        self._registry = registry

    def parse(self, text: str, field_name: str = "") -> RuleChain:
        """Parse one field's rule string.

        Raises ``ConfigurationError`` for empty segments, unknown rules,
        parameter misuse and malformed ``dive``/``keys`` structure.
        """
        if not text:
            return RuleChain(raw=text)

        segments = split_unescaped(text, ",")
        if SKIP in segments:
            return RuleChain(raw=text, skip=True)

        tokens = self._expand(segments, field_name, alias=None, seen=frozenset())
        if any(tok.text == SKIP for tok in tokens):
            return RuleChain(raw=text, skip=True)

        chain, _pos = self._build(text, tokens, 0, field_name, in_keys=False)
        return chain

    # -- alias expansion ----------------------------------------------------

    def _expand(
        self,
        segments: list[str],
        field_name: str,
        *,
        alias: str | None,
        seen: frozenset[str],
    ) -> list[_Token]:
        tokens: list[_Token] = []
        for seg in segments:
            expansion = self._registry.alias(seg)
            if expansion is None:
                tokens.append(_Token(seg, alias))
                continue
            if seg in seen:
                msg = f"Alias '{seg}' on field '{field_name}' expands to itself"
                raise ConfigurationError(msg)
            tokens.extend(
                self._expand(
                    split_unescaped(expansion, ","),
                    field_name,
                    alias=alias if alias is not None else seg,
                    seen=seen | {seg},
                )
            )
        return tokens

    # -- chain structure ----------------------------------------------------

    def _build(
        self,
        raw: str,
        tokens: list[_Token],
        pos: int,
        field_name: str,
        *,
        in_keys: bool,
    ) -> tuple[RuleChain, int]:
        """Build a chain from *tokens[pos:]*.

        Returns the chain and the position after the last consumed token.
        In key mode the chain ends at ``endkeys``.
        """
        nodes: list[RuleNode] = []

        while pos < len(tokens):
            tok = tokens[pos]

            if tok.text == DIVE:
                if in_keys:
                    msg = f"'dive' cannot be used inside a 'keys' chain on field '{field_name}'"
                    raise ConfigurationError(msg)
                pos += 1
                keys_chain: RuleChain | None = None
                if pos < len(tokens) and tokens[pos].text == KEYS:
                    keys_chain, pos = self._build(raw, tokens, pos + 1, field_name, in_keys=True)
                    if not keys_chain.nodes:
                        msg = f"'keys' chain on field '{field_name}' has no rules"
                        raise ConfigurationError(msg)
                element, pos = self._build(raw, tokens, pos, field_name, in_keys=False)
                chain = RuleChain(raw=raw, nodes=tuple(nodes), dive=element, dive_keys=keys_chain)
                return chain, pos

            if tok.text == KEYS:
                msg = (
                    f"'keys' tag must be immediately preceded by the 'dive' tag "
                    f"on field '{field_name}'"
                )
                raise ConfigurationError(msg)

            if tok.text == END_KEYS:
                if not in_keys:
                    msg = (
                        f"'endkeys' tag encountered without a corresponding 'keys' tag "
                        f"on field '{field_name}'"
                    )
                    raise ConfigurationError(msg)
                return RuleChain(raw=raw, nodes=tuple(nodes)), pos + 1

            marker = _MARKERS.get(tok.text)
            if marker is not None:
                nodes.append(RuleNode(type=marker, name=tok.text, alias=tok.alias))
            else:
                nodes.append(self._parse_segment(tok, field_name))
            pos += 1

        if in_keys:
            msg = f"'keys' tag without a closing 'endkeys' on field '{field_name}'"
            raise ConfigurationError(msg)
        return RuleChain(raw=raw, nodes=tuple(nodes)), pos

    def _parse_segment(self, tok: _Token, field_name: str) -> RuleNode:
        if not tok.text:
            msg = f"Invalid validation tag on field '{field_name}'"
            raise ConfigurationError(msg)

        alternatives = split_unescaped(tok.text, "|")
        if len(alternatives) == 1:
            return self._parse_rule(alternatives[0], tok.alias, field_name)

        parsed = tuple(self._parse_rule(alt, None, field_name) for alt in alternatives)
        return RuleNode(
            type=NodeType.OR,
            name=unescape(tok.text),
            param=parsed[-1].param,
            alias=tok.alias,
            alternatives=parsed,
        )

    def _parse_rule(self, text: str, alias: str | None, field_name: str) -> RuleNode:
        negated = text.startswith("!")
        body = text[1:] if negated else text
        name, sep, raw_param = body.partition("=")

        if not name:
            msg = f"Invalid validation tag on field '{field_name}'"
            raise ConfigurationError(msg)

        if name in RESERVED_WORDS:
            msg = (
                f"'{name}' on field '{field_name}' cannot be negated, "
                f"given a parameter or used in an alternation"
            )
            raise ConfigurationError(msg)

        rule = self._registry.rule(name)
        if rule is None:
            msg = f"Undefined validation function '{name}' on field '{field_name}'"
            raise ConfigurationError(msg)

        param = _decode_param(raw_param)
        if rule.param is ParamPolicy.NONE and sep:
            msg = f"Rule '{name}' on field '{field_name}' does not take a parameter"
            raise ConfigurationError(msg)
        if rule.param is ParamPolicy.REQUIRED and not param:
            msg = f"Rule '{name}' on field '{field_name}' requires a parameter"
            raise ConfigurationError(msg)

        return RuleNode(
            type=NodeType.RULE,
            name=name,
            param=param,
            negated=negated,
            alias=alias,
            rule=rule,
        )
