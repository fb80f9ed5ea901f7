"""Rule grammar: rule strings to immutable rule chains."""

from fieldcheck.grammar.parser import (
    NodeType,
    RuleChain,
    RuleNode,
    RuleParser,
    split_unescaped,
    unescape,
)

__all__ = [
    "NodeType",
    "RuleChain",
    "RuleNode",
    "RuleParser",
    "split_unescaped",
    "unescape",
]
