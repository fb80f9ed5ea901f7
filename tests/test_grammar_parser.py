"""Tests for fieldcheck.grammar.parser: rule strings to rule chains."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from fieldcheck.errors import ConfigurationError
from fieldcheck.grammar import NodeType, RuleParser, split_unescaped, unescape

if TYPE_CHECKING:
    from fieldcheck.registry import Registry


@pytest.fixture()
def parser(registry: Registry) -> RuleParser:
    return RuleParser(registry)


# ---------------------------------------------------------------------------
# Lexing helpers
# ---------------------------------------------------------------------------


class TestSplitUnescaped:
    def test_plain_split(self) -> None:
        assert split_unescaped("a,b,c", ",") == ["a", "b", "c"]

    def test_escaped_separator_kept(self) -> None:
        assert split_unescaped("a\\,b,c", ",") == ["a\\,b", "c"]

    def test_empty_segments(self) -> None:
        assert split_unescaped("a,,b", ",") == ["a", "", "b"]

    def test_unescape(self) -> None:
        assert unescape("a\\,b\\|c\\\\") == "a,b|c\\"


# ---------------------------------------------------------------------------
# Chains
# ---------------------------------------------------------------------------


class TestParseChains:
    def test_empty_string(self, parser: RuleParser) -> None:
        chain = parser.parse("")
        assert chain.is_empty
        assert not chain.skip

    def test_simple_rules(self, parser: RuleParser) -> None:
        chain = parser.parse("required,min=3")
        assert [n.name for n in chain.nodes] == ["required", "min"]
        assert chain.nodes[1].param == "3"
        assert chain.nodes[0].rule is not None
        assert chain.dive is None

    def test_param_split_on_first_equals(self, parser: RuleParser) -> None:
        chain = parser.parse("contains=a=b")
        assert chain.nodes[0].param == "a=b"

    def test_skip_marker(self, parser: RuleParser) -> None:
        chain = parser.parse("required,-")
        assert chain.skip
        assert chain.nodes == ()

    def test_markers(self, parser: RuleParser) -> None:
        chain = parser.parse("omitempty,structonly,nostructlevel,omitnil")
        assert [n.type for n in chain.nodes] == [
            NodeType.OMIT_EMPTY,
            NodeType.STRUCT_ONLY,
            NodeType.NO_STRUCT_LEVEL,
            NodeType.OMIT_NIL,
        ]
        assert chain.omit_empty

    def test_dive_splits_element_chain(self, parser: RuleParser) -> None:
        chain = parser.parse("required,dive,min=1")
        assert [n.name for n in chain.nodes] == ["required"]
        assert chain.dive is not None
        assert [n.name for n in chain.dive.nodes] == ["min"]

    def test_nested_dive(self, parser: RuleParser) -> None:
        chain = parser.parse("dive,len=2,dive,required")
        assert chain.dive is not None
        assert chain.dive.dive is not None
        assert chain.dive.dive.nodes[0].name == "required"

    def test_dive_keys(self, parser: RuleParser) -> None:
        chain = parser.parse("dive,keys,alpha,min=2,endkeys,required")
        assert chain.dive_keys is not None
        assert [n.name for n in chain.dive_keys.nodes] == ["alpha", "min"]
        assert chain.dive is not None
        assert [n.name for n in chain.dive.nodes] == ["required"]

    def test_escaped_comma_in_param(self, parser: RuleParser) -> None:
        chain = parser.parse("contains=a\\,b")
        assert chain.nodes[0].param == "a,b"

    def test_hex_encoded_separators(self, parser: RuleParser) -> None:
        chain = parser.parse("containsany=0x2C0x7C")
        assert chain.nodes[0].param == ",|"

    def test_negation(self, parser: RuleParser) -> None:
        node = parser.parse("!eq=5").nodes[0]
        assert node.negated
        assert node.actual_tag == "!eq"
        assert node.tag == "!eq"

    def test_or_group(self, parser: RuleParser) -> None:
        node = parser.parse("hexcolor|rgb").nodes[0]
        assert node.type is NodeType.OR
        assert node.name == "hexcolor|rgb"
        assert [a.name for a in node.alternatives] == ["hexcolor", "rgb"]

    def test_runs_when_absent(self, parser: RuleParser) -> None:
        assert parser.parse("required").runs_when_absent
        assert not parser.parse("min=1").runs_when_absent


# ---------------------------------------------------------------------------
# Aliases
# ---------------------------------------------------------------------------


class TestAliases:
    def test_alias_expansion_keeps_name(self, registry: Registry, parser: RuleParser) -> None:
        registry.register_alias("iscolor", "hexcolor|rgb|rgba")
        node = parser.parse("required,iscolor").nodes[1]
        assert node.tag == "iscolor"
        assert node.actual_tag == "hexcolor|rgb|rgba"

    def test_nested_alias_keeps_outer_name(
        self, registry: Registry, parser: RuleParser
    ) -> None:
        registry.register_alias("short", "min=1,max=3")
        registry.register_alias("code", "required,short")
        chain = parser.parse("code")
        assert [n.name for n in chain.nodes] == ["required", "min", "max"]
        assert {n.tag for n in chain.nodes} == {"code"}

    def test_self_referencing_alias(self, registry: Registry, parser: RuleParser) -> None:
        registry.register_alias("loop", "required,loop")
        with pytest.raises(ConfigurationError, match="expands to itself"):
            parser.parse("loop", "Field")

    def test_alias_to_skip(self, registry: Registry, parser: RuleParser) -> None:
        registry.register_alias("ignored", "-")
        assert parser.parse("ignored").skip


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestParseErrors:
    def test_empty_segment(self, parser: RuleParser) -> None:
        with pytest.raises(ConfigurationError, match="Invalid validation tag on field 'Name'"):
            parser.parse("required,,len=2", "Name")

    def test_unknown_rule(self, parser: RuleParser) -> None:
        with pytest.raises(
            ConfigurationError, match="Undefined validation function 'bogus' on field 'Name'"
        ):
            parser.parse("bogus", "Name")

    def test_keys_without_dive(self, parser: RuleParser) -> None:
        with pytest.raises(ConfigurationError, match="immediately preceded by the 'dive'"):
            parser.parse("keys,alpha,endkeys", "M")

    def test_endkeys_without_keys(self, parser: RuleParser) -> None:
        with pytest.raises(ConfigurationError, match="without a corresponding 'keys'"):
            parser.parse("dive,endkeys", "M")

    def test_unterminated_keys(self, parser: RuleParser) -> None:
        with pytest.raises(ConfigurationError, match="without a closing 'endkeys'"):
            parser.parse("dive,keys,alpha", "M")

    def test_empty_keys_chain(self, parser: RuleParser) -> None:
        with pytest.raises(ConfigurationError, match="has no rules"):
            parser.parse("dive,keys,endkeys,required", "M")

    def test_dive_inside_keys(self, parser: RuleParser) -> None:
        with pytest.raises(ConfigurationError, match="inside a 'keys' chain"):
            parser.parse("dive,keys,dive,endkeys", "M")

    def test_param_on_paramless_rule(self, parser: RuleParser) -> None:
        with pytest.raises(ConfigurationError, match="does not take a parameter"):
            parser.parse("required=yes", "F")

    def test_missing_required_param(self, parser: RuleParser) -> None:
        with pytest.raises(ConfigurationError, match="requires a parameter"):
            parser.parse("min", "F")

    @pytest.mark.parametrize("text", ["omitempty=1", "!dive", "required|omitempty"])
    def test_reserved_word_misuse(self, parser: RuleParser, text: str) -> None:
        with pytest.raises(ConfigurationError, match="cannot be negated"):
            parser.parse(text, "F")
