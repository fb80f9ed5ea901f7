"""Tests for fieldcheck.config: defaults, mapping and YAML loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pytest

from fieldcheck import ConfigurationError, Validator, ValidatorConfig, load_config

if TYPE_CHECKING:
    from pathlib import Path


@dataclass
class Profile:
    handle: str = field(default="", metadata={"check": "required", "api": "user_handle"})


class TestValidatorConfig:
    def test_defaults(self) -> None:
        config = ValidatorConfig()
        assert config.tag_name == "validate"
        assert config.name_key is None
        assert config.message_key == "message"
        assert not config.fail_fast
        assert config.aliases == {}

    @pytest.mark.parametrize("tag_name", ["", "  ", "inline"])
    def test_bad_tag_name(self, tag_name: str) -> None:
        with pytest.raises(ConfigurationError, match="tag_name"):
            ValidatorConfig(tag_name=tag_name)

    def test_from_mapping(self) -> None:
        config = ValidatorConfig.from_mapping(
            {"tag_name": "check", "fail_fast": True, "aliases": {"iscolor": "hexcolor"}}
        )
        assert config.tag_name == "check"
        assert config.fail_fast
        assert config.aliases == {"iscolor": "hexcolor"}

    @pytest.mark.parametrize(
        ("data", "message"),
        [
            ({"colour": True}, "unknown option"),
            ({"fail_fast": "yes"}, "'fail_fast' must be a boolean"),
            ({"tag_name": 3}, "'tag_name' must be a string"),
            ({"name_key": 3}, "'name_key' must be a string or null"),
            ({"aliases": ["x"]}, "'aliases' must be a mapping"),
            ({"aliases": {"x": 1}}, "alias 'x' must map to a rule string"),
        ],
    )
    def test_from_mapping_errors(self, data: dict[str, Any], message: str) -> None:
        with pytest.raises(ConfigurationError, match=message):
            ValidatorConfig.from_mapping(data)


class TestLoadConfig:
    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "fieldcheck.yml"
        path.write_text(
            "tag_name: check\nname_key: api\nprivate_fields: true\n", encoding="utf-8"
        )
        config = load_config(path)
        assert config == ValidatorConfig(tag_name="check", name_key="api", private_fields=True)

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "fieldcheck.yml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == ValidatorConfig()

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "fieldcheck.yml"
        path.write_text("- 1\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must be a YAML mapping"):
            load_config(path)

    def test_validator_from_config_file(self, tmp_path: Path) -> None:
        path = tmp_path / "fieldcheck.yml"
        path.write_text("tag_name: check\nname_key: api\n", encoding="utf-8")
        validator = Validator.from_config_file(path)
        errs = validator.validate(Profile())
        assert errs is not None
        assert errs[0].namespace == "Profile.user_handle"
        assert errs[0].struct_namespace == "Profile.handle"
