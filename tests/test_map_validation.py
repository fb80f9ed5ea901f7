"""Tests for Validator.validate_map and YAML rule files."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from fieldcheck import ConfigurationError, InvalidValidationError, Validator, load_rule_file

if TYPE_CHECKING:
    from pathlib import Path


RULES = {
    "name": "required,min=2",
    "email": "omitempty,email",
    "tags": "dive,alpha",
    "address": {
        "city": "required",
        "zip": "len=5",
    },
}


class TestValidateMap:
    def test_valid(self, validator: Validator) -> None:
        data = {
            "name": "Ann",
            "tags": ["a", "b"],
            "address": {"city": "Oslo", "zip": "01234"},
        }
        assert validator.validate_map(data, RULES) is None

    def test_namespaces(self, validator: Validator) -> None:
        data = {"name": "A", "tags": ["ok", "n0"], "address": {"zip": "1"}}
        errs = validator.validate_map(data, RULES)
        assert errs is not None
        assert [(e.namespace, e.tag) for e in errs] == [
            ("name", "min"),
            ("tags[1]", "alpha"),
            ("address.city", "required"),
            ("address.zip", "len"),
        ]
        assert all(e.shape == "" for e in errs)

    def test_missing_nested_data_checks_absence(self, validator: Validator) -> None:
        errs = validator.validate_map({"name": "Ann"}, RULES)
        assert errs is not None
        assert [(e.namespace, e.tag) for e in errs] == [("address.city", "required")]

    def test_crossfield_between_keys(self, validator: Validator) -> None:
        rules = {"password": "required", "confirm": "eqfield=password"}
        assert validator.validate_map({"password": "pw", "confirm": "pw"}, rules) is None
        errs = validator.validate_map({"password": "pw", "confirm": "px"}, rules)
        assert errs is not None
        assert errs[0].namespace == "confirm"

    def test_bad_rule_type(self, validator: Validator) -> None:
        with pytest.raises(ConfigurationError, match="must be a string or mapping"):
            validator.validate_map({"a": 1}, {"a": 5})

    def test_non_mapping_data(self, validator: Validator) -> None:
        with pytest.raises(InvalidValidationError):
            validator.validate_map(["a"], RULES)  # type: ignore[arg-type]


class TestRuleFile:
    def _write(self, tmp_path: Path, text: str) -> Path:
        path = tmp_path / "rules.yml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_load(self, tmp_path: Path) -> None:
        path = self._write(
            tmp_path,
            "version: 1\n"
            "aliases:\n"
            "  iscolor: hexcolor|rgb\n"
            "rules:\n"
            "  name: required\n"
            "  nickname:\n"
            "  address:\n"
            "    city: required\n",
        )
        rule_file = load_rule_file(path)
        assert rule_file.rules == {
            "name": "required",
            "nickname": "",
            "address": {"city": "required"},
        }
        assert rule_file.aliases == {"iscolor": "hexcolor|rgb"}

    def test_validator_registers_aliases(self, validator: Validator, tmp_path: Path) -> None:
        path = self._write(
            tmp_path,
            "version: 1\naliases:\n  iscolor: hexcolor|rgb\nrules:\n  color: required,iscolor\n",
        )
        rules = validator.load_rule_file(path)
        assert validator.validate_map({"color": "#fff"}, rules) is None
        errs = validator.validate_map({"color": "red"}, rules)
        assert errs is not None
        assert errs[0].tag == "iscolor"

    def test_logs_load(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        path = self._write(tmp_path, "version: 1\nrules:\n  a: required\n")
        with caplog.at_level(logging.DEBUG, logger="fieldcheck.rulefile"):
            load_rule_file(path)
        assert "Loaded rule file" in caplog.text

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("- a\n- b\n", "must be a YAML mapping"),
            ("rules: {}\n", "missing required 'version'"),
            ("version: 9\nrules: {}\n", "unsupported version 9"),
            ("version: 1\nrules: [a]\n", "'rules' must be a mapping"),
            ("version: 1\nrules:\n  a: 5\n", "'rules.a' must be a rule string"),
            ("version: 1\naliases: [x]\n", "'aliases' must be a mapping"),
            ("version: 1\naliases:\n  x: ''\n", "alias 'x' must map to a non-empty"),
            ("version: 1\nextra: 1\n", "unknown top-level key"),
        ],
    )
    def test_schema_errors(self, tmp_path: Path, text: str, message: str) -> None:
        path = self._write(tmp_path, text)
        with pytest.raises(ConfigurationError, match=message):
            load_rule_file(path)
