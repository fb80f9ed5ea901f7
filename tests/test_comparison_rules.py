"""Tests for comparison rules and parameter parsing."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any

import pytest

from fieldcheck import ConfigurationError, Validator
from fieldcheck.rules.comparison import has_length, has_max, has_min, is_eq, is_gt, is_lt, is_ne
from fieldcheck.rules.params import as_bool, as_int, parse_duration, split_params


class TestParams:
    @pytest.mark.parametrize(
        ("text", "expected"), [("10", 10), ("0x10", 16), ("010", 10), ("-3", -3)]
    )
    def test_as_int(self, text: str, expected: int) -> None:
        assert as_int(text, "min") == expected

    def test_as_int_bad(self) -> None:
        with pytest.raises(ConfigurationError, match="Bad parameter 'ten' for rule 'min'"):
            as_int("ten", "min")

    def test_as_bool(self) -> None:
        assert as_bool("true", "eq") is True
        assert as_bool("0", "eq") is False
        with pytest.raises(ConfigurationError):
            as_bool("yes", "eq")

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1h30m", dt.timedelta(hours=1, minutes=30)),
            ("300ms", dt.timedelta(milliseconds=300)),
            ("-1.5h", dt.timedelta(hours=-1.5)),
            ("90", dt.timedelta(seconds=90)),
            ("2us", dt.timedelta(microseconds=2)),
        ],
    )
    def test_parse_duration(self, text: str, expected: dt.timedelta) -> None:
        assert parse_duration(text, "max") == expected

    @pytest.mark.parametrize("text", ["", "1x", "h", "1h 2m"])
    def test_parse_duration_bad(self, text: str) -> None:
        with pytest.raises(ConfigurationError):
            parse_duration(text, "max")

    def test_split_params(self) -> None:
        assert split_params("a 'b c' d") == ["a", "b c", "d"]
        assert split_params("  ") == []


class TestSizes:
    def test_strings_count_code_points(self) -> None:
        assert has_length("héllo", "5")
        assert has_min("日本", "2")
        assert not has_max("日本語", "2")

    def test_bytes_and_containers(self) -> None:
        assert has_length(b"abc", "3")
        assert has_min([1, 2], "2")
        assert has_max({"a": 1}, "1")
        assert not has_min(set(), "1")

    def test_numbers(self) -> None:
        assert has_min(5, "5")
        assert not has_max(5.5, "5")
        assert has_length(7, "7")
        assert is_gt(Decimal("1.10"), "1.05")

    def test_durations(self) -> None:
        assert has_max(dt.timedelta(minutes=90), "1h30m")
        assert not has_max(dt.timedelta(minutes=91), "1h30m")

    def test_unsupported_kind(self) -> None:
        with pytest.raises(ConfigurationError, match="cannot be applied to a bool value"):
            has_min(True, "1")


class TestEquality:
    def test_strings_compare_by_value(self) -> None:
        assert is_eq("abc", "abc")
        assert is_ne("abc", "3")

    def test_bools(self) -> None:
        assert is_eq(True, "true")
        assert is_ne(False, "true")

    def test_containers_compare_by_size(self) -> None:
        assert is_eq([1, 2, 3], "3")


class TestTemporal:
    def test_datetime_against_now(self) -> None:
        future = dt.datetime.now() + dt.timedelta(days=1)
        past = dt.datetime.now() - dt.timedelta(days=1)
        assert is_gt(future, "")
        assert is_lt(past, "")

    def test_aware_datetime(self) -> None:
        future = dt.datetime.now(tz=dt.timezone.utc) + dt.timedelta(hours=2)
        assert is_gt(future, "1h")
        assert not is_gt(future, "3h")

    def test_date_against_today(self) -> None:
        assert is_gt(dt.date.today() + dt.timedelta(days=2), "24h")
        assert is_lt(dt.date.today() - dt.timedelta(days=1), "")

    def test_datetime_equality_unsupported(self) -> None:
        with pytest.raises(ConfigurationError):
            is_eq(dt.datetime.now(), "x")


class TestThroughValidator:
    @pytest.mark.parametrize(
        ("value", "rules", "valid"),
        [
            ("abc", "len=3", True),
            ("abc", "max=2", False),
            (10, "gte=10,lte=20", True),
            (21, "gte=10,lte=20", False),
            ([1, 2], "min=1,max=2", True),
            (dt.datetime.now() + dt.timedelta(days=1), "gt", True),
        ],
    )
    def test_rules(self, validator: Validator, value: Any, rules: str, valid: bool) -> None:
        assert (validator.validate_value(value, rules) is None) is valid

    def test_unparsable_param_raises(self, validator: Validator) -> None:
        with pytest.raises(ConfigurationError, match="Bad parameter"):
            validator.validate_value("abc", "min=many")

    @pytest.mark.parametrize("rule", ["gt", "gte", "lt", "lte"])
    def test_bare_ordering_rule_on_number_raises(self, validator: Validator, rule: str) -> None:
        with pytest.raises(ConfigurationError, match=f"Rule '{rule}' needs a parameter on a int"):
            validator.validate_value(5, rule)
