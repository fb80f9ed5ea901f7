"""Tests for fieldcheck.kinds: classification, zero values and presence."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import pytest

from fieldcheck.kinds import Kind, has_value, is_shape, is_shape_type, is_zero, kind_of


@dataclass
class Point:
    x: int = 0
    y: int = 0


def _plain(value: Any) -> tuple[Any, Kind]:
    return value, kind_of(value)


class TestKindOf:
    @pytest.mark.parametrize(
        ("value", "kind"),
        [
            (None, Kind.INVALID),
            (True, Kind.BOOL),
            (3, Kind.INT),
            (1.5, Kind.FLOAT),
            (Decimal("1.5"), Kind.FLOAT),
            ("x", Kind.STRING),
            (b"x", Kind.BYTES),
            ([1], Kind.SEQUENCE),
            ((1,), Kind.SEQUENCE),
            ({1}, Kind.SEQUENCE),
            ({"a": 1}, Kind.MAPPING),
            (Point(), Kind.SHAPE),
            (dt.datetime(2024, 1, 1), Kind.DATETIME),
            (dt.date(2024, 1, 1), Kind.DATE),
            (dt.timedelta(seconds=1), Kind.DURATION),
            (object(), Kind.OTHER),
        ],
    )
    def test_classification(self, value: Any, kind: Kind) -> None:
        assert kind_of(value) is kind

    def test_shape_predicates(self) -> None:
        assert is_shape(Point())
        assert not is_shape(Point)
        assert is_shape_type(Point)
        assert not is_shape_type(Point())


class TestIsZero:
    @pytest.mark.parametrize(
        "value",
        [None, False, 0, 0.0, "", b"", [], {}, Point(), dt.timedelta(0), dt.date.min],
    )
    def test_zero_values(self, value: Any) -> None:
        assert is_zero(value, kind_of(value), _plain)

    @pytest.mark.parametrize("value", [True, 1, "a", [0], {"k": 0}, Point(x=1), dt.date.today()])
    def test_non_zero_values(self, value: Any) -> None:
        assert not is_zero(value, kind_of(value), _plain)


class TestHasValue:
    def test_empty_containers_are_present(self) -> None:
        assert has_value([], Kind.SEQUENCE, _plain)
        assert has_value({}, Kind.MAPPING, _plain)

    def test_zero_scalars_are_absent(self) -> None:
        assert not has_value("", Kind.STRING, _plain)
        assert not has_value(0, Kind.INT, _plain)
        assert not has_value(None, Kind.INVALID, _plain)

    def test_zero_shape_depends_on_flag(self) -> None:
        assert has_value(Point(), Kind.SHAPE, _plain)
        assert not has_value(Point(), Kind.SHAPE, _plain, require_shape=True)
        assert has_value(Point(y=2), Kind.SHAPE, _plain, require_shape=True)
