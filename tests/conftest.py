"""Shared test fixtures for fieldcheck."""

from __future__ import annotations

import pytest

from fieldcheck import Validator, ValidatorConfig
from fieldcheck.registry import Registry
from fieldcheck.rules import register_builtins


@pytest.fixture()
def validator() -> Validator:
    """A validator with default configuration."""
    return Validator()


@pytest.fixture()
def json_validator() -> Validator:
    """A validator taking display names from ``json`` field metadata."""
    return Validator(ValidatorConfig(name_key="json"))


@pytest.fixture()
def registry() -> Registry:
    """A registry holding the built-in rules."""
    reg = Registry()
    register_builtins(reg)
    return reg
