"""fieldcheck: rule-string validation for dataclasses and plain mappings."""

from fieldcheck.cache import Rules, rule_field
from fieldcheck.config import ValidatorConfig, load_config
from fieldcheck.engine import FieldLevel, ShapeLevel
from fieldcheck.errors import (
    ConfigurationError,
    FieldcheckError,
    InvalidValidationError,
    ValidationErrors,
    ValidationFailed,
    Violation,
)
from fieldcheck.kinds import Kind
from fieldcheck.registry import ParamPolicy
from fieldcheck.rulefile import RuleFile, load_rule_file
from fieldcheck.validator import Validator

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "FieldLevel",
    "FieldcheckError",
    "InvalidValidationError",
    "Kind",
    "ParamPolicy",
    "RuleFile",
    "Rules",
    "ShapeLevel",
    "ValidationErrors",
    "ValidationFailed",
    "Validator",
    "ValidatorConfig",
    "Violation",
    "load_config",
    "load_rule_file",
    "rule_field",
]
