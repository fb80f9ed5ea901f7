"""Evaluation engine: traversal, per-call context and cross-reference resolution."""

from fieldcheck.engine.context import FieldLevel, Location, ShapeLevel, ValidationContext
from fieldcheck.engine.evaluator import Evaluator
from fieldcheck.engine.resolver import resolve, split_path

__all__ = [
    "Evaluator",
    "FieldLevel",
    "Location",
    "ShapeLevel",
    "ValidationContext",
    "resolve",
    "split_path",
]
