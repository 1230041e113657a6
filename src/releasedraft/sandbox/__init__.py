"""Sandboxed evaluation of user-supplied transform snippets."""

from __future__ import annotations

from .evaluator import DEFAULT_TIMEOUT, EvaluationState, SafeEvaluator, dig_path, evaluate
from .gate import ExpressionGate, validate

__all__ = [
    "DEFAULT_TIMEOUT",
    "EvaluationState",
    "ExpressionGate",
    "SafeEvaluator",
    "dig_path",
    "evaluate",
    "validate",
]
