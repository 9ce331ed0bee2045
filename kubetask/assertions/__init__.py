"""Condition and assert evaluation."""

from .assertion import evaluate_assert, evaluate_conditions, evaluate_state
from .base import AssertResult, ConditionResult
from .condition import evaluate_condition, validate_condition

__all__ = [
    "AssertResult",
    "ConditionResult",
    "evaluate_assert",
    "evaluate_condition",
    "evaluate_conditions",
    "evaluate_state",
    "validate_condition",
]
