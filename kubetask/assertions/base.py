"""Result containers for conditions and asserts."""

from dataclasses import dataclass, field

from ..models import Result, ResultPhase
from ..resources import Resource


@dataclass
class ConditionResult:
    """Outcome of evaluating one condition against a resource list.

    Attributes:
        success: Whether the condition's operator was satisfied
        matches: Resources matched by the selector, in input order. For the
            Exists operator evaluation stops at the first match.
        result: Include-info details gathered while matching
    """

    success: bool
    matches: list[Resource] = field(default_factory=list)
    result: Result = field(default_factory=Result)


@dataclass
class AssertResult:
    """Outcome of an assert; `result.phase` is AssertPassed or AssertFailed."""

    success: bool
    result: Result = field(default_factory=Result)

    @classmethod
    def build(cls, success: bool, result: Result) -> "AssertResult":
        result.phase = ResultPhase.ASSERT_PASSED if success else ResultPhase.ASSERT_FAILED
        return cls(success=success, result=result)
