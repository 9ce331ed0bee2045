"""Evaluate a single condition against a list of resources."""

import logging
from collections.abc import Sequence

from ..errors import ConfigurationError, EvaluationError
from ..info import IncludeInfo, InfoRecorder
from ..models import COUNT_OPERATORS, Condition, ResourceOperator
from ..resources import Resource
from ..selector import matches
from .base import ConditionResult

logger = logging.getLogger(__name__)


def validate_condition(condition: Condition) -> None:
    """Check a condition's selector and count.

    Conditions built through pydantic are already checked for a missing
    count; this also covers instances built with `model_construct`.

    Raises:
        ConfigurationError: On empty selector terms or a missing count
    """
    if not condition.resource_selector.selector_terms:
        raise ConfigurationError("Invalid resource condition: Empty selector terms")
    if condition.count is None and condition.operator in COUNT_OPERATORS:
        raise ConfigurationError(
            f"Invalid resource condition: Count must be set when operator is {condition.operator.value!r}"
        )


def evaluate_condition(
    condition: Condition,
    resources: Sequence[Resource],
    include_info: IncludeInfo | None = None,
) -> ConditionResult:
    """Run a condition's selector over resources and apply its operator.

    Exists succeeds as soon as one resource matches. The other operators
    look at every resource and compare the number of matches:

    - NotExist: no match
    - EqualsCount: matches == count
    - GTE: matches >= count
    - LTE: matches <= count

    Args:
        condition: Condition to evaluate
        resources: Candidate resources; must not be empty
        include_info: Enabled include-info keys

    Returns:
        ConditionResult with the matched resources

    Raises:
        ConfigurationError: If the condition is malformed
        EvaluationError: If there are no resources or one of them is None
    """
    validate_condition(condition)
    if not resources:
        raise EvaluationError("Invalid resource condition: No resources provided")

    recorder = InfoRecorder(include_info)
    matched: list[Resource] = []
    operator = condition.operator

    for resource in resources:
        if resource is None:
            raise EvaluationError("Can't match resource condition: Nil resource found")
        if matches(resource, condition.resource_selector):
            matched.append(resource)
            recorder.desired_resource(resource, "Assert conditions matched for")
            if operator == ResourceOperator.EXISTS:
                return ConditionResult(success=True, matches=matched, result=recorder.result)
        else:
            recorder.skipped_resource(resource, "Assert conditions failed for")

    count = len(matched)
    if operator == ResourceOperator.NOT_EXIST:
        success = count == 0
    elif operator == ResourceOperator.EQUALS_COUNT:
        success = count == condition.count
    elif operator == ResourceOperator.GTE:
        success = count >= condition.count
    elif operator == ResourceOperator.LTE:
        success = count <= condition.count
    else:
        success = count > 0

    logger.debug(f"Condition {operator.value} matched {count} of {len(resources)} resource(s): success={success}")
    return ConditionResult(success=success, matches=matched, result=recorder.result)
