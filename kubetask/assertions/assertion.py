"""Asserts: conditions combined with AND/OR, or a state compared by merge."""

import logging
from collections.abc import Sequence

from ..errors import ConfigurationError, EvaluationError, MergeError
from ..info import IncludeInfo, InfoRecorder, describe
from ..merge import MergeFn, three_way_merge
from ..models import Assert, AssertOperator
from ..resources import Resource
from .base import AssertResult
from .condition import evaluate_condition

logger = logging.getLogger(__name__)


def evaluate_assert(
    assertion: Assert,
    resources: Sequence[Resource],
    include_info: IncludeInfo | None = None,
    merge: MergeFn = three_way_merge,
) -> AssertResult:
    """Evaluate an assert against the observed resources.

    An assert carries either conditions or a state. Conditions are
    evaluated in order, each against the full resource list:

    - OR (default): the first passing condition passes the assert
    - AND: the first failing condition fails the assert
    - no conditions at all: the assert passes trivially

    Args:
        assertion: Assert (or `if` guard) to evaluate
        resources: Observed resources
        include_info: Enabled include-info keys
        merge: Merge collaborator used by state assertions

    Returns:
        AssertResult whose result phase is AssertPassed or AssertFailed

    Raises:
        ConfigurationError: If both state and conditions are set, or a
            condition is malformed
        EvaluationError: If conditions exist but there are no resources
    """
    if assertion.state and assertion.conditions:
        raise ConfigurationError("Can't assert: Both assert state & conditions can't be used together")
    if assertion.state:
        return evaluate_state(assertion.state, resources, include_info, merge)
    return evaluate_conditions(assertion, resources, include_info)


def evaluate_conditions(
    assertion: Assert,
    resources: Sequence[Resource],
    include_info: IncludeInfo | None = None,
) -> AssertResult:
    recorder = InfoRecorder(include_info)
    if not assertion.conditions:
        return AssertResult.build(True, recorder.result)
    if not resources:
        raise EvaluationError("Can't assert: No resources provided")

    operator = assertion.operator or AssertOperator.OR
    at_least_one_success = False
    for index, condition in enumerate(assertion.conditions):
        got = evaluate_condition(condition, resources, include_info)
        recorder.desired(*got.result.desired_resources_info)
        recorder.skipped(*got.result.skipped_resources_info)
        logger.debug(f"Assert {operator.value}: condition {index} success={got.success}")
        if got.success:
            at_least_one_success = True
        if operator == AssertOperator.OR and got.success:
            return AssertResult.build(True, recorder.result)
        if operator == AssertOperator.AND and not got.success:
            return AssertResult.build(False, recorder.result)
    return AssertResult.build(at_least_one_success, recorder.result)


def evaluate_state(
    state: dict,
    resources: Sequence[Resource],
    include_info: IncludeInfo | None = None,
    merge: MergeFn = three_way_merge,
) -> AssertResult:
    """Assert that every resource selected by state already looks like state.

    Candidates must share the state's kind and apiVersion; when set, the
    state's name is a prefix match, its namespace an exact match and its
    labels/annotations a subset match. A candidate passes when merging the
    state into it changes nothing. No candidate at all fails the assert.
    """
    if not resources:
        raise EvaluationError("Can't assert state: No resources provided")
    wanted = Resource.from_document(state)
    recorder = InfoRecorder(include_info)
    matched: list[str] = []
    unmatched: list[str] = []

    for resource in resources:
        if resource is None:
            raise EvaluationError("Can't verify state: Nil resource found")
        if not _is_candidate(resource, wanted):
            continue
        observed = resource.with_name(wanted.name) if wanted.name else resource.deep_copy()
        try:
            final = merge(observed.to_document(), wanted.to_document(), wanted.to_document())
        except Exception as e:
            raise MergeError(f"Failed to assert state: {resource}: {e}", resource.identity()) from e
        if final == observed.document:
            matched.append(describe(resource, "Assert state matched for"))
        else:
            unmatched.append(describe(resource, "Assert state didn't match for"))

    if not matched and not unmatched:
        unmatched.append(f"No matches for assert state: Tried against {len(resources)} resources")
        recorder.warn("No matches for given assert: Recheck assert state")

    recorder.desired(*matched)
    recorder.skipped(*unmatched)
    return AssertResult.build(not unmatched, recorder.result)


def _is_candidate(resource: Resource, wanted: Resource) -> bool:
    if resource.kind != wanted.kind or resource.api_version != wanted.api_version:
        return False
    if wanted.name and not resource.name.startswith(wanted.name):
        return False
    if wanted.namespace and wanted.namespace != resource.namespace:
        return False
    labels = resource.labels
    if any(labels.get(k) != v for k, v in wanted.labels.items()):
        return False
    annotations = resource.annotations
    if any(annotations.get(k) != v for k, v in wanted.annotations.items()):
        return False
    return True
