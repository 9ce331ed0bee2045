"""
Task executor.

A task moves through VALIDATED -> GUARD_EVALUATED -> DISPATCHED ->
RESULT_BUILT. A failing `if` guard ends the task after GUARD_EVALUATED with
a Skipped result; otherwise exactly one of the update, create-or-delete and
assert actions runs.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from .assertions import evaluate_assert
from .builders import (
    CreateOrDeleteRequest,
    UpdateRequest,
    build_create_or_delete_states,
    build_update_states,
)
from .errors import ConfigurationError
from .info import IncludeInfo
from .merge import MergeFn, three_way_merge
from .models import Result, ResultPhase, Task, TaskResult, TaskResultKind
from .pipeline import Pipeline, Stage
from .resources import Resource

logger = logging.getLogger(__name__)

SKIP_MESSAGE = "Task didn't run: If cond failed"


class TaskState(str, Enum):
    """Where a task is in its execution."""
    PENDING = "Pending"
    VALIDATED = "Validated"
    GUARD_EVALUATED = "GuardEvaluated"
    DISPATCHED = "Dispatched"
    RESULT_BUILT = "ResultBuilt"


@dataclass
class TaskRequest:
    task: Task
    run: Resource | None
    watch: Resource | None
    observed_resources: list[Resource] = field(default_factory=list)
    include_info: IncludeInfo = field(default_factory=dict)
    merge: MergeFn = three_way_merge


@dataclass
class TaskResponse:
    """What a task contributes to the Run.

    Attributes:
        desired_resources: Created resources and desired updates
        explicit_updates: Updates to resources not created due to the watch
        explicit_deletes: Deletes of resources not created due to the watch
        result: Task result keyed by the task key
    """

    desired_resources: list[Resource] = field(default_factory=list)
    explicit_updates: list[Resource] = field(default_factory=list)
    explicit_deletes: list[Resource] = field(default_factory=list)
    result: TaskResult | None = None


@dataclass
class _TaskRun:
    request: TaskRequest
    response: TaskResponse = field(default_factory=TaskResponse)
    state: TaskState = TaskState.PENDING
    if_cond_result: Result | None = None
    kind: TaskResultKind | None = None
    outcome: Result | None = None
    halted: bool = False


def task_kind(task: Task) -> TaskResultKind:
    """The action a (valid) task dispatches to."""
    if task.target is not None:
        return TaskResultKind.UPDATE
    if task.assert_ is not None:
        return TaskResultKind.ASSERT
    return TaskResultKind.CREATE_OR_DELETE


def validate_task(task: Task) -> None:
    """Check a task's configuration.

    Raises:
        ConfigurationError: On a missing key, both or neither of assert and
            apply, a target without apply, assert with a target, or negative
            replicas
    """
    if not task.key:
        raise ConfigurationError("Invalid task: Missing key")
    is_apply = task.apply is not None
    is_assert = task.assert_ is not None
    is_update = task.target is not None
    if is_apply and is_assert:
        raise ConfigurationError(f"Both Assert & Apply can't be set in a task: {task.key!r}")
    if not is_apply and not is_assert:
        raise ConfigurationError(f"Both Assert & Apply can't be nil in a task: {task.key!r}")
    if is_assert and is_update:
        raise ConfigurationError(f"Both Assert & Update can't be set in a task: {task.key!r}")
    if is_update and not is_apply:
        raise ConfigurationError(f"Update task needs Apply to be set: {task.key!r}")
    if task.replicas is not None and task.replicas < 0:
        raise ConfigurationError(f"Invalid replicas {task.replicas}: {task.key!r}")


def _validate(run: _TaskRun) -> _TaskRun:
    validate_task(run.request.task)
    run.kind = task_kind(run.request.task)
    run.state = TaskState.VALIDATED
    return run


def _evaluate_guard(run: _TaskRun) -> _TaskRun:
    req = run.request
    if req.task.if_ is not None:
        got = evaluate_assert(req.task.if_, req.observed_resources, req.include_info, req.merge)
        run.if_cond_result = got.result
        run.halted = not got.success
    run.state = TaskState.GUARD_EVALUATED
    return run


def _dispatch(run: _TaskRun) -> _TaskRun:
    req = run.request
    task = req.task
    common = dict(
        run=req.run,
        watch=req.watch,
        task_key=task.key,
        include_info=req.include_info,
        observed_resources=req.observed_resources,
    )
    if run.kind == TaskResultKind.UPDATE:
        got = build_update_states(UpdateRequest(**common, apply=task.apply, target=task.target, merge=req.merge))
        run.response.desired_resources.extend(got.desired_updates)
        run.response.explicit_updates.extend(got.explicit_updates)
        run.outcome = got.result
    elif run.kind == TaskResultKind.CREATE_OR_DELETE:
        got = build_create_or_delete_states(CreateOrDeleteRequest(**common, apply=task.apply, replicas=task.replicas))
        run.response.desired_resources.extend(got.desired_resources)
        run.response.explicit_deletes.extend(got.explicit_deletes)
        run.outcome = got.result
    else:
        got = evaluate_assert(task.assert_, req.observed_resources, req.include_info, req.merge)
        run.outcome = got.result
    run.state = TaskState.DISPATCHED
    return run


def _build_result(run: _TaskRun) -> _TaskRun:
    key = run.request.task.key
    if run.halted:
        run.response.result = TaskResult(
            key=key,
            kind=run.kind,
            phase=ResultPhase.SKIPPED,
            message=SKIP_MESSAGE,
            if_cond_result=run.if_cond_result,
        )
    else:
        run.response.result = TaskResult(
            key=key,
            kind=run.kind,
            phase=run.outcome.phase,
            message=run.outcome.message,
            if_cond_result=run.if_cond_result,
            result=run.outcome,
        )
    run.state = TaskState.RESULT_BUILT
    return run


TASK_PIPELINE = Pipeline("task", [
    Stage("validate", _validate),
    Stage("evaluate if condition", _evaluate_guard),
    Stage("dispatch", _dispatch),
])


def execute_task(request: TaskRequest) -> TaskResponse:
    """Validate, guard and run a single task.

    Args:
        request: The task together with the run, watch and observed resources

    Returns:
        TaskResponse holding the produced resources and the task result

    Raises:
        ConfigurationError: If the task is malformed
        EvaluationError: If the guard or the assert can't be evaluated
        MergeError: If an update can't be merged
    """
    run = TASK_PIPELINE.run(_TaskRun(request=request))
    run = _build_result(run)
    result = run.response.result
    logger.info(f"Task {result.key!r} ({result.kind.value}): {result.phase.value}: {result.message}")
    return run.response
