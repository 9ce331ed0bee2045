"""
Run orchestrator.

Executes the tasks of a Run strictly in order and aggregates what they
produce. Task level failures are recorded and the next task runs; the Run
then reports phase Error. Invalid run inputs and a run guard that can't be
evaluated abort the whole Run.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from .assertions import evaluate_assert
from .errors import ConfigurationError, DuplicateTaskKeyError, InvalidRunError, KubetaskError
from .info import IncludeInfo
from .merge import MergeFn, three_way_merge
from .models import Assert, Completion, ResultPhase, RunStatus, Task, TaskResult
from .pipeline import Pipeline, Stage
from .resources import Resource
from .task import TaskRequest, execute_task

logger = logging.getLogger(__name__)

RUN_SKIP_MESSAGE = "Run was skipped: If cond failed"
TASK_ERRORS_REASON = "One or more tasks have error(s)"


@dataclass
class RunRequest:
    """Inputs of one reconciliation pass.

    Attributes:
        run: The Run resource
        watch: The resource that triggered this pass
        tasks: Tasks as models or raw mappings, in execution order
        run_if: Optional guard for the whole Run
        include_info: Enabled include-info keys
        observed_resources: Snapshot of observed resources
        merge: Three-way merge collaborator for update tasks
    """

    run: Resource | None
    watch: Resource | None
    tasks: list[Task | Mapping[str, Any]] = field(default_factory=list)
    run_if: Assert | None = None
    include_info: IncludeInfo = field(default_factory=dict)
    observed_resources: list[Resource] = field(default_factory=list)
    merge: MergeFn = three_way_merge


@dataclass
class RunResponse:
    desired_resources: list[Resource] = field(default_factory=list)
    explicit_updates: list[Resource] = field(default_factory=list)
    explicit_deletes: list[Resource] = field(default_factory=list)
    status: RunStatus = field(default_factory=RunStatus)

    @property
    def ok(self) -> bool:
        return self.status.phase != ResultPhase.ERROR


@dataclass
class _RunState:
    request: RunRequest
    response: RunResponse = field(default_factory=RunResponse)
    halted: bool = False


def validate_run_request(request: RunRequest) -> None:
    """Raise InvalidRunError when run, watch or the task list is missing."""
    if request is None:
        raise InvalidRunError("Invalid run: Nil request")
    if request.run is None or not request.run.document:
        raise InvalidRunError("Invalid run: Nil run resource")
    if request.watch is None or not request.watch.document:
        raise InvalidRunError("Invalid run: Nil watch resource")
    if not request.tasks:
        raise InvalidRunError("Invalid run: No tasks to run")


def to_task(task: Task | Mapping[str, Any]) -> Task:
    """Validate a raw task mapping into a Task model.

    Raises:
        ConfigurationError: If the mapping is not a valid task
    """
    if isinstance(task, Task):
        return task
    if not isinstance(task, Mapping):
        raise ConfigurationError(f"Invalid task: Expected a mapping, got {type(task).__name__}")
    try:
        return Task.model_validate(dict(task))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid task {task.get('key', '')!r}: {e}") from e


def _raw_key(task: Task | Mapping[str, Any]) -> str:
    if isinstance(task, Task):
        return task.key
    key = task.get("key", "") if isinstance(task, Mapping) else ""
    return key if isinstance(key, str) else str(key)


def _validate(state: _RunState) -> _RunState:
    validate_run_request(state.request)
    return state


def _evaluate_run_if(state: _RunState) -> _RunState:
    req = state.request
    if req.run_if is None:
        return state
    got = evaluate_assert(req.run_if, req.observed_resources, req.include_info, req.merge)
    state.response.status.if_cond_result = got.result
    if not got.success:
        status = state.response.status
        status.phase = ResultPhase.SKIPPED
        status.message = got.result.message or RUN_SKIP_MESSAGE
        logger.warning(f"Run {req.run.name!r}: {status.message}")
        state.halted = True
    return state


def _run_tasks(state: _RunState) -> _RunState:
    req = state.request
    response = state.response
    status = response.status
    seen: set[str] = set()

    for raw in req.tasks:
        key = _raw_key(raw)
        if key and key in seen:
            err = DuplicateTaskKeyError(key)
            logger.warning(f"Run {req.run.name!r}: {err}")
            status.errors.append(str(err))
            continue
        if key:
            seen.add(key)
        try:
            task = to_task(raw)
            got = execute_task(TaskRequest(
                task=task,
                run=req.run,
                watch=req.watch,
                observed_resources=req.observed_resources,
                include_info=req.include_info,
                merge=req.merge,
            ))
        except KubetaskError as e:
            logger.error(f"Run {req.run.name!r}: task {key!r} failed: {e}")
            status.errors.append(f"{key}: {e}" if key else str(e))
            status.task_results.append(TaskResult(key=key, phase=ResultPhase.ERROR, message=str(e)))
            continue
        response.desired_resources.extend(got.desired_resources)
        response.explicit_updates.extend(got.explicit_updates)
        response.explicit_deletes.extend(got.explicit_deletes)
        status.task_results.append(got.result)
    return state


def _set_completion(state: _RunState) -> _RunState:
    """Observed counts observed resources that are also desired, by key."""
    response = state.response
    desired_keys = {r.key for r in response.desired_resources}
    observed = sum(1 for r in state.request.observed_resources if r is not None and r.key in desired_keys)
    desired = len(desired_keys)
    response.status.completion = Completion(
        state=not response.status.errors and observed == desired,
        observed=observed,
        desired=desired,
    )
    return state


def _set_phase(state: _RunState) -> _RunState:
    status = state.response.status
    if status.errors:
        status.phase = ResultPhase.ERROR
        status.reason = TASK_ERRORS_REASON
    else:
        status.phase = ResultPhase.ONLINE
    return state


RUN_PIPELINE = Pipeline("run", [
    Stage("validate", _validate),
    Stage("evaluate run if condition", _evaluate_run_if),
    Stage("run all tasks", _run_tasks),
    Stage("set completion", _set_completion),
    Stage("set phase", _set_phase),
])


def execute_run(request: RunRequest) -> RunResponse:
    """Execute every task of a Run and aggregate the outcome.

    Args:
        request: Run inputs

    Returns:
        RunResponse; its status phase is Online, Skipped (run guard
        failed) or Error (one or more task errors)

    Raises:
        InvalidRunError: If run, watch or tasks are missing
        KubetaskError: If the run guard can't be evaluated

    Example:
        >>> response = execute_run(RunRequest(run=run, watch=run, tasks=[
        ...     {"key": "create-pod", "apply": pod_template},
        ... ]))
        >>> response.status.phase
        <ResultPhase.ONLINE: 'Online'>
    """
    state = RUN_PIPELINE.run(_RunState(request=request))
    status = state.response.status
    logger.info(
        f"Run {request.run.name!r}: {status.phase.value}: {len(status.task_results)} task result(s), "
        f"{len(status.errors)} error(s)"
    )
    return state.response
