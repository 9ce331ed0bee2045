"""Delete builder: classifies observed resources matching a delete template."""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..errors import EvaluationError
from ..info import InfoRecorder
from ..models import Result, ResultPhase
from ..pipeline import Pipeline, Stage
from ..resources import Resource
from .base import BuildRequest, base_name, template_from

logger = logging.getLogger(__name__)


@dataclass
class DeleteRequest(BuildRequest):
    """Inputs of the delete builder.

    Attributes:
        apply: Template document from the task
        delete_template: Template resource; takes precedence over apply
    """

    apply: dict[str, Any] | None = None
    delete_template: Resource | None = None


@dataclass
class DeleteResponse:
    """Resources the host must delete explicitly.

    Desired deletes are not returned: leaving an engine-created attachment
    out of the response is what makes the host delete it.
    """

    explicit_deletes: list[Resource] = field(default_factory=list)
    result: Result = field(default_factory=Result)


@dataclass
class _DeleteState:
    request: DeleteRequest
    recorder: InfoRecorder
    template: Resource | None = None
    name: str = ""
    desired_deletes: list[Resource] = field(default_factory=list)
    explicit_deletes: list[Resource] = field(default_factory=list)


def name_matches(name: str, base: str) -> bool:
    """True if name is base itself or base followed by '-' and a suffix.

    An empty base matches every name.
    """
    if not base:
        return True
    return name == base or name.startswith(f"{base}-")


def _set_template(state: _DeleteState) -> _DeleteState:
    req = state.request
    state.template = template_from(req.apply, req.delete_template, req.task_key, "delete")
    return state


def _eval_name(state: _DeleteState) -> _DeleteState:
    state.name = base_name(state.template)
    return state


def _is_match(template: Resource, name: str, observed: Resource) -> bool:
    return (
        name_matches(observed.name, name)
        and template.kind == observed.kind
        and template.api_version == observed.api_version
        and template.namespace == observed.namespace
    )


def _mark_for_delete(state: _DeleteState) -> _DeleteState:
    watch_uid = state.request.watch.uid
    for observed in state.request.observed_resources:
        if observed is None:
            raise EvaluationError("Can't mark for delete: Nil observed object")
        if not _is_match(state.template, state.name, observed):
            state.recorder.skipped_resource(observed, "Skipped for delete")
            continue
        if observed.is_owned_by_watch(watch_uid):
            state.desired_deletes.append(observed.deep_copy())
            state.recorder.desired_resource(observed, "Marked for desired delete")
        else:
            state.explicit_deletes.append(observed.deep_copy())
            state.recorder.explicit_resource(observed, "Marked for explicit delete")
    return state


DELETE_PIPELINE = Pipeline("delete", [
    Stage("set delete template", _set_template),
    Stage("eval delete name", _eval_name),
    Stage("mark resources for delete", _mark_for_delete),
])


def build_delete_states(request: DeleteRequest) -> DeleteResponse:
    """Work out which observed resources a delete task removes.

    A resource is a candidate when its kind, apiVersion and namespace equal
    the template's and its name equals the template name or starts with
    `<name>-`. Candidates created due to the current watch are desired
    deletes; all others are explicit deletes.

    Raises:
        ConfigurationError: On missing run/watch/key or a bad template
        EvaluationError: If an observed resource is None
    """
    request.validate("delete")
    state = DELETE_PIPELINE.run(_DeleteState(request=request, recorder=InfoRecorder(request.include_info)))

    result = state.recorder.result
    result.phase = ResultPhase.ONLINE
    result.message = (
        f"Delete action was successful: Desired deletes {len(state.desired_deletes)}: "
        f"Explicit deletes {len(state.explicit_deletes)}"
    )
    logger.debug(f"Task {request.task_key!r}: {result.message}")
    return DeleteResponse(explicit_deletes=state.explicit_deletes, result=result)
