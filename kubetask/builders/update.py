"""Update builder: merges an apply patch into every targeted resource."""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..errors import ConfigurationError, EvaluationError, MergeError
from ..info import InfoRecorder
from ..merge import MergeFn, three_way_merge
from ..models import ResourceSelector, Result, ResultPhase
from ..pipeline import Pipeline, Stage
from ..resources import Resource
from ..selector import matches
from .base import BuildRequest

logger = logging.getLogger(__name__)

SKIP_MESSAGE = "No eligible resources found to update"


@dataclass
class UpdateRequest(BuildRequest):
    """Inputs of the update builder.

    Attributes:
        apply: Patch merged into every targeted resource
        target: Selects the resources to update
        merge: Three-way merge collaborator
    """

    apply: dict[str, Any] | None = None
    target: ResourceSelector | None = None
    merge: MergeFn = three_way_merge


@dataclass
class UpdateResponse:
    """Merged resources, split by who created them.

    Attributes:
        desired_updates: Created due to the current watch; the host patches them
        explicit_updates: Foreign resources the host must update directly
    """

    desired_updates: list[Resource] = field(default_factory=list)
    explicit_updates: list[Resource] = field(default_factory=list)
    result: Result = field(default_factory=Result)


@dataclass
class _UpdateState:
    request: UpdateRequest
    recorder: InfoRecorder
    filtered: list[Resource] = field(default_factory=list)
    marked_desired: list[Resource] = field(default_factory=list)
    marked_explicit: list[Resource] = field(default_factory=list)
    desired_updates: list[Resource] = field(default_factory=list)
    explicit_updates: list[Resource] = field(default_factory=list)
    halted: bool = False


def _filter_resources(state: _UpdateState) -> _UpdateState:
    for observed in state.request.observed_resources:
        if observed is None:
            raise EvaluationError("Can't filter resources: Nil observed object")
        if matches(observed, state.request.target):
            state.filtered.append(observed)
        else:
            state.recorder.skipped_resource(observed, "Skipped for update")
    return state


def _skip_if_none(state: _UpdateState) -> _UpdateState:
    state.halted = not state.filtered
    return state


def _group_by_provenance(state: _UpdateState) -> _UpdateState:
    watch_uid = state.request.watch.uid
    for resource in state.filtered:
        if resource.is_owned_by_watch(watch_uid):
            state.marked_desired.append(resource)
            state.recorder.desired_resource(resource, "Marked for desired update")
        else:
            state.marked_explicit.append(resource)
            state.recorder.explicit_resource(resource, "Marked for explicit update")
    return state


def _apply(request: UpdateRequest, resources: list[Resource]) -> list[Resource]:
    merged = []
    for resource in resources:
        try:
            final = request.merge(resource.to_document(), dict(request.apply), dict(request.apply))
        except Exception as e:
            raise MergeError(f"Can't update {resource}: {e}", resource.identity()) from e
        merged.append(Resource.from_document(final))
    return merged


def _apply_desired(state: _UpdateState) -> _UpdateState:
    state.desired_updates = _apply(state.request, state.marked_desired)
    return state


def _apply_explicit(state: _UpdateState) -> _UpdateState:
    state.explicit_updates = _apply(state.request, state.marked_explicit)
    return state


UPDATE_PIPELINE = Pipeline("update", [
    Stage("filter resources", _filter_resources),
    Stage("skip when nothing matched", _skip_if_none),
    Stage("group resources by update type", _group_by_provenance),
    Stage("apply desired updates", _apply_desired),
    Stage("apply explicit updates", _apply_explicit),
])


def build_update_states(request: UpdateRequest) -> UpdateResponse:
    """Merge the apply patch into each resource selected by target.

    Each resource is merged as merge(observed, apply, apply). When target
    selects nothing the result is Skipped and nothing is returned.

    Raises:
        ConfigurationError: On missing run/watch/key, apply or target
        EvaluationError: If an observed resource is None
        MergeError: If a resource can't be merged; carries its identity
    """
    request.validate("update")
    if not request.apply:
        raise ConfigurationError(f"Can't update: Missing update state: {request.task_key!r}")
    if request.target is None or not request.target.selector_terms:
        raise ConfigurationError(f"Can't update: Missing target selector: {request.task_key!r}")

    state = UPDATE_PIPELINE.run(_UpdateState(request=request, recorder=InfoRecorder(request.include_info)))
    if state.halted:
        logger.debug(f"Task {request.task_key!r}: {SKIP_MESSAGE}")
        return UpdateResponse(result=Result(phase=ResultPhase.SKIPPED, message=SKIP_MESSAGE))

    result = state.recorder.result
    result.phase = ResultPhase.ONLINE
    result.message = (
        f"Update action was successful: Desired updates {len(state.desired_updates)}: "
        f"Explicit updates {len(state.explicit_updates)}"
    )
    logger.debug(f"Task {request.task_key!r}: {result.message}")
    return UpdateResponse(
        desired_updates=state.desired_updates,
        explicit_updates=state.explicit_updates,
        result=result,
    )
