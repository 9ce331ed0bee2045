"""Create builder: turns a template into N desired resources."""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..errors import ConfigurationError
from ..info import InfoRecorder
from ..models import Result, ResultPhase
from ..pipeline import Pipeline, Stage
from ..resources import (
    ANNOTATION_CREATED_DUE_TO_WATCH,
    ANNOTATION_RUN_NAME,
    ANNOTATION_RUN_UID,
    ANNOTATION_TASK_KEY,
    ANNOTATION_WATCH_NAME,
    ANNOTATION_WATCH_UID,
    Resource,
)
from .base import BuildRequest, base_name, template_from

logger = logging.getLogger(__name__)


@dataclass
class CreateRequest(BuildRequest):
    """Inputs of the create builder.

    Attributes:
        apply: Template document from the task
        desired_template: Template resource; takes precedence over apply
        replicas: Number of resources to emit, at least 1
    """

    apply: dict[str, Any] | None = None
    desired_template: Resource | None = None
    replicas: int = 1


@dataclass
class CreateResponse:
    desired_resources: list[Resource] = field(default_factory=list)
    result: Result = field(default_factory=Result)


@dataclass
class _CreateState:
    request: CreateRequest
    recorder: InfoRecorder
    template: Resource | None = None
    name: str = ""
    desired: list[Resource] = field(default_factory=list)


def _set_template(state: _CreateState) -> _CreateState:
    req = state.request
    state.template = template_from(req.apply, req.desired_template, req.task_key, "create")
    return state


def _eval_name(state: _CreateState) -> _CreateState:
    name = base_name(state.template)
    if not name:
        raise ConfigurationError(f"Invalid create state: Missing name: {state.request.task_key!r}")
    state.name = name
    state.template = state.template.with_generate_name("")
    return state


def _annotate_template(state: _CreateState) -> _CreateState:
    req = state.request
    state.template = state.template.with_annotations({
        ANNOTATION_CREATED_DUE_TO_WATCH: req.watch.uid,
        ANNOTATION_RUN_UID: req.run.uid,
        ANNOTATION_RUN_NAME: req.run.name,
        ANNOTATION_WATCH_UID: req.watch.uid,
        ANNOTATION_WATCH_NAME: req.watch.name,
        ANNOTATION_TASK_KEY: req.task_key,
    })
    return state


def _build_desired(state: _CreateState) -> _CreateState:
    replicas = state.request.replicas
    if replicas == 1:
        names = [state.name]
    else:
        names = [f"{state.name}-{i}" for i in range(replicas)]
    for name in names:
        desired = state.template.with_name(name)
        state.desired.append(desired)
        state.recorder.desired_resource(desired, "Marked for create")
    return state


CREATE_PIPELINE = Pipeline("create", [
    Stage("set desired template", _set_template),
    Stage("eval desired name", _eval_name),
    Stage("annotate desired template", _annotate_template),
    Stage("build desired states", _build_desired),
])


def build_create_states(request: CreateRequest) -> CreateResponse:
    """Build the resources a create task wants to exist.

    With one replica the resource takes the base name (generateName, else
    name). With N replicas the resources are named `base-0` .. `base-N-1`.
    Every resource carries the provenance and run annotations.

    Args:
        request: Create inputs

    Returns:
        CreateResponse with the desired resources and an Online result

    Raises:
        ConfigurationError: On missing run/watch/key, a bad template, a
            missing name or replicas below 1
    """
    request.validate("create")
    if request.replicas is None or request.replicas < 1:
        raise ConfigurationError(
            f"Can't create: Invalid replicas {request.replicas}: {request.task_key!r}"
        )
    state = CREATE_PIPELINE.run(_CreateState(request=request, recorder=InfoRecorder(request.include_info)))

    result = state.recorder.result
    result.phase = ResultPhase.ONLINE
    result.message = f"Create action was successful for {len(state.desired)} resource(s)"
    logger.debug(f"Task {request.task_key!r}: {result.message}")
    return CreateResponse(desired_resources=state.desired, result=result)
