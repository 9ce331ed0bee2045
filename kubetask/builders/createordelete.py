"""Dispatch an apply task to the create or the delete builder."""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..errors import ConfigurationError
from ..models import Result
from ..resources import Resource
from .base import BuildRequest
from .create import CreateRequest, build_create_states
from .delete import DeleteRequest, build_delete_states

logger = logging.getLogger(__name__)


@dataclass
class CreateOrDeleteRequest(BuildRequest):
    """Inputs of a create-or-delete task.

    Attributes:
        apply: Template document from the task
        replicas: None means 1; 0 means delete
    """

    apply: dict[str, Any] | None = None
    replicas: int | None = None


@dataclass
class CreateOrDeleteResponse:
    desired_resources: list[Resource] = field(default_factory=list)
    explicit_deletes: list[Resource] = field(default_factory=list)
    result: Result = field(default_factory=Result)
    is_delete: bool = False


def is_delete(apply: dict[str, Any] | None, replicas: int | None) -> bool:
    """Replicas of 0, or a `spec` explicitly set to null, mean delete."""
    if replicas == 0:
        return True
    return bool(apply) and "spec" in apply and apply["spec"] is None


def build_create_or_delete_states(request: CreateOrDeleteRequest) -> CreateOrDeleteResponse:
    """Run the create or the delete builder and forward its outcome as is.

    Raises:
        ConfigurationError: On negative replicas or whatever the chosen
            builder rejects
    """
    if request.replicas is not None and request.replicas < 0:
        raise ConfigurationError(
            f"Can't create or delete: Invalid replicas {request.replicas}: {request.task_key!r}"
        )
    common = dict(
        run=request.run,
        watch=request.watch,
        task_key=request.task_key,
        include_info=request.include_info,
        observed_resources=request.observed_resources,
        apply=request.apply,
    )

    if is_delete(request.apply, request.replicas):
        logger.debug(f"Task {request.task_key!r}: dispatching to delete")
        deleted = build_delete_states(DeleteRequest(**common))
        return CreateOrDeleteResponse(
            explicit_deletes=deleted.explicit_deletes,
            result=deleted.result,
            is_delete=True,
        )

    replicas = 1 if request.replicas is None else request.replicas
    logger.debug(f"Task {request.task_key!r}: dispatching to create with {replicas} replica(s)")
    created = build_create_states(CreateRequest(**common, replicas=replicas))
    return CreateOrDeleteResponse(desired_resources=created.desired_resources, result=created.result)
