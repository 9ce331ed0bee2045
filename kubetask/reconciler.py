"""
Host adapter.

`sync` is called by the controller host once per watch event. The watch is
the Run resource itself; its attachments are the observed resources. The
response carries the desired attachments, the explicit updates and deletes,
and the status patch for the Run.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from .errors import InvalidRunError, KubetaskError
from .info import normalize_include_info
from .merge import MergeFn, three_way_merge
from .models import ResultPhase, RunSpec
from .pipeline import Pipeline, Stage
from .resources import Resource, ResourceKey
from .run import RunRequest, RunResponse, execute_run
from .settings import get_settings

logger = logging.getLogger(__name__)


@dataclass
class HookRequest:
    """Observed state handed over by the host.

    Attributes:
        watch: The Run resource that triggered this sync
        attachments: Observed child resources of the watch
    """

    watch: Resource | None
    attachments: list[Resource] = field(default_factory=list)

    @classmethod
    def from_documents(cls, watch: Mapping[str, Any], attachments: Iterable[Mapping[str, Any]] = ()) -> "HookRequest":
        return cls(
            watch=Resource.from_document(watch),
            attachments=[Resource.from_document(doc) for doc in attachments],
        )

    def by_identity(self) -> dict[ResourceKey, Resource]:
        """Attachments keyed by (apiVersion, kind, namespace, name)."""
        return {a.key: a for a in self.attachments}

    def find(self, api_version: str, kind: str, namespace: str, name: str) -> Resource | None:
        return self.by_identity().get(ResourceKey(api_version, kind, namespace, name))

    def describe(self) -> str:
        if self.watch is None:
            return "nil watch"
        return f"Watch of kind={self.watch.kind} name={self.watch.namespace}/{self.watch.name}"


@dataclass
class HookResponse:
    """What the host applies after a sync.

    Attributes:
        attachments: Desired attachments; engine-created resources left out
            of this list get deleted by the host
        explicit_updates: Updates to resources the watch did not create
        explicit_deletes: Deletes of resources the watch did not create
        status: Status patch for the Run
        skip_reconcile: Tells the host not to apply anything this time
    """

    attachments: list[Resource] = field(default_factory=list)
    explicit_updates: list[Resource] = field(default_factory=list)
    explicit_deletes: list[Resource] = field(default_factory=list)
    status: dict[str, Any] = field(default_factory=dict)
    skip_reconcile: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "attachments": [r.to_document() for r in self.attachments],
            "explicitUpdates": [r.to_document() for r in self.explicit_updates],
            "explicitDeletes": [r.to_document() for r in self.explicit_deletes],
            "status": self.status,
            "skipReconcile": self.skip_reconcile,
        }


@dataclass
class _SyncState:
    request: HookRequest
    merge: MergeFn
    response: HookResponse = field(default_factory=HookResponse)
    spec: RunSpec | None = None
    run_response: RunResponse | None = None
    error: Exception | None = None


def _log_sync_start(state: _SyncState) -> _SyncState:
    logger.debug(f"Starting sync of run: {state.request.describe()}")
    return state


def _validate_hook(state: _SyncState) -> _SyncState:
    if state.request is None or state.request.watch is None:
        raise InvalidRunError("Invalid sync request: Nil watch")
    return state


def _eval_run(state: _SyncState) -> _SyncState:
    try:
        state.spec = RunSpec.model_validate(state.request.watch.spec or {})
    except ValidationError as e:
        raise InvalidRunError(f"Invalid run spec: {e}") from e
    return state


def _invoke_run(state: _SyncState) -> _SyncState:
    spec = state.spec
    include_info = spec.include_info or normalize_include_info(get_settings().include_info)
    state.run_response = execute_run(RunRequest(
        run=state.request.watch,
        watch=state.request.watch,
        tasks=spec.tasks,
        run_if=spec.run_if,
        include_info=include_info,
        observed_resources=state.request.attachments,
        merge=state.merge,
    ))
    return state


def _fill_sync_response(state: _SyncState) -> _SyncState:
    got = state.run_response
    response = state.response
    response.attachments.extend(got.desired_resources)
    response.explicit_updates.extend(got.explicit_updates)
    response.explicit_deletes.extend(got.explicit_deletes)
    return state


def _log_sync_finish(state: _SyncState) -> _SyncState:
    response = state.response
    logger.debug(
        f"Completed sync of run: {state.request.describe()}: "
        f"{len(response.attachments)} attachment(s), {len(response.explicit_updates)} explicit update(s), "
        f"{len(response.explicit_deletes)} explicit delete(s)"
    )
    return state


SYNC_PIPELINE = Pipeline("sync", [
    Stage("log sync start", _log_sync_start),
    Stage("eval run", _eval_run),
    Stage("invoke run", _invoke_run),
    Stage("fill sync response", _fill_sync_response),
    Stage("log sync finish", _log_sync_finish),
])


def _update_watch_status(state: _SyncState) -> None:
    response = state.response
    if state.run_response is not None:
        response.status = state.run_response.status.to_status_patch()
        if state.run_response.status.phase == ResultPhase.ERROR:
            response.skip_reconcile = True
        return
    response.status = {
        "phase": ResultPhase.ERROR.value,
        "reason": str(state.error),
        "completion": {"state": False, "observed": len(state.request.attachments), "desired": 0},
    }


def sync(request: HookRequest, merge: MergeFn = three_way_merge) -> HookResponse:
    """Reconcile a Run against its observed attachments.

    Errors raised while reading or executing the Run are logged, turned
    into an Error status and set `skip_reconcile`; they are not raised.

    Args:
        request: Watch and attachments from the host
        merge: Three-way merge collaborator for update tasks

    Returns:
        HookResponse for the host

    Raises:
        InvalidRunError: If the request has no watch
    """
    state = _SyncState(request=request, merge=merge)
    _validate_hook(state)
    try:
        state = SYNC_PIPELINE.run(state)
    except KubetaskError as e:
        logger.error(f"Failed to sync run: {request.describe()}: {e}")
        state.error = e
        state.run_response = None
        state.response.skip_reconcile = True

    _update_watch_status(state)
    if state.response.skip_reconcile:
        reason = state.error or state.response.status.get("reason", "")
        logger.info(f"Skipping sync of run: {request.describe()}: Reason={reason}")
    return state.response
