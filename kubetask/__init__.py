"""
Kubetask - Declarative tasks for Kubernetes-style resources.

A Run holds an ordered list of tasks. Each pass, the engine evaluates the
tasks against a snapshot of observed resources and works out:
- Resources that should exist (desired)
- Resources to update or delete directly (explicit)
- A status report with one result per task

Everything is a pure, synchronous computation; applying the outcome to a
cluster is up to the controller host.
"""

from .assertions import evaluate_assert, evaluate_condition
from .errors import (
    ConfigurationError,
    DuplicateTaskKeyError,
    EvaluationError,
    InvalidRunError,
    KubetaskError,
    MergeError,
)
from .models import Assert, Condition, ResourceSelector, RunSpec, RunStatus, SelectorTerm, Task
from .reconciler import HookRequest, HookResponse, sync
from .resources import Resource
from .run import RunRequest, RunResponse, execute_run
from .selector import matches
from .settings import KubetaskSettings, get_settings, reload_settings
from .task import TaskRequest, TaskResponse, execute_task

__version__ = "0.1.0"
__all__ = [
    "Assert",
    "Condition",
    "ConfigurationError",
    "DuplicateTaskKeyError",
    "EvaluationError",
    "HookRequest",
    "HookResponse",
    "InvalidRunError",
    "KubetaskError",
    "KubetaskSettings",
    "MergeError",
    "Resource",
    "ResourceSelector",
    "RunRequest",
    "RunResponse",
    "RunSpec",
    "RunStatus",
    "SelectorTerm",
    "Task",
    "TaskRequest",
    "TaskResponse",
    "evaluate_assert",
    "evaluate_condition",
    "execute_run",
    "execute_task",
    "get_settings",
    "matches",
    "reload_settings",
    "sync",
]
