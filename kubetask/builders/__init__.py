"""
Kubetask Builders - turn a task's intent into resource deltas.
"""

from .create import CreateRequest, CreateResponse, build_create_states
from .createordelete import (
    CreateOrDeleteRequest,
    CreateOrDeleteResponse,
    build_create_or_delete_states,
    is_delete,
)
from .delete import DeleteRequest, DeleteResponse, build_delete_states, name_matches
from .update import UpdateRequest, UpdateResponse, build_update_states

__all__ = [
    "CreateOrDeleteRequest",
    "CreateOrDeleteResponse",
    "CreateRequest",
    "CreateResponse",
    "DeleteRequest",
    "DeleteResponse",
    "UpdateRequest",
    "UpdateResponse",
    "build_create_or_delete_states",
    "build_create_states",
    "build_delete_states",
    "build_update_states",
    "is_delete",
    "name_matches",
]
