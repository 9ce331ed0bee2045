"""
Kubetask Resources - value model for Kubernetes-style unstructured objects.
"""

from .annotations import (
    ANNOTATION_CREATED_DUE_TO_WATCH,
    ANNOTATION_RUN_NAME,
    ANNOTATION_RUN_UID,
    ANNOTATION_TASK_KEY,
    ANNOTATION_WATCH_NAME,
    ANNOTATION_WATCH_UID,
)
from .base import OwnerRef, Resource, ResourceIdentity, ResourceKey
from .paths import ABSENT, get_path, set_path, split_path, stringify

__all__ = [
    "ABSENT",
    "ANNOTATION_CREATED_DUE_TO_WATCH",
    "ANNOTATION_RUN_NAME",
    "ANNOTATION_RUN_UID",
    "ANNOTATION_TASK_KEY",
    "ANNOTATION_WATCH_NAME",
    "ANNOTATION_WATCH_UID",
    "OwnerRef",
    "Resource",
    "ResourceIdentity",
    "ResourceKey",
    "get_path",
    "set_path",
    "split_path",
    "stringify",
]
