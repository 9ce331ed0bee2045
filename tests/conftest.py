"""
Pytest configuration and fixtures for Kubetask tests.
"""

import tempfile
from pathlib import Path

import pytest

from kubetask.resources import ANNOTATION_CREATED_DUE_TO_WATCH, Resource

WATCH_UID = "watch-uid-1"


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def make_resource():
    """Factory for resources with the usual metadata fields."""

    def _make(
        kind="Pod",
        name="my-pod",
        namespace="",
        api_version="v1",
        uid="",
        labels=None,
        annotations=None,
        spec=None,
        **extra,
    ):
        metadata = {"name": name}
        if namespace:
            metadata["namespace"] = namespace
        if uid:
            metadata["uid"] = uid
        if labels:
            metadata["labels"] = labels
        if annotations:
            metadata["annotations"] = annotations
        document = {"apiVersion": api_version, "kind": kind, "metadata": metadata}
        if spec is not None:
            document["spec"] = spec
        document.update(extra)
        return Resource.from_document(document)

    return _make


@pytest.fixture
def run(make_resource):
    """The Run resource; it is also the watch."""
    return make_resource(
        kind="Run",
        name="my-run",
        namespace="default",
        api_version="dao.mayadata.io/v1alpha1",
        uid=WATCH_UID,
    )


@pytest.fixture
def watch(run):
    return run


@pytest.fixture
def owned_annotations():
    """Annotations marking a resource as created due to the watch."""
    return {ANNOTATION_CREATED_DUE_TO_WATCH: WATCH_UID}


@pytest.fixture
def pod_template():
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": "my-pod", "namespace": "default"},
        "spec": {"containers": [{"name": "web", "image": "nginx"}]},
    }


@pytest.fixture
def service(make_resource):
    return make_resource(kind="Service", name="my-svc", namespace="default")
