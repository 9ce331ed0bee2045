"""Tests for the default three-way merge."""

import pytest

from kubetask.errors import MergeError
from kubetask.merge import three_way_merge


def test_desired_wins():
    observed = {"spec": {"replicas": 1, "paused": False}}
    patch = {"spec": {"replicas": 3}}
    assert three_way_merge(observed, patch, patch) == {"spec": {"replicas": 3, "paused": False}}


def test_removed_fields_are_pruned():
    observed = {"metadata": {"labels": {"a": "1", "b": "2", "keep": "x"}}}
    last_applied = {"metadata": {"labels": {"a": "1", "b": "2"}}}
    desired = {"metadata": {"labels": {"a": "1"}}}
    assert three_way_merge(observed, last_applied, desired) == {
        "metadata": {"labels": {"a": "1", "keep": "x"}}
    }


def test_inputs_are_not_modified():
    observed = {"spec": {"replicas": 1}}
    patch = {"spec": {"replicas": 3}}
    three_way_merge(observed, patch, patch)
    assert observed == {"spec": {"replicas": 1}}


def test_named_lists_merge_by_name():
    observed = {"containers": [{"name": "web", "image": "nginx:1", "ports": [80]}, {"name": "sidecar"}]}
    patch = {"containers": [{"name": "web", "image": "nginx:2"}]}
    merged = three_way_merge(observed, patch, patch)
    assert merged["containers"] == [
        {"name": "web", "image": "nginx:2", "ports": [80]},
        {"name": "sidecar"},
    ]


def test_named_list_items_removed_from_desired_are_dropped():
    observed = {"containers": [{"name": "web"}, {"name": "old"}]}
    last_applied = {"containers": [{"name": "web"}, {"name": "old"}]}
    desired = {"containers": [{"name": "web"}, {"name": "new"}]}
    merged = three_way_merge(observed, last_applied, desired)
    assert [c["name"] for c in merged["containers"]] == ["web", "new"]


def test_plain_lists_are_replaced():
    observed = {"finalizers": ["a", "b"]}
    patch = {"finalizers": ["c"]}
    assert three_way_merge(observed, patch, patch) == {"finalizers": ["c"]}


def test_rejects_non_objects():
    with pytest.raises(MergeError):
        three_way_merge({}, {}, ["not", "an", "object"])


def test_lists_with_non_string_names_are_replaced():
    observed = {"items": [{"name": {"x": 1}, "v": 1}]}
    patch = {"items": [{"name": {"x": 1}, "v": 2}]}
    assert three_way_merge(observed, patch, patch) == patch
