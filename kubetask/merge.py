"""
Three-way merge of unstructured documents.

The update builder and state assertions only supply the three inputs
(observed, last applied, desired) and collect the output; any callable with
the `MergeFn` signature can be injected in place of `three_way_merge`.

Rules:
- fields set in desired win over observed
- fields absent from desired fall back to observed
- fields present in last applied but removed from desired are deleted
- lists whose items are all objects carrying a `name` are merged by name,
  any other list is replaced by the desired list
"""

import copy
from collections.abc import Callable
from typing import Any

from .errors import MergeError

MergeFn = Callable[[dict[str, Any], dict[str, Any], dict[str, Any]], dict[str, Any]]


def three_way_merge(
    observed: dict[str, Any],
    last_applied: dict[str, Any],
    desired: dict[str, Any],
) -> dict[str, Any]:
    """Merge desired into observed, pruning what last applied no longer sets.

    Args:
        observed: Current document as seen in the cluster
        last_applied: Document applied on the previous pass
        desired: Document to apply now

    Returns:
        A new merged document; inputs are not modified

    Raises:
        MergeError: If any of the inputs is not an object
    """
    for label, doc in (("observed", observed), ("last applied", last_applied), ("desired", desired)):
        if not isinstance(doc, dict):
            raise MergeError(f"Can't merge: {label} state must be an object, got {type(doc).__name__}")
    return _merge_objects(observed, last_applied or {}, desired)


def _merge_objects(observed: dict, last_applied: dict, desired: dict) -> dict:
    result = copy.deepcopy(observed)
    for key in last_applied:
        if key not in desired:
            result.pop(key, None)
    for key, want in desired.items():
        result[key] = _merge_values(observed.get(key), last_applied.get(key), want)
    return result


def _merge_values(observed: Any, last_applied: Any, desired: Any) -> Any:
    if isinstance(desired, dict) and isinstance(observed, dict):
        return _merge_objects(observed, last_applied if isinstance(last_applied, dict) else {}, desired)
    if _is_named_list(desired) and _is_named_list(observed):
        return _merge_named_lists(observed, last_applied if _is_named_list(last_applied) else [], desired)
    return copy.deepcopy(desired)


def _is_named_list(value: Any) -> bool:
    return (
        isinstance(value, list)
        and len(value) > 0
        and all(isinstance(item, dict) and isinstance(item.get("name"), str) for item in value)
    )


def _merge_named_lists(observed: list, last_applied: list, desired: list) -> list:
    observed_by_name = {item["name"]: item for item in observed}
    last_by_name = {item["name"]: item for item in last_applied}
    desired_names = {item["name"] for item in desired}

    merged = []
    # keep observed order; drop items that were applied before and are gone now
    for item in observed:
        name = item["name"]
        if name in desired_names or name not in last_by_name:
            merged.append(copy.deepcopy(item))
    names = [item["name"] for item in merged]
    for want in desired:
        name = want["name"]
        current = observed_by_name.get(name)
        value = _merge_objects(current, last_by_name.get(name, {}), want) if current is not None else copy.deepcopy(want)
        if name in names:
            merged[names.index(name)] = value
        else:
            merged.append(value)
            names.append(name)
    return merged
