"""Dot-separated field paths into unstructured documents.

Paths look like ``metadata.name`` or ``spec.containers.[0].image``; a segment
written as ``[N]`` indexes into an array.
"""

import json
import re
from typing import Any

from ..errors import EvaluationError

_INDEX_SEGMENT = re.compile(r"^\[(.*)\]$")


class _Absent:
    """Sentinel for a path that does not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


def split_path(path: str) -> list[str | int]:
    """Split a dot-separated path into keys and array indexes.

    Args:
        path: Path such as ``a.b`` or ``a.[3].b``

    Returns:
        List of segments; array indexes are returned as ints

    Raises:
        EvaluationError: If the path is empty, has an empty segment or an
            index that is not a non-negative integer
    """
    if not path:
        raise EvaluationError("Invalid field path: Empty path")
    segments: list[str | int] = []
    for raw in path.split("."):
        if raw == "":
            raise EvaluationError(f"Invalid field path {path!r}: Empty segment")
        match = _INDEX_SEGMENT.match(raw)
        if match is None:
            segments.append(raw)
            continue
        index = match.group(1)
        if not index.isdigit():
            raise EvaluationError(
                f"Invalid field path {path!r}: Bad array index {raw!r}"
            )
        segments.append(int(index))
    return segments


def get_path(document: Any, path: str) -> Any:
    """Resolve a path against a document.

    Type mismatches along the way (indexing an object, keying an array)
    resolve to ABSENT rather than raising.

    Returns:
        The value found at path, or ABSENT
    """
    current = document
    for segment in split_path(path):
        if isinstance(segment, int):
            if not isinstance(current, list) or segment >= len(current):
                return ABSENT
            current = current[segment]
        else:
            if not isinstance(current, dict) or segment not in current:
                return ABSENT
            current = current[segment]
    return current


def set_path(document: dict[str, Any], path: str, value: Any) -> None:
    """Set a value at path, creating intermediate objects as needed.

    Mutates document in place; callers own the document they pass.

    Raises:
        EvaluationError: If an intermediate segment is not an object, or an
            index is out of range
    """
    segments = split_path(path)
    current: Any = document
    for segment in segments[:-1]:
        if isinstance(segment, int):
            if not isinstance(current, list) or segment >= len(current):
                raise EvaluationError(f"Can't set {path!r}: Index {segment} out of range")
            current = current[segment]
            continue
        if not isinstance(current, dict):
            raise EvaluationError(f"Can't set {path!r}: {segment!r} is not an object")
        current = current.setdefault(segment, {})
    last = segments[-1]
    if isinstance(last, int):
        if not isinstance(current, list) or last >= len(current):
            raise EvaluationError(f"Can't set {path!r}: Index {last} out of range")
        current[last] = value
    elif isinstance(current, dict):
        current[last] = value
    else:
        raise EvaluationError(f"Can't set {path!r}: Parent is not an object")


def stringify(value: Any) -> str:
    """Render a field value the way selector comparisons see it.

    Strings are returned as-is, booleans as ``true``/``false``, integral
    numbers in decimal (``2.0`` becomes ``2``), null as ``null`` and
    arrays/objects as compact JSON with sorted keys. Both an integer ``2``
    and a string ``"2"`` therefore compare equal to ``"2"``.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if value is None:
        return "null"
    return json.dumps(value, sort_keys=True, separators=(",", ":"))
