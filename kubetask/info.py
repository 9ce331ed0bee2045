"""Optional per-resource details published in results."""

from collections.abc import Iterable, Mapping

from .models import IncludeInfoKey, Result
from .resources import Resource

IncludeInfo = Mapping[IncludeInfoKey, bool]


def normalize_include_info(include_info: Mapping | Iterable | None) -> dict[IncludeInfoKey, bool]:
    """Accept a {key: bool} mapping or an iterable of enabled keys."""
    if not include_info:
        return {}
    if isinstance(include_info, Mapping):
        return {IncludeInfoKey(k): bool(v) for k, v in include_info.items()}
    return {IncludeInfoKey(k): True for k in include_info}


def describe(resource: Resource, message: str) -> str:
    """Format a resource entry, e.g. 'Marked for create: "ns" / "name": v1, Kind=Pod'."""
    return f'{message}: "{resource.namespace}" / "{resource.name}": {resource.gvk}'


class InfoRecorder:
    """Appends resource details to a Result when the matching key is enabled.

    Args:
        include_info: Enabled include-info keys; `*` enables everything
        result: Result to record into (a fresh one when omitted)
    """

    def __init__(self, include_info: IncludeInfo | None = None, result: Result | None = None):
        self.include_info = dict(include_info or {})
        self.result = result if result is not None else Result()

    def is_enabled(self, key: IncludeInfoKey) -> bool:
        return bool(self.include_info.get(key) or self.include_info.get(IncludeInfoKey.ALL))

    def desired(self, *messages: str) -> None:
        if self.is_enabled(IncludeInfoKey.DESIRED):
            self.result.desired_resources_info.extend(messages)

    def explicit(self, *messages: str) -> None:
        if self.is_enabled(IncludeInfoKey.EXPLICIT):
            self.result.explicit_resources_info.extend(messages)

    def skipped(self, *messages: str) -> None:
        if self.is_enabled(IncludeInfoKey.SKIPPED):
            self.result.skipped_resources_info.extend(messages)

    def warn(self, *messages: str) -> None:
        if self.is_enabled(IncludeInfoKey.WARNINGS):
            self.result.warns.extend(messages)

    def desired_resource(self, resource: Resource, message: str) -> None:
        self.desired(describe(resource, message))

    def explicit_resource(self, resource: Resource, message: str) -> None:
        self.explicit(describe(resource, message))

    def skipped_resource(self, resource: Resource, message: str) -> None:
        self.skipped(describe(resource, message))
