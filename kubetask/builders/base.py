"""Shared pieces of the state builders."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import ConfigurationError
from ..info import IncludeInfo
from ..resources import Resource


@dataclass
class BuildRequest:
    """Inputs common to every builder.

    Attributes:
        run: The Run resource being executed
        watch: The watch resource that triggered this pass
        task_key: Key of the task the builder runs for
        include_info: Enabled include-info keys
        observed_resources: Snapshot of observed resources
    """

    run: Resource | None
    watch: Resource | None
    task_key: str
    include_info: IncludeInfo = field(default_factory=dict)
    observed_resources: list[Resource] = field(default_factory=list)

    def validate(self, action: str) -> None:
        """Raise ConfigurationError when the task key, run or watch is missing."""
        if not self.task_key:
            raise ConfigurationError(f"Can't {action}: Missing task key")
        if self.run is None:
            raise ConfigurationError(f"Can't {action}: Missing run: {self.task_key!r}")
        if self.watch is None:
            raise ConfigurationError(f"Can't {action}: Missing watch: {self.task_key!r}")


def template_from(
    apply: Mapping[str, Any] | None,
    template: Resource | None,
    task_key: str,
    action: str,
) -> Resource:
    """Resolve the template a builder works from.

    An explicit template wins over `apply`. The result must be non-empty and
    carry both apiVersion and kind.

    Raises:
        ConfigurationError: If the template is missing or incomplete
    """
    if template is not None:
        resource = template.deep_copy()
    elif apply:
        resource = Resource.from_document(apply)
    else:
        raise ConfigurationError(f"Can't {action}: Nil {action} state found: {task_key!r}")

    if not resource.document:
        raise ConfigurationError(f"Empty {action} state: {task_key!r}")
    if not resource.api_version:
        raise ConfigurationError(f"Invalid {action} state: Missing apiversion: {task_key!r}")
    if not resource.kind:
        raise ConfigurationError(f"Invalid {action} state: Missing kind: {task_key!r}")
    return resource


def base_name(template: Resource) -> str:
    """generateName if set, else the template's name."""
    return template.generate_name or template.name
