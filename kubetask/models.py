"""
Centralized Pydantic models for Kubetask.

This module contains the declarative specs and the result models used
throughout the engine:
- Selectors, conditions and asserts
- Task and Run specs
- Task results and Run status
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, JsonValue, field_validator, model_validator

from .errors import ConfigurationError
from .resources.paths import stringify


# =============================================================================
# Core Enums
# =============================================================================

class ResourceOperator(str, Enum):
    """Operators applied to the resources selected by a condition."""
    EXISTS = "Exists"
    NOT_EXIST = "NotExist"
    EQUALS_COUNT = "EqualsCount"
    GTE = "GTE"
    LTE = "LTE"


COUNT_OPERATORS = frozenset(
    {ResourceOperator.EQUALS_COUNT, ResourceOperator.GTE, ResourceOperator.LTE}
)


class AssertOperator(str, Enum):
    """How the conditions of an assert are combined."""
    OR = "OR"
    AND = "AND"


class ResultPhase(str, Enum):
    """Phase of a task result or of a Run."""
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    ERROR = "Error"
    ONLINE = "Online"
    SKIPPED = "Skipped"
    ASSERT_FAILED = "AssertFailed"
    ASSERT_PASSED = "AssertPassed"


class TaskResultKind(str, Enum):
    """Label of the builder that produced a task result."""
    UPDATE = "update"
    CREATE_OR_DELETE = "createOrDelete"
    ASSERT = "assert"


class IncludeInfoKey(str, Enum):
    """Kinds of per-resource details that can be published in results."""
    ALL = "*"
    SKIPPED = "skipped-resources"
    DESIRED = "desired-resources"
    EXPLICIT = "explicit-resources"
    WARNINGS = "warnings"


class _SpecModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Selectors, Conditions & Asserts
# =============================================================================

class SelectorTerm(_SpecModel):
    """One AND-group of field and label constraints.

    Attributes:
        match_fields: Dot-separated path -> expected value (as a string)
        match_labels: Label key -> expected value
    """
    match_fields: dict[str, str] = Field(default_factory=dict, alias="matchFields")
    match_labels: dict[str, str] = Field(default_factory=dict, alias="matchLabels")

    @field_validator("match_fields", "match_labels", mode="before")
    @classmethod
    def _stringify_values(cls, v):
        # YAML happily turns `replicas: 2` into an int
        if isinstance(v, dict):
            return {str(k): stringify(val) for k, val in v.items()}
        return v


class ResourceSelector(_SpecModel):
    """Ordered selector terms; a resource matches if any term matches."""
    selector_terms: list[SelectorTerm] = Field(default_factory=list, alias="selectorTerms")


class Condition(_SpecModel):
    """A selector plus an operator applied to the selected resources.

    Raises:
        ConfigurationError: When a count based operator has no count
    """
    resource_selector: ResourceSelector = Field(
        default_factory=ResourceSelector, alias="resourceSelector"
    )
    operator: ResourceOperator = ResourceOperator.EXISTS
    count: int | None = None

    @field_validator("operator", mode="before")
    @classmethod
    def _default_operator(cls, v):
        return v or ResourceOperator.EXISTS

    @model_validator(mode="after")
    def _require_count(self):
        if self.count is None and self.operator in COUNT_OPERATORS:
            raise ConfigurationError(
                f"Invalid resource condition: Count must be set when operator is {self.operator.value!r}"
            )
        return self


class Assert(_SpecModel):
    """Conditions combined with AND/OR, or a state to assert.

    The same model is used for `if` guards on tasks and runs.
    """
    operator: AssertOperator = AssertOperator.OR
    conditions: list[Condition] = Field(default_factory=list)
    state: dict[str, JsonValue] | None = None

    @field_validator("operator", mode="before")
    @classmethod
    def _default_operator(cls, v):
        return v or AssertOperator.OR


# =============================================================================
# Task & Run specs
# =============================================================================

class Task(_SpecModel):
    """Unit of execution of a Run.

    At most one of `apply` (optionally with `target` or `replicas`) and
    `assert` is expected; the task executor enforces this.
    """
    key: str = ""
    desc: str = ""
    if_: Assert | None = Field(default=None, alias="if")
    apply: dict[str, JsonValue] | None = Field(
        default=None,
        validation_alias=AliasChoices("apply", "desired"),
    )
    replicas: int | None = None
    target: ResourceSelector | None = Field(
        default=None,
        validation_alias=AliasChoices("target", "targetSelector"),
    )
    assert_: Assert | None = Field(default=None, alias="assert")


class RunSpec(_SpecModel):
    """Spec of a Run custom resource.

    Tasks are kept as raw values here and validated one at a time by the
    run orchestrator, so that one malformed task fails alone.
    """
    run_if: Assert | None = Field(default=None, alias="runIf")
    tasks: list[JsonValue] = Field(default_factory=list)
    include_info: dict[IncludeInfoKey, bool] = Field(default_factory=dict, alias="includeInfoOn")


# =============================================================================
# Results & Status
# =============================================================================

class _ResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting empty fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_defaults=True)


class Result(_ResultModel):
    """Outcome of an assert or of a builder."""
    phase: ResultPhase | None = None
    message: str = ""
    errors: list[str] = Field(default_factory=list)
    warns: list[str] = Field(default_factory=list)
    explicit_resources_info: list[str] = Field(default_factory=list, alias="explicitResourcesInfo")
    desired_resources_info: list[str] = Field(default_factory=list, alias="desiredResourcesInfo")
    skipped_resources_info: list[str] = Field(default_factory=list, alias="skippedResourcesInfo")


class TaskResult(_ResultModel):
    """Result of a single task, keyed by the task key."""
    key: str
    kind: TaskResultKind | None = None
    phase: ResultPhase
    message: str = ""
    if_cond_result: Result | None = Field(default=None, alias="ifCondResult")
    result: Result | None = None

    @property
    def is_skipped(self) -> bool:
        return self.phase == ResultPhase.SKIPPED


class Completion(_ResultModel):
    """Whether the observed attachments match the desired ones."""
    state: bool = False
    observed: int = 0
    desired: int = 0


class RunStatus(_ResultModel):
    """Aggregated status of a Run."""
    phase: ResultPhase = ResultPhase.IN_PROGRESS
    reason: str = ""
    message: str = ""
    warn: str = ""
    errors: list[str] = Field(default_factory=list)
    completion: Completion = Field(default_factory=Completion)
    task_results: list[TaskResult] = Field(default_factory=list, alias="taskResults")
    if_cond_result: Result | None = Field(default=None, alias="ifCondResult")

    def get(self, key: str) -> TaskResult | None:
        """Return the result recorded for a task key, if any."""
        for result in self.task_results:
            if result.key == key:
                return result
        return None

    def _count(self, kind: TaskResultKind | None = None, phase: ResultPhase | None = None) -> int:
        return sum(
            1
            for r in self.task_results
            if (kind is None or r.kind == kind) and (phase is None or r.phase == phase)
        )

    def skipped_task_count(self) -> int:
        return self._count(phase=ResultPhase.SKIPPED)

    def assert_task_count(self) -> int:
        return self._count(kind=TaskResultKind.ASSERT)

    def failed_assert_task_count(self) -> int:
        return self._count(kind=TaskResultKind.ASSERT, phase=ResultPhase.ASSERT_FAILED)

    def passed_assert_task_count(self) -> int:
        return self._count(kind=TaskResultKind.ASSERT, phase=ResultPhase.ASSERT_PASSED)

    def update_task_count(self) -> int:
        return self._count(kind=TaskResultKind.UPDATE)

    def create_or_delete_task_count(self) -> int:
        return self._count(kind=TaskResultKind.CREATE_OR_DELETE)

    def to_status_patch(self) -> dict[str, Any]:
        """Render the status patch handed back to the controller host.

        The host only knows `Online` and `Error`, so a skipped Run is
        reported as `Online`.
        """
        patch: dict[str, Any] = {
            "phase": ResultPhase.ERROR.value if self.phase == ResultPhase.ERROR else ResultPhase.ONLINE.value,
            "completion": self.completion.model_dump(mode="json"),
        }
        if self.reason:
            patch["reason"] = self.reason
        if self.warn:
            patch["warn"] = self.warn
        if self.message:
            patch["message"] = self.message
        if self.errors:
            patch["errors"] = list(self.errors)
        if self.task_results:
            patch["taskResults"] = [r.to_dict() for r in self.task_results]
        return patch
