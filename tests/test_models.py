"""
Unit tests for Kubetask models.

Tests the Pydantic specs, their aliases and validation logic, and the
result models.
"""

import pytest

from kubetask.errors import ConfigurationError
from kubetask.models import (
    Assert,
    AssertOperator,
    Condition,
    IncludeInfoKey,
    ResourceOperator,
    ResultPhase,
    RunSpec,
    RunStatus,
    SelectorTerm,
    Task,
    TaskResult,
    TaskResultKind,
)


class TestConditionModel:
    """Test Condition construction rules."""

    @pytest.mark.parametrize("operator", ["EqualsCount", "GTE", "LTE"])
    def test_count_operator_requires_count(self, operator):
        with pytest.raises(ConfigurationError):
            Condition.model_validate({
                "resourceSelector": {"selectorTerms": [{"matchFields": {"kind": "Pod"}}]},
                "operator": operator,
            })

    @pytest.mark.parametrize("operator", ["Exists", "NotExist", ""])
    def test_other_operators_without_count(self, operator):
        condition = Condition.model_validate({
            "resourceSelector": {"selectorTerms": [{"matchFields": {"kind": "Pod"}}]},
            "operator": operator,
        })
        assert condition.count is None

    def test_default_operator(self):
        assert Condition().operator == ResourceOperator.EXISTS

    def test_count_operator_with_count(self):
        condition = Condition(operator=ResourceOperator.GTE, count=0)
        assert condition.count == 0


class TestSelectorTerm:
    """Test selector term parsing."""

    def test_values_are_stringified(self):
        term = SelectorTerm.model_validate({
            "matchFields": {"spec.replicas": 2, "spec.paused": False},
            "matchLabels": {"tier": 1},
        })
        assert term.match_fields == {"spec.replicas": "2", "spec.paused": "false"}
        assert term.match_labels == {"tier": "1"}

    def test_field_order_is_kept(self):
        term = SelectorTerm.model_validate({"matchFields": {"kind": "Pod", "apiVersion": "v1"}})
        assert list(term.match_fields) == ["kind", "apiVersion"]


class TestTaskModel:
    """Test Task aliases."""

    def test_aliases(self):
        task = Task.model_validate({
            "key": "update-pods",
            "if": {"conditions": []},
            "apply": {"metadata": {"labels": {"a": "b"}}},
            "target": {"selectorTerms": [{"matchFields": {"kind": "Pod"}}]},
        })
        assert task.if_ is not None
        assert task.target is not None
        assert task.assert_ is None

    def test_legacy_aliases(self):
        task = Task.model_validate({
            "key": "update-pods",
            "desired": {"kind": "Pod"},
            "targetSelector": {"selectorTerms": [{"matchFields": {"kind": "Pod"}}]},
        })
        assert task.apply == {"kind": "Pod"}
        assert task.target.selector_terms[0].match_fields == {"kind": "Pod"}

    def test_assert_alias(self):
        task = Task.model_validate({"key": "check", "assert": {"operator": "AND"}})
        assert task.assert_.operator == AssertOperator.AND

    def test_assert_default_operator(self):
        assert Assert.model_validate({"operator": ""}).operator == AssertOperator.OR


class TestRunSpec:
    """Test RunSpec parsing."""

    def test_tasks_stay_raw(self):
        spec = RunSpec.model_validate({
            "tasks": [{"key": "a", "apply": {"kind": "Pod"}}],
            "includeInfoOn": {"*": True},
        })
        assert spec.tasks == [{"key": "a", "apply": {"kind": "Pod"}}]
        assert spec.include_info == {IncludeInfoKey.ALL: True}


class TestRunStatus:
    """Test result aggregation helpers."""

    @pytest.fixture
    def status(self):
        return RunStatus(task_results=[
            TaskResult(key="a", kind=TaskResultKind.ASSERT, phase=ResultPhase.ASSERT_PASSED),
            TaskResult(key="b", kind=TaskResultKind.ASSERT, phase=ResultPhase.ASSERT_FAILED),
            TaskResult(key="c", kind=TaskResultKind.UPDATE, phase=ResultPhase.SKIPPED),
            TaskResult(key="d", kind=TaskResultKind.CREATE_OR_DELETE, phase=ResultPhase.ONLINE),
        ])

    def test_counts(self, status):
        assert status.assert_task_count() == 2
        assert status.passed_assert_task_count() == 1
        assert status.failed_assert_task_count() == 1
        assert status.skipped_task_count() == 1
        assert status.update_task_count() == 1
        assert status.create_or_delete_task_count() == 1

    def test_get(self, status):
        assert status.get("c").phase == ResultPhase.SKIPPED
        assert status.get("missing") is None

    def test_status_patch_reports_skipped_as_online(self):
        patch = RunStatus(phase=ResultPhase.SKIPPED, message="Run was skipped: If cond failed").to_status_patch()
        assert patch["phase"] == "Online"
        assert patch["message"] == "Run was skipped: If cond failed"
        assert patch["completion"] == {"state": False, "observed": 0, "desired": 0}

    def test_status_patch_camel_case(self, status):
        status.phase = ResultPhase.ERROR
        status.reason = "One or more tasks have error(s)"
        patch = status.to_status_patch()
        assert patch["phase"] == "Error"
        assert patch["reason"] == "One or more tasks have error(s)"
        assert patch["taskResults"][0] == {"key": "a", "kind": "assert", "phase": "AssertPassed"}
