"""Tests for the task executor."""

import pytest

from kubetask.errors import ConfigurationError, EvaluationError
from kubetask.models import ResultPhase, Task, TaskResultKind
from kubetask.task import TaskRequest, execute_task, task_kind, validate_task

SERVICE_EXISTS = {"conditions": [{"resourceSelector": {"selectorTerms": [{"matchFields": {"kind": "Service"}}]}}]}
TARGET_PODS = {"selectorTerms": [{"matchFields": {"kind": "Pod"}}]}


@pytest.fixture
def execute(run, watch):
    def _execute(task, observed=()):
        return execute_task(TaskRequest(
            task=Task.model_validate(task),
            run=run,
            watch=watch,
            observed_resources=list(observed),
        ))
    return _execute


class TestValidateTask:
    """Test task configuration rules."""

    @pytest.mark.parametrize(
        "task",
        [
            {"apply": {"kind": "Pod"}},
            {"key": "a"},
            {"key": "a", "apply": {"kind": "Pod"}, "assert": {}},
            {"key": "a", "assert": {}, "target": TARGET_PODS},
            {"key": "a", "target": TARGET_PODS},
            {"key": "a", "apply": {"kind": "Pod"}, "replicas": -1},
        ],
    )
    def test_invalid(self, task):
        with pytest.raises(ConfigurationError):
            validate_task(Task.model_validate(task))

    @pytest.mark.parametrize(
        "task, kind",
        [
            ({"key": "a", "apply": {"kind": "Pod"}}, TaskResultKind.CREATE_OR_DELETE),
            ({"key": "a", "apply": {"kind": "Pod"}, "replicas": 0}, TaskResultKind.CREATE_OR_DELETE),
            ({"key": "a", "apply": {"kind": "Pod"}, "target": TARGET_PODS}, TaskResultKind.UPDATE),
            ({"key": "a", "assert": {}}, TaskResultKind.ASSERT),
        ],
    )
    def test_valid(self, task, kind):
        model = Task.model_validate(task)
        validate_task(model)
        assert task_kind(model) == kind


class TestExecuteTask:
    """Test guard handling and dispatch."""

    def test_create_five_pods_if_service_exists(self, execute, pod_template, service):
        got = execute(
            {
                "key": "create-5-pods-if-service-exist",
                "if": SERVICE_EXISTS,
                "apply": pod_template,
                "replicas": 5,
            },
            [service],
        )
        assert got.result.phase == ResultPhase.ONLINE
        assert got.result.kind == TaskResultKind.CREATE_OR_DELETE
        assert [r.name for r in got.desired_resources] == [f"my-pod-{i}" for i in range(5)]
        assert got.result.if_cond_result.phase == ResultPhase.ASSERT_PASSED

    def test_failed_guard_skips(self, execute, pod_template, make_resource):
        got = execute(
            {"key": "create-if-service", "if": SERVICE_EXISTS, "apply": pod_template},
            [make_resource(kind="Secret", name="s")],
        )
        assert got.result.phase == ResultPhase.SKIPPED
        assert got.result.message == "Task didn't run: If cond failed"
        assert got.result.is_skipped
        assert got.desired_resources == []
        assert got.result.result is None

    def test_no_guard(self, execute, pod_template):
        got = execute({"key": "create", "apply": pod_template})
        assert got.result.phase == ResultPhase.ONLINE
        assert got.result.if_cond_result is None

    def test_update(self, execute, make_resource, owned_annotations):
        observed = [make_resource(name="a", annotations=owned_annotations), make_resource(name="b")]
        got = execute(
            {"key": "label", "apply": {"metadata": {"labels": {"x": "y"}}}, "target": TARGET_PODS},
            observed,
        )
        assert got.result.kind == TaskResultKind.UPDATE
        assert [r.name for r in got.desired_resources] == ["a"]
        assert [r.name for r in got.explicit_updates] == ["b"]
        assert got.explicit_deletes == []

    def test_delete(self, execute, make_resource):
        observed = [make_resource(name="my-pod-1"), make_resource(name="my-pod-2")]
        got = execute({"key": "delete-all-pods", "apply": {"kind": "Pod", "apiVersion": "v1", "spec": None}}, observed)
        assert got.result.phase == ResultPhase.ONLINE
        assert got.desired_resources == []
        assert len(got.explicit_deletes) == 2

    def test_assert_passed(self, execute, service):
        got = execute({"key": "svc-exists", "assert": SERVICE_EXISTS}, [service])
        assert got.result.kind == TaskResultKind.ASSERT
        assert got.result.phase == ResultPhase.ASSERT_PASSED

    def test_assert_failed(self, execute, make_resource):
        got = execute({"key": "svc-exists", "assert": SERVICE_EXISTS}, [make_resource()])
        assert got.result.phase == ResultPhase.ASSERT_FAILED

    def test_guard_without_resources_is_an_error(self, execute, pod_template):
        with pytest.raises(EvaluationError):
            execute({"key": "a", "if": SERVICE_EXISTS, "apply": pod_template}, [])

    def test_invalid_task_is_not_dispatched(self, execute, pod_template):
        with pytest.raises(ConfigurationError):
            execute({"key": "a", "apply": pod_template, "assert": SERVICE_EXISTS})
