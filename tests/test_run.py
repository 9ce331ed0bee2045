"""Tests for the run orchestrator."""

import pytest

from kubetask.errors import EvaluationError, InvalidRunError
from kubetask.models import Assert, ResultPhase, Task
from kubetask.run import RunRequest, execute_run

SERVICE_EXISTS = {"conditions": [{"resourceSelector": {"selectorTerms": [{"matchFields": {"kind": "Service"}}]}}]}


@pytest.fixture
def execute(run, watch):
    def _execute(tasks, observed=(), **kwargs):
        return execute_run(RunRequest(
            run=run, watch=watch, tasks=tasks, observed_resources=list(observed), **kwargs
        ))
    return _execute


def test_tasks_run_in_order(execute, pod_template, service):
    got = execute(
        [
            {"key": "pods", "apply": pod_template, "replicas": 2},
            {"key": "svc-exists", "assert": SERVICE_EXISTS},
            {"key": "single", "apply": {**pod_template, "metadata": {"name": "single"}}},
        ],
        [service],
    )
    assert got.ok
    assert got.status.phase == ResultPhase.ONLINE
    assert [r.key for r in got.status.task_results] == ["pods", "svc-exists", "single"]
    assert [r.name for r in got.desired_resources] == ["my-pod-0", "my-pod-1", "single"]


def test_task_models_are_accepted(execute, pod_template):
    got = execute([Task(key="pods", apply=pod_template)])
    assert got.status.get("pods").phase == ResultPhase.ONLINE


def test_duplicate_keys(execute, pod_template):
    got = execute([
        {"key": "pods", "apply": pod_template},
        {"key": "pods", "apply": pod_template, "replicas": 3},
    ])
    assert not got.ok
    assert got.status.phase == ResultPhase.ERROR
    assert got.status.reason == "One or more tasks have error(s)"
    assert got.status.errors == ['Duplicate task key "pods"']
    assert [r.key for r in got.status.task_results] == ["pods"]
    assert [r.name for r in got.desired_resources] == ["my-pod"]


def test_task_error_does_not_stop_siblings(execute, pod_template):
    got = execute([
        {"key": "broken", "apply": pod_template, "assert": SERVICE_EXISTS},
        {"key": "pods", "apply": pod_template},
    ])
    assert got.status.phase == ResultPhase.ERROR
    assert len(got.status.errors) == 1
    assert got.status.errors[0].startswith("broken: ")
    assert got.status.get("broken").phase == ResultPhase.ERROR
    assert got.status.get("pods").phase == ResultPhase.ONLINE
    assert len(got.desired_resources) == 1


def test_malformed_condition_fails_its_task_only(execute, pod_template, service):
    bad_guard = {"conditions": [{
        "resourceSelector": {"selectorTerms": [{"matchFields": {"kind": "Service"}}]},
        "operator": "EqualsCount",
    }]}
    got = execute(
        [
            {"key": "bad", "if": bad_guard, "apply": pod_template},
            {"key": "good", "apply": pod_template},
        ],
        [service],
    )
    assert got.status.get("bad").phase == ResultPhase.ERROR
    assert got.status.get("good").phase == ResultPhase.ONLINE


def test_run_if_failed_skips_every_task(execute, pod_template, make_resource):
    got = execute(
        [{"key": "pods", "apply": pod_template}],
        [make_resource(kind="Secret", name="s")],
        run_if=Assert.model_validate(SERVICE_EXISTS),
    )
    assert got.status.phase == ResultPhase.SKIPPED
    assert got.status.message == "Run was skipped: If cond failed"
    assert got.status.task_results == []
    assert got.desired_resources == []
    assert got.ok


def test_run_if_passed(execute, pod_template, service):
    got = execute(
        [{"key": "pods", "apply": pod_template}],
        [service],
        run_if=Assert.model_validate(SERVICE_EXISTS),
    )
    assert got.status.phase == ResultPhase.ONLINE
    assert got.status.if_cond_result.phase == ResultPhase.ASSERT_PASSED


def test_run_if_error_aborts_run(execute, pod_template):
    with pytest.raises(EvaluationError):
        execute([{"key": "pods", "apply": pod_template}], [], run_if=Assert.model_validate(SERVICE_EXISTS))


def test_completion(execute, pod_template, make_resource):
    observed = [make_resource(name="my-pod-0", namespace="default")]
    got = execute([{"key": "pods", "apply": pod_template, "replicas": 2}], observed)
    assert got.status.completion.desired == 2
    assert got.status.completion.observed == 1
    assert got.status.completion.state is False


@pytest.mark.parametrize("field", ["run", "watch"])
def test_missing_run_or_watch(run, pod_template, field):
    request = RunRequest(run=run, watch=run, tasks=[{"key": "pods", "apply": pod_template}])
    setattr(request, field, None)
    with pytest.raises(InvalidRunError):
        execute_run(request)


def test_no_tasks(execute):
    with pytest.raises(InvalidRunError):
        execute([])


def test_idempotent(execute, pod_template, service, make_resource):
    tasks = [
        {"key": "pods", "apply": pod_template, "replicas": 3},
        {"key": "delete", "apply": {"apiVersion": "v1", "kind": "Secret", "spec": None}},
    ]
    observed = [service, make_resource(kind="Secret", name="old")]
    first = execute(tasks, observed)
    second = execute(tasks, observed)
    assert [r.document for r in first.desired_resources] == [r.document for r in second.desired_resources]
    assert [r.document for r in first.explicit_deletes] == [r.document for r in second.explicit_deletes]
    assert first.status == second.status


def test_merge_failure_fails_its_task_only(execute, pod_template, make_resource):
    def merge(observed, last_applied, desired):
        raise ValueError("boom")

    got = execute(
        [
            {
                "key": "upd",
                "target": {"selectorTerms": [{"matchFields": {"kind": "Pod"}}]},
                "apply": {"metadata": {"labels": {"updated": "true"}}},
            },
            {"key": "pods", "apply": pod_template},
        ],
        [make_resource(name="a")],
        merge=merge,
    )
    assert got.status.phase == ResultPhase.ERROR
    assert got.status.get("upd").phase == ResultPhase.ERROR
    assert got.status.errors[0].startswith("upd: Can't update")
    assert "boom" in got.status.errors[0]
    assert got.status.get("pods").phase == ResultPhase.ONLINE
    assert [r.name for r in got.desired_resources] == ["my-pod"]
