"""Tests for Rundeck payload models and event mapping."""

from __future__ import annotations

from rundeck_spine.rundeck import RundeckExecution, RundeckJob, map_execution, map_job
from tests._support.fakes import execution_payload


class TestRundeckExecution:
    def test_aliases(self):
        execution = RundeckExecution.model_validate(
            execution_payload(
                1,
                "other",
                customStatus="waiting-approval",
                serverUUID="srv-1",
                successfulNodes=["a"],
                failedNodes=["b"],
            )
        )
        assert execution.custom_status == "waiting-approval"
        assert execution.server_uuid == "srv-1"
        assert execution.date_started.unixtime == 1709294400000
        assert execution.successful_nodes == ["a"]
        assert execution.failed_nodes == ["b"]

    def test_unknown_fields_ignored(self):
        execution = RundeckExecution.model_validate(execution_payload(1, "running", brandNew=True))
        assert execution.id == 1

    def test_adhoc_execution_has_no_job(self):
        payload = execution_payload(1, "running")
        del payload["job"]
        assert RundeckExecution.model_validate(payload).job is None


class TestMapExecution:
    def test_event_shape(self):
        event = map_execution(RundeckExecution.model_validate(execution_payload(42, "running")))

        assert event["id"] == 42
        assert event["status"] == "running"
        assert event["project"] == "ops"
        assert event["dateStarted"] == "2024-03-01T12:00:00Z"
        assert event["dateEnded"] is None
        assert event["job"]["name"] == "deploy"
        assert event["job"]["averageDuration"] == 1200

    def test_without_job(self):
        payload = execution_payload(1, "running")
        del payload["job"]
        assert map_execution(RundeckExecution.model_validate(payload))["job"] is None


def test_map_job():
    job = RundeckJob.model_validate(
        {"id": "j1", "name": "deploy", "project": "ops", "scheduleEnabled": True, "averageDuration": 50}
    )
    mapped = map_job(job)
    assert mapped["scheduleEnabled"] is True
    assert mapped["averageDuration"] == 50
    assert mapped["group"] == ""
