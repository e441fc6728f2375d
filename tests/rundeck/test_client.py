"""Tests for RundeckClient: request shape and error translation."""

from __future__ import annotations

import json

import httpx
import pytest

from rundeck_spine.core.errors import MissingConfigError, NetworkError, RemoteAPIError
from rundeck_spine.core.settings import RundeckSettings
from rundeck_spine.rundeck import RundeckClient, RunJobRequest
from tests._support.fakes import execution_payload


class Recorder:
    """httpx.MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response | Exception):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(*responses) -> tuple[RundeckClient, Recorder]:
    recorder = Recorder(*responses)
    client = RundeckClient(
        "https://rundeck.example/",
        api_token="secret",
        api_version=57,
        transport=httpx.MockTransport(recorder),
    )
    return client, recorder


# ── Request shape ────────────────────────────────────────────────────────


class TestRequests:
    def test_get_execution_url_and_headers(self):
        client, rec = _client(httpx.Response(200, json=execution_payload(42, "running")))

        execution = client.get_execution(42)

        request = rec.requests[0]
        assert request.method == "GET"
        assert str(request.url) == "https://rundeck.example/api/57/execution/42"
        assert request.headers["X-Rundeck-Auth-Token"] == "secret"
        assert request.headers["Accept"] == "application/json"
        assert execution.id == 42
        assert execution.status == "running"
        assert execution.job.name == "deploy"

    def test_run_job_body(self):
        client, rec = _client(httpx.Response(200, json=execution_payload(7, "running")))

        client.run_job("job-1", RunJobRequest(loglevel="DEBUG", options={"env": "prod"}, filter="tags: web"))

        request = rec.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/57/job/job-1/executions"
        assert json.loads(request.content) == {
            "loglevel": "DEBUG",
            "options": {"env": "prod"},
            "filter": "tags: web",
        }

    def test_run_job_default_body_omits_none(self):
        client, rec = _client(httpx.Response(200, json=execution_payload(7, "running")))
        client.run_job("job-1")
        assert json.loads(rec.requests[0].content) == {"loglevel": "INFO"}

    def test_list_jobs_params(self):
        client, rec = _client(
            httpx.Response(200, json=[{"id": "j1", "name": "deploy", "group": "web", "project": "ops"}])
        )

        jobs = client.list_jobs("ops", job_filter="dep", group_path="web")

        params = rec.requests[0].url.params
        assert rec.requests[0].url.path == "/api/57/project/ops/jobs"
        assert params["jobFilter"] == "dep"
        assert params["groupPath"] == "web"
        assert jobs[0].name == "deploy"

    def test_list_executions_params(self):
        page = {
            "paging": {"count": 1, "total": 10, "offset": 5, "max": 1},
            "executions": [execution_payload(3, "failed")],
        }
        client, rec = _client(httpx.Response(200, json=page))

        result = client.list_executions("ops", status="failed", max_results=1, offset=5)

        params = rec.requests[0].url.params
        assert params["statusFilter"] == "failed"
        assert params["max"] == "1"
        assert params["offset"] == "5"
        assert result.paging.total == 10
        assert result.executions[0].status == "failed"

    def test_list_projects(self):
        client, _ = _client(httpx.Response(200, json=[{"name": "ops", "label": "Operations"}]))
        assert client.list_projects()[0].label == "Operations"

    def test_from_settings(self):
        settings = RundeckSettings(url="https://rundeck.example/", api_token="t", api_version=45)
        client = RundeckClient.from_settings(settings)
        assert client.base_url == "https://rundeck.example"
        assert client.api_version == 45
        client.close()

    def test_from_settings_requires_url(self):
        with pytest.raises(MissingConfigError):
            RundeckClient.from_settings(RundeckSettings(api_token="t"))


# ── Error translation ────────────────────────────────────────────────────


class TestErrors:
    def test_non_success_status(self):
        client, _ = _client(httpx.Response(404, text="Execution ID does not exist: 99"))

        with pytest.raises(RemoteAPIError) as exc_info:
            client.get_execution(99)

        err = exc_info.value
        assert err.status_code == 404
        assert err.retryable is True
        assert str(err) == "Rundeck API error (404): Execution ID does not exist: 99"
        assert err.context.http_status == 404

    def test_transport_failure(self):
        client, _ = _client(httpx.ConnectError("refused"))

        with pytest.raises(NetworkError) as exc_info:
            client.get_execution(1)
        assert exc_info.value.retryable is True

    def test_invalid_json(self):
        client, _ = _client(httpx.Response(200, text="<html>"))
        with pytest.raises(RemoteAPIError, match="invalid JSON"):
            client.get("system/info")

    def test_unexpected_payload(self):
        client, _ = _client(httpx.Response(200, json={"id": 1}))
        with pytest.raises(RemoteAPIError, match="Unexpected Rundeck payload"):
            client.get_execution(1)

    def test_no_content(self):
        client, _ = _client(httpx.Response(204))
        assert client.delete("execution/1") is None


def test_context_manager_closes():
    client, _ = _client()
    with client as c:
        assert c is client
    assert client._http.is_closed
