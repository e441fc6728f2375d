"""httpx client for the Rundeck REST API.

Requests go to ``{url}/api/{api_version}/{endpoint}`` with the API token in
``X-Rundeck-Auth-Token``. Failures are translated into the package's
transient error types so the tracker can count them against its retry
budget:

- transport failures (connect, DNS, timeouts) → :class:`NetworkError`
- non-2xx responses → :class:`RemoteAPIError`
- a 2xx body that is not valid JSON → :class:`RemoteAPIError`

The client never retries on its own.

Example::

    with RundeckClient("https://rundeck:4440", api_token="...") as client:
        execution = client.get_execution(42)
        print(execution.status)
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from rundeck_spine.core.errors import NetworkError, RemoteAPIError
from rundeck_spine.core.logging import get_logger
from rundeck_spine.core.settings import DEFAULT_API_VERSION, RundeckSettings

from .models import (
    ExecutionsPage,
    RundeckExecution,
    RundeckJob,
    RundeckProject,
    RunJobRequest,
)

logger = get_logger(__name__)


class RundeckClient:
    """Thin synchronous wrapper around :class:`httpx.Client`."""

    def __init__(
        self,
        url: str,
        api_token: str,
        api_version: int = DEFAULT_API_VERSION,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = url.rstrip("/")
        self.api_version = api_version
        self._http = httpx.Client(
            base_url=f"{self.base_url}/api/{api_version}/",
            headers={
                "X-Rundeck-Auth-Token": api_token,
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: RundeckSettings,
        transport: httpx.BaseTransport | None = None,
    ) -> RundeckClient:
        return cls(
            url=settings.require_url(),
            api_token=settings.require_api_token(),
            api_version=settings.api_version,
            timeout=settings.timeout,
            transport=transport,
        )

    # -- raw verbs ---------------------------------------------------------

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("GET", endpoint, params=params)

    def post(self, endpoint: str, data: Any = None) -> Any:
        return self._request("POST", endpoint, json=data)

    def put(self, endpoint: str, data: Any = None) -> Any:
        return self._request("PUT", endpoint, json=data)

    def delete(self, endpoint: str) -> Any:
        return self._request("DELETE", endpoint)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        endpoint = endpoint.lstrip("/")
        try:
            response = self._http.request(method, endpoint, **kwargs)
        except httpx.HTTPError as exc:
            raise NetworkError(
                f"Rundeck request failed: {method} {endpoint}: {exc}", cause=exc
            ).with_context(url=f"{self._http.base_url}{endpoint}") from exc

        if not response.is_success:
            raise RemoteAPIError(
                f"Rundeck API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            ).with_context(url=str(response.request.url))

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as exc:
            raise RemoteAPIError(
                f"Rundeck API returned invalid JSON for {method} {endpoint}",
                status_code=response.status_code,
                body=response.text,
                cause=exc,
            ) from exc

    # -- typed helpers -----------------------------------------------------

    def get_execution(self, execution_id: int | str) -> RundeckExecution:
        return self._parse(RundeckExecution, self.get(f"execution/{execution_id}"))

    def run_job(self, job_id: str, request: RunJobRequest | None = None) -> RundeckExecution:
        body = (request or RunJobRequest()).model_dump(exclude_none=True)
        return self._parse(RundeckExecution, self.post(f"job/{job_id}/executions", body))

    def list_projects(self) -> list[RundeckProject]:
        return [self._parse(RundeckProject, item) for item in self.get("projects") or []]

    def list_jobs(
        self,
        project: str,
        job_filter: str | None = None,
        group_path: str | None = None,
    ) -> list[RundeckJob]:
        params = {}
        if job_filter:
            params["jobFilter"] = job_filter
        if group_path:
            params["groupPath"] = group_path
        data = self.get(f"project/{project}/jobs", params=params or None)
        return [self._parse(RundeckJob, item) for item in data or []]

    def list_executions(
        self,
        project: str,
        status: str | None = None,
        max_results: int = 20,
        offset: int = 0,
    ) -> ExecutionsPage:
        params: dict[str, Any] = {"max": max_results, "offset": offset}
        if status:
            params["statusFilter"] = status
        return self._parse(
            ExecutionsPage, self.get(f"project/{project}/executions", params=params)
        )

    def _parse(self, model: type, data: Any) -> Any:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise RemoteAPIError(
                f"Unexpected Rundeck payload for {model.__name__}: {exc.error_count()} error(s)",
                cause=exc,
            ) from exc

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> RundeckClient:
        return self

    def __exit__(self, *args) -> None:
        self.close()


__all__ = ["RundeckClient"]
