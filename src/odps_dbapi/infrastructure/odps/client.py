"""HTTP client for job instances and table schemas."""

from __future__ import annotations

import time
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from odps_dbapi.domain.entities import ColumnSchema
from odps_dbapi.domain.errors import RemoteServiceError
from odps_dbapi.domain.job_models import JobDescription, JobHandle, TaskStatus, TaskSummary
from odps_dbapi.domain.ports import CatalogService, JobService
from odps_dbapi.infrastructure.http_client import JsonHttpClient

_TERMINATED_INSTANCE_STATUS = "terminated"


class OdpsClientError(RemoteServiceError):
    """Raised when job service calls fail."""


class OdpsRestClient(JsonHttpClient, JobService, CatalogService):
    """Wrapper around the project's instance and table REST resources."""

    error_class = OdpsClientError

    def submit(self, job: JobDescription) -> JobHandle:
        """Call `POST /projects/{project}/instances`."""

        response = self._request("POST", self._project_url("/instances"), json=job.to_payload())
        location = response.headers.get("Location", "").strip().rstrip("/")
        if not location:
            raise OdpsClientError(
                f"POST {response.request.url} did not return the instance Location."
            )
        instance_id = location.rsplit("/", 1)[-1]
        return JobHandle(instance_id=instance_id, task_name=job.task_name)

    def get_task_status(self, handle: JobHandle) -> TaskStatus | None:
        """Call `GET .../instances/{id}?taskstatus`; None if the task is not listed yet."""

        task = self._find_task(self._get_json(self._instance_url(handle), "taskstatus"), handle)
        if task is None:
            return None
        raw_status = str(task.get("Status", "")).upper()
        try:
            return TaskStatus(raw_status)
        except ValueError as exc:
            raise OdpsClientError(
                f"Unknown status '{raw_status}' for task '{handle.task_name}'."
            ) from exc

    def get_task_result(self, handle: JobHandle) -> str | None:
        """Call `GET .../instances/{id}?result`."""

        task = self._find_task(self._get_json(self._instance_url(handle), "result"), handle)
        if task is None:
            return None
        result = task.get("Result")
        return None if result is None else str(result)

    def get_task_summary(self, handle: JobHandle) -> TaskSummary | None:
        """Call `GET .../instances/{id}?instancesummary&taskname=...`."""

        url = self._instance_url(handle)
        response = self._request(
            "GET",
            url,
            params={"instancesummary": "", "taskname": handle.task_name},
            allow_not_found=True,
        )
        if response.status_code == 404:
            return None
        payload = self._parse_json(response)
        json_summary = payload.get("JsonSummary")
        if not isinstance(json_summary, str) or not json_summary.strip():
            return None
        try:
            return TaskSummary.model_validate_json(json_summary)
        except ValidationError as exc:
            raise OdpsClientError(
                f"Invalid summary for task '{handle.task_name}': {exc}"
            ) from exc

    def stop(self, handle: JobHandle) -> None:
        """Call `PUT .../instances/{id}` with a terminate request."""

        self._request(
            "PUT",
            self._instance_url(handle),
            json={"Instance": {"Status": "Terminated"}},
        )

    def get_instance_status(self, handle: JobHandle) -> str:
        """Call `GET .../instances/{id}` and return the job-level status."""

        payload = self._parse_json(self._request("GET", self._instance_url(handle)))
        status = payload.get("Status")
        if not isinstance(status, str):
            raise OdpsClientError(
                f"Instance '{handle.instance_id}' status response has no Status."
            )
        return status

    def wait_for_completion(self, handle: JobHandle, poll_interval_seconds: float) -> None:
        """Block until the instance terminates; raise unless every task succeeded."""

        while self.get_instance_status(handle).lower() != _TERMINATED_INSTANCE_STATUS:
            time.sleep(max(poll_interval_seconds, 0.0))

        payload = self._get_json(self._instance_url(handle), "taskstatus")
        for task in self._tasks(payload):
            status = str(task.get("Status", "")).upper()
            if status != TaskStatus.SUCCESS:
                raise OdpsClientError(
                    f"Instance '{handle.instance_id}' finished with task "
                    f"'{task.get('Name')}' in status {status or '<unknown>'}."
                )

    def get_schema(self, table_name: str) -> list[ColumnSchema]:
        """Call `GET /projects/{project}/tables/{name}?schema`."""

        table_path = quote(table_name, safe="")
        payload = self._get_json(self._project_url(f"/tables/{table_path}"), "schema")
        raw_columns = payload.get("columns")
        if not isinstance(raw_columns, list):
            raise OdpsClientError(f"Schema of table '{table_name}' has no columns.")

        columns: list[ColumnSchema] = []
        for raw_column in raw_columns:
            if not isinstance(raw_column, dict):
                raise OdpsClientError(f"Malformed column entry in '{table_name}' schema.")
            name = raw_column.get("name")
            type_name = raw_column.get("type")
            if not isinstance(name, str) or not isinstance(type_name, str):
                raise OdpsClientError(f"Malformed column entry in '{table_name}' schema.")
            columns.append(ColumnSchema(name=name, type_name=type_name))
        return columns

    def _find_task(self, payload: dict[str, Any], handle: JobHandle) -> dict[str, Any] | None:
        for task in self._tasks(payload):
            if task.get("Name") == handle.task_name:
                return task
        return None

    def _tasks(self, payload: dict[str, Any]) -> list[dict[str, Any]]:
        tasks = payload.get("Tasks") or []
        if not isinstance(tasks, list):
            raise OdpsClientError("Tasks field is not a list.")
        return [task for task in tasks if isinstance(task, dict)]

    def _get_json(self, url: str, resource: str) -> dict[str, Any]:
        return self._parse_json(self._request("GET", url, params={resource: ""}))

    def _instance_url(self, handle: JobHandle) -> str:
        instance_id = quote(handle.instance_id, safe="")
        return self._project_url(f"/instances/{instance_id}")


__all__ = ["OdpsClientError", "OdpsRestClient"]
