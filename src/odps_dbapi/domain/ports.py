"""Ports for the job service, catalog, bulk download and diagnostics links.

Adapters report remote and transport failures by raising `RemoteServiceError`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from odps_dbapi.domain.entities import ColumnSchema
from odps_dbapi.domain.job_models import JobDescription, JobHandle, TaskStatus, TaskSummary


class JobService(Protocol):
    """Asynchronous job submission and status port."""

    def submit(self, job: JobDescription) -> JobHandle:
        """Create a job instance and return its handle."""

    def get_task_status(self, handle: JobHandle) -> TaskStatus | None:
        """Return the watched sub-task status, or None while it is not reported yet."""

    def get_task_result(self, handle: JobHandle) -> str | None:
        """Return the sub-task result text (the failure reason for failed tasks)."""

    def get_task_summary(self, handle: JobHandle) -> TaskSummary | None:
        """Return the structured sub-task summary when available."""

    def stop(self, handle: JobHandle) -> None:
        """Request termination of the job."""

    def wait_for_completion(self, handle: JobHandle, poll_interval_seconds: float) -> None:
        """Block until the whole job terminates; raise if it did not succeed."""


class CatalogService(Protocol):
    """Table schema lookup port."""

    def get_schema(self, table_name: str) -> list[ColumnSchema]:
        """Return the ordered columns of a table."""


class DownloadSession(Protocol):
    """Streaming read channel over one table."""

    @property
    def session_id(self) -> str:
        """Return the remote session identifier."""

    @property
    def record_count(self) -> int:
        """Return the number of rows available in the session."""

    def read_rows(self, start: int, count: int) -> Sequence[tuple[Any, ...]]:
        """Read up to `count` rows beginning at zero-based row `start`."""


class TransferService(Protocol):
    """Bulk download port."""

    def open_download_session(self, table_name: str) -> DownloadSession:
        """Open a download session for a table."""


class DiagnosticsLinkProvider(Protocol):
    """Builds the execution trace link shown for a submitted job."""

    def link_for(self, handle: JobHandle) -> str:
        """Return a link to the job's execution trace."""


class ResultCursor(Protocol):
    """Minimal lifecycle surface of a result set owned by a statement."""

    @property
    def closed(self) -> bool:
        """Return whether the cursor is closed."""

    def close(self) -> None:
        """Release the cursor."""


__all__ = [
    "CatalogService",
    "DiagnosticsLinkProvider",
    "DownloadSession",
    "JobService",
    "ResultCursor",
    "TransferService",
]
