from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from odps_dbapi.application.services import Connection, Statement
from odps_dbapi.domain.entities import ColumnSchema
from odps_dbapi.domain.errors import RemoteServiceError
from odps_dbapi.domain.job_models import JobDescription, JobHandle, TaskStatus, TaskSummary

_CREATE_TABLE = re.compile(r"^create table (\S+) lifecycle", re.IGNORECASE)
_DROP_TABLE = re.compile(r"^drop table if exists (\S+);", re.IGNORECASE)


class FakeDownloadSession:
    """In-memory download session that records every read."""

    def __init__(self, rows: Sequence[tuple[Any, ...]], session_id: str = "download-1") -> None:
        self._rows = list(rows)
        self._session_id = session_id
        self.reads: list[tuple[int, int]] = []
        self.read_error: RemoteServiceError | None = None

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def record_count(self) -> int:
        return len(self._rows)

    def read_rows(self, start: int, count: int) -> list[tuple[Any, ...]]:
        self.reads.append((start, count))
        if self.read_error is not None:
            raise self.read_error
        return self._rows[start : start + count]


@dataclass(slots=True)
class FakeJob:
    description: JobDescription
    statuses: list[TaskStatus | None]
    result: str | None = None
    result_error: RemoteServiceError | None = None
    summary: TaskSummary | None = None
    status_polls: int = 0
    waited: bool = False


@dataclass(slots=True)
class JobScript:
    """Scripted behaviour for jobs whose query contains `match`."""

    match: str
    statuses: list[TaskStatus | None]
    result: str | None = None
    result_error: RemoteServiceError | None = None
    summary: TaskSummary | None = None


@dataclass(slots=True)
class FakeOdpsService:
    """Job service, catalog and transfer fake sharing one in-memory project."""

    columns: list[ColumnSchema] = field(
        default_factory=lambda: [ColumnSchema("id", "BIGINT"), ColumnSchema("name", "STRING")]
    )
    rows: list[tuple[Any, ...]] = field(default_factory=lambda: [(1, "a"), (2, "b"), (3, "c")])
    scripts: list[JobScript] = field(default_factory=list)
    jobs: dict[str, FakeJob] = field(default_factory=dict)
    events: list[tuple[str, str]] = field(default_factory=list)
    live_tables: set[str] = field(default_factory=set)
    stopped: list[str] = field(default_factory=list)
    sessions: list[FakeDownloadSession] = field(default_factory=list)
    submit_error: RemoteServiceError | None = None
    status_error: RemoteServiceError | None = None
    schema_error: RemoteServiceError | None = None
    transfer_error: RemoteServiceError | None = None
    drop_error: RemoteServiceError | None = None
    on_status_poll: Callable[[JobHandle, int], None] | None = None

    def script(
        self,
        match: str,
        statuses: list[TaskStatus | None],
        *,
        result: str | None = None,
        result_error: RemoteServiceError | None = None,
        summary: TaskSummary | None = None,
    ) -> None:
        self.scripts.append(
            JobScript(
                match=match,
                statuses=statuses,
                result=result,
                result_error=result_error,
                summary=summary,
            )
        )

    @property
    def submitted(self) -> list[JobDescription]:
        return [job.description for job in self.jobs.values()]

    def submit(self, job: JobDescription) -> JobHandle:
        if self.submit_error is not None:
            raise self.submit_error

        drop = _DROP_TABLE.match(job.query)
        if drop is not None and self.drop_error is not None:
            raise self.drop_error

        instance_id = f"instance-{len(self.jobs) + 1}"
        fake_job = FakeJob(description=job, statuses=[TaskStatus.SUCCESS])
        for script in self.scripts:
            if script.match in job.query:
                fake_job.statuses = list(script.statuses)
                fake_job.result = script.result
                fake_job.result_error = script.result_error
                fake_job.summary = script.summary
                break
        self.jobs[instance_id] = fake_job

        create = _CREATE_TABLE.match(job.query)
        if create is not None:
            self.events.append(("create", create.group(1)))
            self.live_tables.add(create.group(1))
        elif drop is not None:
            self.events.append(("drop", drop.group(1)))
            self.live_tables.discard(drop.group(1))
        else:
            self.events.append(("run", job.query))
        return JobHandle(instance_id=instance_id, task_name=job.task_name)

    def get_task_status(self, handle: JobHandle) -> TaskStatus | None:
        if self.status_error is not None:
            raise self.status_error
        job = self.jobs[handle.instance_id]
        job.status_polls += 1
        if self.on_status_poll is not None:
            self.on_status_poll(handle, job.status_polls)
        if len(job.statuses) > 1:
            return job.statuses.pop(0)
        return job.statuses[0]

    def get_task_result(self, handle: JobHandle) -> str | None:
        job = self.jobs[handle.instance_id]
        if job.result_error is not None:
            raise job.result_error
        return job.result

    def get_task_summary(self, handle: JobHandle) -> TaskSummary | None:
        return self.jobs[handle.instance_id].summary

    def stop(self, handle: JobHandle) -> None:
        self.stopped.append(handle.instance_id)
        self.jobs[handle.instance_id].statuses = [TaskStatus.CANCELLED]

    def wait_for_completion(self, handle: JobHandle, poll_interval_seconds: float) -> None:
        _ = poll_interval_seconds
        self.jobs[handle.instance_id].waited = True

    def get_schema(self, table_name: str) -> list[ColumnSchema]:
        if self.schema_error is not None:
            raise self.schema_error
        assert table_name in self.live_tables
        return list(self.columns)

    def open_download_session(self, table_name: str) -> FakeDownloadSession:
        if self.transfer_error is not None:
            raise self.transfer_error
        assert table_name in self.live_tables
        session = FakeDownloadSession(self.rows, session_id=f"download-{len(self.sessions) + 1}")
        self.sessions.append(session)
        return session


class FakeLinkProvider:
    def link_for(self, handle: JobHandle) -> str:
        return f"https://logview.example.com/logview/?i={handle.instance_id}"


@pytest.fixture
def service() -> FakeOdpsService:
    return FakeOdpsService()


@pytest.fixture
def connection(service: FakeOdpsService) -> Connection:
    return Connection(
        job_service=service,
        catalog=service,
        transfer=service,
        link_provider=FakeLinkProvider(),
        lifecycle_days=1,
        poll_interval_seconds=0.0,
        fetch_size=2,
        sql_task_properties={"odps.sql.priority": "1"},
    )


@pytest.fixture
def statement(connection: Connection) -> Statement:
    return connection.create_statement()
