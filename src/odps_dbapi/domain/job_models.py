"""Remote job models: task status, job handle, job description and poll outcomes."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SQL_TASK_NAME = "dbapi_sql_task"
SETTINGS_CONFIG_KEY = "settings"
DEFAULT_JOB_PRIORITY = 9


class TaskStatus(StrEnum):
    """Status values reported for one named sub-task of a job."""

    WAITING = "WAITING"
    RUNNING = "RUNNING"
    SUSPENDED = "SUSPENDED"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


TERMINAL_TASK_STATUSES = frozenset(
    {
        TaskStatus.SUCCESS,
        TaskStatus.FAILED,
        TaskStatus.CANCELLED,
    }
)


@dataclass(slots=True, frozen=True)
class JobHandle:
    """A submitted job and the sub-task the poller watches."""

    instance_id: str
    task_name: str = SQL_TASK_NAME


class JobModel(BaseModel):
    """Base model for job service payloads."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class JobDescription(JobModel):
    """A single-task SQL job ready for submission."""

    task_name: str = Field(default=SQL_TASK_NAME, alias="Name")
    query: str = Field(alias="Query")
    settings: dict[str, str] = Field(default_factory=dict)
    priority: int = Field(default=DEFAULT_JOB_PRIORITY, alias="Priority")

    def to_payload(self) -> dict[str, Any]:
        """Render the instance creation body.

        Settings travel as one JSON-encoded config value and are omitted when empty.
        """

        task: dict[str, Any] = {"Type": "SQL", "Name": self.task_name, "Query": self.query}
        if self.settings:
            task["Config"] = {SETTINGS_CONFIG_KEY: json.dumps(self.settings, sort_keys=True)}
        return {"Instance": {"Job": {"Priority": self.priority, "Tasks": [task]}}}


class TaskSummary(JobModel):
    """Structured task summary; `Outputs` maps output name to `[records, bytes, ...]`."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    outputs: dict[str, list[int]] = Field(default_factory=dict, alias="Outputs")

    @property
    def affected_rows(self) -> int:
        """Sum the leading record count of every output partition."""

        return sum(counts[0] for counts in self.outputs.values() if counts)


@dataclass(slots=True, frozen=True)
class JobSucceeded:
    """The watched sub-task finished successfully."""


@dataclass(slots=True, frozen=True)
class JobFailed:
    """The watched sub-task failed.

    `detail_error` is set when the failure detail itself could not be fetched.
    """

    detail: str | None
    detail_error: Exception | None = None


@dataclass(slots=True, frozen=True)
class JobCancelled:
    """The watched sub-task was cancelled."""


@dataclass(slots=True, frozen=True)
class PollInterrupted:
    """Waiting stopped before any terminal status was observed."""


JobOutcome = JobSucceeded | JobFailed | JobCancelled | PollInterrupted


__all__ = [
    "DEFAULT_JOB_PRIORITY",
    "JobCancelled",
    "JobDescription",
    "JobFailed",
    "JobHandle",
    "JobOutcome",
    "JobSucceeded",
    "PollInterrupted",
    "SETTINGS_CONFIG_KEY",
    "SQL_TASK_NAME",
    "TERMINAL_TASK_STATUSES",
    "TaskStatus",
    "TaskSummary",
]
