"""Fixed-interval job status polling."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TypeVar, assert_never

from odps_dbapi.domain.errors import (
    ExecutionInterruptedError,
    PollingError,
    RemoteJobCancelled,
    RemoteJobFailure,
    RemoteServiceError,
)
from odps_dbapi.domain.job_models import (
    JobCancelled,
    JobFailed,
    JobHandle,
    JobOutcome,
    JobSucceeded,
    PollInterrupted,
    TaskStatus,
)
from odps_dbapi.domain.ports import JobService

_DEFAULT_POLL_INTERVAL_SECONDS = 3.0

T = TypeVar("T")

logger = logging.getLogger(__name__)


def poll_until_terminal(
    check: Callable[[], T | None],
    interval_seconds: float,
    interrupt: threading.Event,
) -> T | PollInterrupted:
    """Sleep, then call `check`, until it returns a value or `interrupt` is set.

    `check` returns None for "not done yet". Setting `interrupt` during the
    sleep yields `PollInterrupted`, never a terminal value.
    """

    while True:
        if interrupt.wait(interval_seconds):
            return PollInterrupted()
        result = check()
        if result is not None:
            return result


def raise_for_outcome(outcome: JobOutcome, action: str) -> None:
    """Raise the statement error matching a non-successful outcome."""

    if isinstance(outcome, JobSucceeded):
        return
    if isinstance(outcome, JobFailed):
        raise RemoteJobFailure(outcome.detail, outcome.detail_error) from outcome.detail_error
    if isinstance(outcome, JobCancelled):
        raise RemoteJobCancelled(f"{action} cancelled")
    if isinstance(outcome, PollInterrupted):
        raise ExecutionInterruptedError(f"{action} interrupted before the job finished")
    assert_never(outcome)


class JobPoller:
    """Wait for the watched sub-task of a job to reach a terminal status."""

    def __init__(
        self,
        job_service: JobService,
        poll_interval_seconds: float = _DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self._job_service = job_service
        self._poll_interval_seconds = max(poll_interval_seconds, 0.0)

    @property
    def poll_interval_seconds(self) -> float:
        """Return the fixed delay between status queries."""

        return self._poll_interval_seconds

    def await_terminal(
        self,
        handle: JobHandle,
        interrupt: threading.Event | None = None,
    ) -> JobOutcome:
        """Poll until SUCCESS, FAILED or CANCELLED, or until interrupted.

        A successful sub-task is followed by a blocking wait on the whole job
        so post-task finalization has finished before returning.
        """

        outcome = poll_until_terminal(
            lambda: self._check(handle),
            self._poll_interval_seconds,
            interrupt or threading.Event(),
        )
        if isinstance(outcome, JobSucceeded):
            try:
                self._job_service.wait_for_completion(handle, self._poll_interval_seconds)
            except RemoteServiceError as exc:
                raise PollingError(
                    f"Instance '{handle.instance_id}' did not complete: {exc}"
                ) from exc
        return outcome

    def _check(self, handle: JobHandle) -> JobSucceeded | JobFailed | JobCancelled | None:
        try:
            status = self._job_service.get_task_status(handle)
        except RemoteServiceError as exc:
            logger.error("Fail to get task status: %s", exc)
            raise PollingError(f"Fail to get task status: {exc}") from exc

        if status is None:
            logger.warning(
                "Task status of '%s' not available yet for instance '%s'.",
                handle.task_name,
                handle.instance_id,
            )
            return None

        if (
            status is TaskStatus.WAITING
            or status is TaskStatus.RUNNING
            or status is TaskStatus.SUSPENDED
        ):
            logger.debug("sql status: %s", status)
            return None
        if status is TaskStatus.SUCCESS:
            logger.debug("sql status: success")
            return JobSucceeded()
        if status is TaskStatus.FAILED:
            return self._failed(handle)
        if status is TaskStatus.CANCELLED:
            logger.info("execute instance '%s' cancelled", handle.instance_id)
            return JobCancelled()
        assert_never(status)

    def _failed(self, handle: JobHandle) -> JobFailed:
        try:
            reason = self._job_service.get_task_result(handle)
        except RemoteServiceError as exc:
            logger.error("Fail to get failure detail of instance '%s': %s", handle.instance_id, exc)
            return JobFailed(detail=None, detail_error=exc)
        logger.error("execute instance failed: %s", reason)
        return JobFailed(detail=reason)


__all__ = ["JobPoller", "poll_until_terminal", "raise_for_outcome"]
