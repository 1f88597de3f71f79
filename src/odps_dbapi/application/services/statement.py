"""Statement execution controller."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from types import MappingProxyType, TracebackType
from typing import TYPE_CHECKING, cast

from odps_dbapi.application.result_sets import ForwardResultSet
from odps_dbapi.application.services.job_poller import raise_for_outcome
from odps_dbapi.application.services.result_materializer import CursorOptions
from odps_dbapi.domain.entities import FetchDirection, StatementWarning, WarningChain
from odps_dbapi.domain.errors import (
    ExecutionInterruptedError,
    InvalidStateError,
    PollingError,
    RemoteServiceError,
    StatementError,
)
from odps_dbapi.domain.execution_state import ExecutionState, Idle, ResultReady, UpdateReady
from odps_dbapi.domain.job_models import JobHandle
from odps_dbapi.domain.statement_types import PropertyDirective, StatementKind, classify

if TYPE_CHECKING:
    from odps_dbapi.application.services.connection import Connection

_DEFAULT_FETCH_SIZE = 10000

logger = logging.getLogger(__name__)


class Statement:
    """Runs SQL as remote jobs and owns the resulting cursor or update count.

    Every execute call first tears down the previous execution: the open
    cursor is closed and its temp table dropped, so at most one temp table
    per statement is ever live. Session properties start as a copy of the
    connection defaults and change only through `SET key = value`.

    Methods are meant to be called from one thread. `cancel` and `interrupt`
    may be called from another thread while an execute call is blocked
    polling.
    """

    def __init__(self, connection: Connection, scrollable: bool = False) -> None:
        self._connection: Connection | None = connection
        self._properties: dict[str, str] = dict(connection.sql_task_properties)
        self._scrollable = scrollable
        self._fetch_size = connection.fetch_size
        self._max_rows = 0
        self._fetch_direction = FetchDirection.UNKNOWN
        self._state: ExecutionState = Idle()
        self._warnings = WarningChain()
        self._job_handle: JobHandle | None = None
        self._cancelled = False
        self._cancel_lock = threading.Lock()
        self._interrupt = threading.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        """Return whether the statement has been closed."""

        return self._closed

    @property
    def connection(self) -> Connection | None:
        """Return the owning connection; None once closed."""

        return self._connection

    @property
    def session_properties(self) -> MappingProxyType[str, str]:
        """Return a read-only view of the properties sent with every job."""

        self._check_open()
        return MappingProxyType(self._properties)

    @property
    def job_handle(self) -> JobHandle | None:
        """Return the job submitted by the current execution, if any."""

        return self._job_handle

    @property
    def scrollable(self) -> bool:
        """Return whether queries produce scrollable result sets."""

        return self._scrollable

    @property
    def max_rows(self) -> int:
        """Return the row limit for result sets (0 means unlimited)."""

        self._check_open()
        return self._max_rows

    @max_rows.setter
    def max_rows(self, value: int) -> None:
        self.set_max_rows(value)

    def set_max_rows(self, max_rows: int) -> None:
        """Limit rows returned by later result sets; 0 removes the limit."""

        self._check_open()
        if max_rows < 0:
            raise InvalidStateError("max must be >= 0")
        self._max_rows = max_rows

    @property
    def fetch_size(self) -> int:
        """Return the number of rows read per download request."""

        self._check_open()
        return self._fetch_size

    @fetch_size.setter
    def fetch_size(self, rows: int) -> None:
        self._check_open()
        if rows < 0:
            raise InvalidStateError("fetch size must be >= 0")
        self._fetch_size = rows or _DEFAULT_FETCH_SIZE

    @property
    def fetch_direction(self) -> FetchDirection:
        """Return the fetch direction hint."""

        self._check_open()
        return self._fetch_direction

    @fetch_direction.setter
    def fetch_direction(self, direction: FetchDirection | str) -> None:
        self._check_open()
        try:
            self._fetch_direction = FetchDirection(direction)
        except ValueError as exc:
            raise InvalidStateError("invalid argument for fetch_direction") from exc

    def execute(self, sql: str) -> bool:
        """Execute any statement; return True when it produced a result set."""

        self._check_open()
        self._reset()

        kind = classify(sql)
        if isinstance(kind, PropertyDirective):
            logger.debug("set sql task property: %s=%s", kind.key, kind.value)
            self._properties[kind.key] = kind.value
            return False
        if kind is StatementKind.QUERY:
            self.execute_query(sql)
            return True
        self.execute_update(sql)
        return False

    def execute_query(self, sql: str) -> ForwardResultSet:
        """Materialize a query into a temp table and return a cursor over it."""

        self._check_open()
        self._reset()
        connection = self._require_connection()

        materialized = connection.materializer.materialize(
            sql,
            self._properties,
            connection.lifecycle_days,
            self._warnings,
            CursorOptions(
                scrollable=self._scrollable,
                fetch_size=self._fetch_size,
                max_rows=self._max_rows,
                fetch_direction=self._fetch_direction,
            ),
            interrupt=self._interrupt,
            on_submitted=self._track_job,
        )
        self._state = ResultReady(
            result_set=materialized.result_set,
            temp_table=materialized.temp_table,
        )
        return materialized.result_set

    def execute_update(self, sql: str) -> int:
        """Run a mutating statement and return the number of affected rows."""

        self._check_open()
        self._reset()
        connection = self._require_connection()

        begin = time.monotonic()
        handle = connection.submitter.submit(sql, self._properties, self._warnings)
        self._track_job(handle)
        outcome = connection.poller.await_terminal(handle, self._interrupt)
        raise_for_outcome(outcome, "update")
        logger.debug("It took me %d ms to execute update", (time.monotonic() - begin) * 1000)

        update_count = self._read_update_count(handle)
        self._state = UpdateReady(update_count=update_count)
        logger.debug("successfully updated %d records", update_count)
        return update_count

    def get_update_count(self) -> int:
        """Return the update count once; later calls return -1 until the next execute."""

        self._check_open()
        state = self._state
        if not isinstance(state, UpdateReady) or state.consumed:
            return -1
        self._state = replace(state, consumed=True)
        return state.update_count

    def get_result_set(self) -> ForwardResultSet | None:
        """Return the cursor of the current query execution."""

        self._check_open()
        state = self._state
        if isinstance(state, ResultReady):
            return cast(ForwardResultSet, state.result_set)
        return None

    def get_more_results(self) -> bool:
        """Each execution yields at most one result."""

        self._check_open()
        return False

    def get_warnings(self) -> StatementWarning | None:
        """Return the latest diagnostic, usually the job's trace link."""

        self._check_open()
        return self._warnings.latest

    def clear_warnings(self) -> None:
        """Forget the latest diagnostic."""

        self._check_open()
        self._warnings.clear()

    def cancel(self) -> None:
        """Ask the service to stop the in-flight job; safe from another thread."""

        self._check_open()
        connection = self._require_connection()
        with self._cancel_lock:
            handle = self._job_handle
            if self._cancelled or handle is None:
                return
            try:
                connection.job_service.stop(handle)
            except RemoteServiceError as exc:
                raise StatementError(
                    f"Fail to cancel instance '{handle.instance_id}': {exc}"
                ) from exc
            logger.info("submit cancel to instance id=%s", handle.instance_id)
            self._cancelled = True

    def interrupt(self) -> None:
        """Stop waiting for the in-flight job; the execute call raises.

        Only a call that is already blocked is affected: every execute and
        close call clears a pending interrupt when it starts.
        """

        self._interrupt.set()

    def close(self) -> None:
        """Close the cursor, drop the temp table and release the connection."""

        if self._closed:
            return

        self._interrupt.clear()
        try:
            self._teardown()
        except ExecutionInterruptedError:
            logger.warning("temp table drop interrupted while closing the statement")
        connection = self._connection
        self._connection = None
        with self._cancel_lock:
            self._job_handle = None
        self._closed = True
        if connection is not None:
            connection.forget_statement(self)
        logger.debug("the statement has been closed")

    def __enter__(self) -> Statement:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _reset(self) -> None:
        self._interrupt.clear()
        with self._cancel_lock:
            self._job_handle = None
            self._cancelled = False
        self._teardown()

    def _teardown(self) -> None:
        state = self._state
        self._state = Idle()
        if not isinstance(state, ResultReady):
            return
        state.result_set.close()
        connection = self._connection
        if connection is not None:
            connection.materializer.drop_temp_table(
                state.temp_table,
                self._properties,
                self._interrupt,
            )

    def _track_job(self, handle: JobHandle) -> None:
        with self._cancel_lock:
            self._job_handle = handle

    def _read_update_count(self, handle: JobHandle) -> int:
        connection = self._require_connection()
        try:
            summary = connection.job_service.get_task_summary(handle)
        except RemoteServiceError as exc:
            raise PollingError(
                f"Fail to get task summary of instance '{handle.instance_id}': {exc}"
            ) from exc
        if summary is None:
            return 0
        return summary.affected_rows

    def _require_connection(self) -> Connection:
        connection = self._connection
        if connection is None:
            raise InvalidStateError("The statement has been closed")
        return connection

    def _check_open(self) -> None:
        if self._closed:
            raise InvalidStateError("The statement has been closed")


__all__ = ["Statement"]
