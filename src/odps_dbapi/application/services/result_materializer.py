"""Materialize query results into temp tables and open cursors over them."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from contextlib import suppress
from dataclasses import dataclass
from uuid import uuid4

from odps_dbapi.application.result_sets import ForwardResultSet, ScrollableResultSet
from odps_dbapi.application.services.job_poller import JobPoller, raise_for_outcome
from odps_dbapi.application.services.job_submitter import JobSubmitter
from odps_dbapi.domain.entities import FetchDirection, ResultSchema, WarningChain
from odps_dbapi.domain.errors import (
    ExecutionInterruptedError,
    MaterializationError,
    RemoteServiceError,
    SchemaError,
    StatementError,
    TransferError,
)
from odps_dbapi.domain.job_models import JobHandle
from odps_dbapi.domain.ports import CatalogService, TransferService

TEMP_TABLE_PREFIX = "dbapi_temp_tbl_"

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CursorOptions:
    """Caller preferences applied to the result cursor."""

    scrollable: bool = False
    fetch_size: int = 10000
    max_rows: int = 0
    fetch_direction: FetchDirection = FetchDirection.UNKNOWN


@dataclass(slots=True, frozen=True)
class MaterializedResult:
    """A cursor together with the temp table that backs it."""

    result_set: ForwardResultSet
    temp_table: str


def new_temp_table_name(prefix: str = TEMP_TABLE_PREFIX) -> str:
    """Return a unique, identifier-safe temp table name."""

    return f"{prefix}{uuid4().hex}"


class ResultMaterializer:
    """Run `CREATE TABLE ... AS <query>` and expose the table as a cursor."""

    def __init__(
        self,
        submitter: JobSubmitter,
        poller: JobPoller,
        catalog: CatalogService,
        transfer: TransferService,
        temp_table_prefix: str = TEMP_TABLE_PREFIX,
    ) -> None:
        self._submitter = submitter
        self._poller = poller
        self._catalog = catalog
        self._transfer = transfer
        self._temp_table_prefix = temp_table_prefix

    def materialize(
        self,
        sql: str,
        properties: Mapping[str, str],
        lifecycle_days: int,
        warnings: WarningChain,
        options: CursorOptions | None = None,
        *,
        interrupt: threading.Event | None = None,
        on_submitted: Callable[[JobHandle], None] | None = None,
    ) -> MaterializedResult:
        """Materialize `sql` into a fresh temp table and open a cursor on it.

        Raises `MaterializationError` when the creating job cannot be submitted
        or does not succeed, `SchemaError` when the table schema cannot be read
        and `TransferError` when no download session can be opened. The temp
        table is dropped best-effort when a step after its creation fails.
        """

        options = options or CursorOptions()
        temp_table = new_temp_table_name(self._temp_table_prefix)

        begin = time.monotonic()
        self._create_temp_table(
            temp_table,
            sql,
            properties,
            lifecycle_days,
            warnings,
            interrupt=interrupt,
            on_submitted=on_submitted,
        )
        logger.debug(
            "It took me %d ms to create %s",
            (time.monotonic() - begin) * 1000,
            temp_table,
        )

        try:
            schema = self._read_schema(temp_table)
            result_set = self._open_result_set(temp_table, schema, options)
        except StatementError:
            with suppress(ExecutionInterruptedError):
                self.drop_temp_table(temp_table, properties, interrupt)
            raise
        return MaterializedResult(result_set=result_set, temp_table=temp_table)

    def drop_temp_table(
        self,
        temp_table: str,
        properties: Mapping[str, str],
        interrupt: threading.Event | None = None,
    ) -> None:
        """Drop a temp table best-effort.

        Failures are logged and never raised. Setting `interrupt` stops the
        wait and raises `ExecutionInterruptedError`; the table then expires
        with its lifecycle.
        """

        scratch_warnings = WarningChain()
        try:
            handle = self._submitter.submit(
                f"drop table if exists {temp_table};",
                properties,
                scratch_warnings,
            )
            raise_for_outcome(
                self._poller.await_terminal(handle, interrupt),
                "drop temp table",
            )
        except ExecutionInterruptedError:
            logger.warning("Drop of temp table '%s' interrupted.", temp_table)
            raise
        except StatementError as exc:
            logger.warning("Fail to drop temp table '%s': %s", temp_table, exc)
            return
        logger.debug("silently drop temp table: %s", temp_table)

    def _create_temp_table(
        self,
        temp_table: str,
        sql: str,
        properties: Mapping[str, str],
        lifecycle_days: int,
        warnings: WarningChain,
        *,
        interrupt: threading.Event | None,
        on_submitted: Callable[[JobHandle], None] | None,
    ) -> None:
        statement = f"create table {temp_table} lifecycle {lifecycle_days} as {sql}"
        try:
            handle = self._submitter.submit(statement, properties, warnings)
            if on_submitted is not None:
                on_submitted(handle)
            raise_for_outcome(
                self._poller.await_terminal(handle, interrupt),
                "create temp table",
            )
        except StatementError as exc:
            logger.debug("create temp table failed: %s", exc)
            raise MaterializationError(f"create temp table failed: {exc}") from exc

    def _read_schema(self, temp_table: str) -> ResultSchema:
        begin = time.monotonic()
        try:
            columns = self._catalog.get_schema(temp_table)
        except RemoteServiceError as exc:
            raise SchemaError(f"Fail to read schema of '{temp_table}': {exc}") from exc
        logger.debug(
            "It took me %d ms to read the table schema",
            (time.monotonic() - begin) * 1000,
        )
        return ResultSchema(columns=tuple(columns))

    def _open_result_set(
        self,
        temp_table: str,
        schema: ResultSchema,
        options: CursorOptions,
    ) -> ForwardResultSet:
        try:
            session = self._transfer.open_download_session(temp_table)
        except RemoteServiceError as exc:
            raise TransferError(
                f"Fail to open download session for '{temp_table}': {exc}"
            ) from exc
        logger.info("create download session id=%s", session.session_id)

        result_set_class = ScrollableResultSet if options.scrollable else ForwardResultSet
        return result_set_class(
            schema,
            session,
            fetch_size=options.fetch_size,
            max_rows=options.max_rows,
            fetch_direction=options.fetch_direction,
        )


__all__ = [
    "CursorOptions",
    "MaterializedResult",
    "ResultMaterializer",
    "TEMP_TABLE_PREFIX",
    "new_temp_table_name",
]
