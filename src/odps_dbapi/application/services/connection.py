"""Connection: collaborators, connection-level defaults and statement factory."""

from __future__ import annotations

import logging
import weakref
from collections.abc import Callable, Mapping
from types import TracebackType

from odps_dbapi.application.services.job_poller import JobPoller
from odps_dbapi.application.services.job_submitter import JobSubmitter
from odps_dbapi.application.services.result_materializer import ResultMaterializer
from odps_dbapi.application.services.statement import Statement
from odps_dbapi.domain.errors import InvalidStateError
from odps_dbapi.domain.ports import (
    CatalogService,
    DiagnosticsLinkProvider,
    JobService,
    TransferService,
)

_DEFAULT_LIFECYCLE_DAYS = 3
_DEFAULT_POLL_INTERVAL_SECONDS = 3.0
_DEFAULT_FETCH_SIZE = 10000

logger = logging.getLogger(__name__)


class Connection:
    """Shared entry point that hands out statements."""

    def __init__(
        self,
        job_service: JobService,
        catalog: CatalogService,
        transfer: TransferService,
        link_provider: DiagnosticsLinkProvider,
        *,
        lifecycle_days: int = _DEFAULT_LIFECYCLE_DAYS,
        poll_interval_seconds: float = _DEFAULT_POLL_INTERVAL_SECONDS,
        fetch_size: int = _DEFAULT_FETCH_SIZE,
        sql_task_properties: Mapping[str, str] | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        if lifecycle_days < 1:
            raise InvalidStateError("lifecycle must be >= 1 day")
        self._job_service = job_service
        self._lifecycle_days = lifecycle_days
        self._fetch_size = max(fetch_size, 1)
        self._sql_task_properties: dict[str, str] = dict(sql_task_properties or {})
        self._submitter = JobSubmitter(job_service, link_provider)
        self._poller = JobPoller(job_service, poll_interval_seconds)
        self._materializer = ResultMaterializer(
            submitter=self._submitter,
            poller=self._poller,
            catalog=catalog,
            transfer=transfer,
        )
        self._on_close = on_close
        self._statements: weakref.WeakSet[Statement] = weakref.WeakSet()
        self._closed = False

    @property
    def job_service(self) -> JobService:
        """Return the job service port."""

        return self._job_service

    @property
    def submitter(self) -> JobSubmitter:
        """Return the shared job submitter."""

        return self._submitter

    @property
    def poller(self) -> JobPoller:
        """Return the shared job poller."""

        return self._poller

    @property
    def materializer(self) -> ResultMaterializer:
        """Return the shared result materializer."""

        return self._materializer

    @property
    def lifecycle_days(self) -> int:
        """Return the retention in days given to temp tables."""

        return self._lifecycle_days

    @property
    def fetch_size(self) -> int:
        """Return the default fetch size for new statements."""

        return self._fetch_size

    @property
    def sql_task_properties(self) -> dict[str, str]:
        """Return the defaults copied into every new statement."""

        return self._sql_task_properties

    @property
    def closed(self) -> bool:
        """Return whether the connection has been closed."""

        return self._closed

    def create_statement(self, scrollable: bool = False) -> Statement:
        """Create a statement bound to this connection."""

        if self._closed:
            raise InvalidStateError("The connection has been closed")
        statement = Statement(self, scrollable=scrollable)
        self._statements.add(statement)
        return statement

    def forget_statement(self, statement: Statement) -> None:
        """Stop tracking a statement that closed itself."""

        self._statements.discard(statement)

    def close(self) -> None:
        """Close every open statement and release transport resources."""

        if self._closed:
            return
        for statement in list(self._statements):
            statement.close()
        self._closed = True
        if self._on_close is not None:
            self._on_close()
        logger.debug("the connection has been closed")

    def __enter__(self) -> Connection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["Connection"]
