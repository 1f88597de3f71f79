"""Build and submit single-task SQL jobs."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from odps_dbapi.domain.entities import StatementWarning, WarningChain
from odps_dbapi.domain.errors import RemoteServiceError, SubmissionError
from odps_dbapi.domain.job_models import SQL_TASK_NAME, JobDescription, JobHandle
from odps_dbapi.domain.ports import DiagnosticsLinkProvider, JobService

logger = logging.getLogger(__name__)


class JobSubmitter:
    """Turn statement text plus session properties into a submitted job."""

    def __init__(
        self,
        job_service: JobService,
        link_provider: DiagnosticsLinkProvider,
        task_name: str = SQL_TASK_NAME,
    ) -> None:
        self._job_service = job_service
        self._link_provider = link_provider
        self._task_name = task_name

    @property
    def task_name(self) -> str:
        """Return the sub-task name every submitted job uses."""

        return self._task_name

    def submit(
        self,
        sql: str,
        properties: Mapping[str, str],
        warnings: WarningChain,
    ) -> JobHandle:
        """Submit `sql` and record the job's trace link in `warnings`."""

        query = self._terminated(sql)
        job = JobDescription(
            task_name=self._task_name,
            query=query,
            settings=dict(properties),
        )
        if properties:
            logger.debug("Enabled SQL task properties: %s", dict(properties))

        try:
            handle = self._job_service.submit(job)
        except RemoteServiceError as exc:
            logger.error("Fail to run sql: %s", query)
            raise SubmissionError(f"Fail to run sql: {exc}") from exc

        link = self._link_provider.link_for(handle)
        logger.debug("Run SQL: %s", query)
        logger.info(link)
        warnings.replace(StatementWarning(link))
        return handle

    def _terminated(self, sql: str) -> str:
        stripped = sql.rstrip()
        if stripped.endswith(";"):
            return stripped
        return f"{stripped};"


__all__ = ["JobSubmitter"]
