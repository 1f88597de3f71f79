"""Execution trace (LogView) links for submitted jobs."""

from __future__ import annotations

from urllib.parse import urlencode

from odps_dbapi.domain.job_models import JobHandle
from odps_dbapi.domain.ports import DiagnosticsLinkProvider

DEFAULT_LOGVIEW_HOST = "http://logview.odps.aliyun.com"
DEFAULT_LOGVIEW_HOURS = 7 * 24


class LogViewLinkBuilder(DiagnosticsLinkProvider):
    """Build `<host>/logview/?h=<endpoint>&p=<project>&i=<instance>&hours=<n>` links."""

    def __init__(
        self,
        endpoint: str,
        project: str,
        host: str | None = None,
        hours: int = DEFAULT_LOGVIEW_HOURS,
    ) -> None:
        self._endpoint = endpoint.strip().rstrip("/")
        self._project = project
        self._host = (host or DEFAULT_LOGVIEW_HOST).strip().rstrip("/")
        self._hours = max(hours, 1)

    def link_for(self, handle: JobHandle) -> str:
        query = urlencode(
            {
                "h": self._endpoint,
                "p": self._project,
                "i": handle.instance_id,
                "hours": self._hours,
            }
        )
        return f"{self._host}/logview/?{query}"


__all__ = ["DEFAULT_LOGVIEW_HOST", "DEFAULT_LOGVIEW_HOURS", "LogViewLinkBuilder"]
