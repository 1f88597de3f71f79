"""HTTP client for table download sessions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

from odps_dbapi.domain.errors import RemoteServiceError
from odps_dbapi.domain.ports import DownloadSession, TransferService
from odps_dbapi.infrastructure.http_client import JsonHttpClient


class TunnelClientError(RemoteServiceError):
    """Raised when tunnel calls fail."""


class TunnelDownloadSession(DownloadSession):
    """One server-side download session over a table."""

    def __init__(
        self,
        client: TunnelClient,
        table_name: str,
        session_id: str,
        record_count: int,
    ) -> None:
        self._client = client
        self._table_name = table_name
        self._session_id = session_id
        self._record_count = record_count

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def record_count(self) -> int:
        return self._record_count

    @property
    def table_name(self) -> str:
        """Return the table this session reads."""

        return self._table_name

    def read_rows(self, start: int, count: int) -> Sequence[tuple[Any, ...]]:
        if count <= 0:
            return []
        return self._client.read_rows(self._table_name, self._session_id, start, count)


class TunnelClient(JsonHttpClient, TransferService):
    """Wrapper around the tunnel `downloads` resource of a table."""

    error_class = TunnelClientError

    def open_download_session(self, table_name: str) -> TunnelDownloadSession:
        """Call `POST /projects/{project}/tables/{name}?downloads`."""

        response = self._request("POST", self._table_url(table_name), params={"downloads": ""})
        payload = self._parse_json(response)
        session_id = payload.get("DownloadID")
        record_count = payload.get("RecordCount")
        if not isinstance(session_id, str) or not session_id:
            raise TunnelClientError(f"Download session for '{table_name}' has no DownloadID.")
        if not isinstance(record_count, int) or record_count < 0:
            raise TunnelClientError(
                f"Download session '{session_id}' has invalid RecordCount {record_count!r}."
            )
        return TunnelDownloadSession(self, table_name, session_id, record_count)

    def read_rows(
        self,
        table_name: str,
        session_id: str,
        start: int,
        count: int,
    ) -> list[tuple[Any, ...]]:
        """Call `GET ...?downloadid={id}&rowrange=({start},{count})&data`."""

        response = self._request(
            "GET",
            self._table_url(table_name),
            params={
                "downloadid": session_id,
                "rowrange": f"({start},{count})",
                "data": "",
            },
        )
        records = self._parse_json(response).get("records")
        if not isinstance(records, list):
            raise TunnelClientError(f"Download session '{session_id}' returned no records.")
        return [tuple(record) for record in records if isinstance(record, list)]

    def _table_url(self, table_name: str) -> str:
        return self._project_url(f"/tables/{quote(table_name, safe='')}")


__all__ = ["TunnelClient", "TunnelClientError", "TunnelDownloadSession"]
