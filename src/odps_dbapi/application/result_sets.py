"""Result cursors over temp-table download sessions."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from odps_dbapi.domain.entities import FetchDirection, ResultSchema
from odps_dbapi.domain.errors import InvalidStateError, RemoteServiceError, TransferError
from odps_dbapi.domain.ports import DownloadSession

Row = tuple[Any, ...]

_DEFAULT_FETCH_SIZE = 10000


class ForwardResultSet:
    """Read-forward cursor that pulls rows from a download session in windows."""

    def __init__(
        self,
        schema: ResultSchema,
        session: DownloadSession,
        *,
        fetch_size: int = _DEFAULT_FETCH_SIZE,
        max_rows: int = 0,
        fetch_direction: FetchDirection = FetchDirection.UNKNOWN,
    ) -> None:
        self._schema = schema
        self._session = session
        self._fetch_size = max(fetch_size, 1)
        self._fetch_direction = fetch_direction
        total = session.record_count
        self._total = total if max_rows <= 0 else min(total, max_rows)
        self._position = 0
        self._window_start = 0
        self._window: list[Row] = []
        self._closed = False
        self.arraysize = 1

    @property
    def schema(self) -> ResultSchema:
        """Return the column layout."""

        return self._schema

    @property
    def description(self) -> list[tuple[str, str, None, None, None, None, bool]]:
        """Return DB-API column descriptions."""

        return self._schema.description

    @property
    def rowcount(self) -> int:
        """Return the number of rows this cursor will yield."""

        return self._total

    @property
    def session_id(self) -> str:
        """Return the backing download session id."""

        return self._session.session_id

    @property
    def fetch_direction(self) -> FetchDirection:
        """Return the fetch direction hint."""

        return self._fetch_direction

    @property
    def closed(self) -> bool:
        """Return whether the cursor has been closed."""

        return self._closed

    def fetchone(self) -> Row | None:
        """Return the next row, or None when exhausted."""

        self._ensure_open()
        if self._position >= self._total:
            return None
        row = self._row_at(self._position)
        self._position += 1
        return row

    def fetchmany(self, size: int | None = None) -> list[Row]:
        """Return up to `size` rows (default `arraysize`)."""

        count = self.arraysize if size is None else size
        rows: list[Row] = []
        while len(rows) < count:
            row = self.fetchone()
            if row is None:
                break
            rows.append(row)
        return rows

    def fetchall(self) -> list[Row]:
        """Return every remaining row."""

        return list(self)

    def close(self) -> None:
        """Release buffered rows; idempotent."""

        self._closed = True
        self._window = []

    def __iter__(self) -> Iterator[Row]:
        while True:
            row = self.fetchone()
            if row is None:
                return
            yield row

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidStateError("The result set has been closed")

    def _row_at(self, index: int) -> Row:
        offset = index - self._window_start
        if not 0 <= offset < len(self._window):
            self._load_window(index)
            offset = index - self._window_start
        return self._window[offset]

    def _load_window(self, index: int) -> None:
        start = index
        if self._moving_backward(index):
            start = max(0, index - self._fetch_size + 1)
        count = min(self._fetch_size, self._total - start)
        try:
            rows = self._session.read_rows(start, count)
        except RemoteServiceError as exc:
            raise TransferError(
                f"Fail to read rows [{start}, {start + count}) of download session "
                f"'{self._session.session_id}': {exc}"
            ) from exc
        if index - start >= len(rows):
            raise TransferError(
                f"Download session '{self._session.session_id}' returned {len(rows)} rows, "
                f"expected {count}."
            )
        self._window_start = start
        self._window = [tuple(row) for row in rows]

    def _moving_backward(self, index: int) -> bool:
        # A REVERSE window ends at `index` only when reading toward the start.
        if self._fetch_direction is not FetchDirection.REVERSE:
            return False
        return not self._window or index < self._window_start


class ScrollableResultSet(ForwardResultSet):
    """Cursor that can also reposition within the result."""

    @property
    def rownumber(self) -> int:
        """Return the zero-based index of the next row to fetch."""

        return self._position

    def scroll(self, value: int, mode: str = "relative") -> None:
        """Move the cursor like DB-API `scroll`; out-of-range targets raise IndexError."""

        self._ensure_open()
        if mode == "relative":
            target = self._position + value
        elif mode == "absolute":
            target = value
        else:
            raise InvalidStateError(f"Unknown scroll mode '{mode}'.")

        if not 0 <= target <= self._total:
            raise IndexError(f"Scroll target {target} outside [0, {self._total}].")
        self._position = target


__all__ = ["ForwardResultSet", "Row", "ScrollableResultSet"]
