"""Per-execution statement state."""

from __future__ import annotations

from dataclasses import dataclass

from odps_dbapi.domain.ports import ResultCursor


@dataclass(slots=True, frozen=True)
class Idle:
    """No result is held."""


@dataclass(slots=True, frozen=True)
class ResultReady:
    """A query produced a result cursor backed by a temp table."""

    result_set: ResultCursor
    temp_table: str


@dataclass(slots=True, frozen=True)
class UpdateReady:
    """An update finished; `consumed` flips after the first count read."""

    update_count: int
    consumed: bool = False


ExecutionState = Idle | ResultReady | UpdateReady


__all__ = ["ExecutionState", "Idle", "ResultReady", "UpdateReady"]
