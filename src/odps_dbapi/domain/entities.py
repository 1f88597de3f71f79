"""Domain entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class FetchDirection(StrEnum):
    """Fetch direction hint passed on to result cursors."""

    FORWARD = "FORWARD"
    REVERSE = "REVERSE"
    UNKNOWN = "UNKNOWN"


@dataclass(slots=True, frozen=True)
class ColumnSchema:
    """One column of a temp table as reported by the catalog."""

    name: str
    type_name: str


@dataclass(slots=True, frozen=True)
class ResultSchema:
    """Ordered column layout of a result set."""

    columns: tuple[ColumnSchema, ...] = ()

    @property
    def column_names(self) -> list[str]:
        """Return column names in result order."""

        return [column.name for column in self.columns]

    @property
    def description(self) -> list[tuple[str, str, None, None, None, None, bool]]:
        """DB-API style seven-item column descriptions."""

        return [
            (column.name, column.type_name, None, None, None, None, True)
            for column in self.columns
        ]


@dataclass(slots=True, frozen=True)
class StatementWarning:
    """Diagnostic attached to the most recent job submission."""

    message: str


@dataclass(slots=True)
class WarningChain:
    """Holds the single most recent statement warning."""

    latest: StatementWarning | None = field(default=None)

    def replace(self, warning: StatementWarning) -> None:
        """Replace the current warning."""

        self.latest = warning

    def clear(self) -> None:
        """Drop the current warning."""

        self.latest = None


__all__ = [
    "ColumnSchema",
    "FetchDirection",
    "ResultSchema",
    "StatementWarning",
    "WarningChain",
]
