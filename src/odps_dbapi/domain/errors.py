"""Domain exceptions for statement execution."""

from __future__ import annotations

_NO_FAILURE_DETAIL = "<no failure detail>"


class RemoteServiceError(Exception):
    """Raised by service adapters when a remote call fails."""


class StatementError(Exception):
    """Base class for statement errors."""


class InvalidStateError(StatementError):
    """Raised when an operation is not valid for the statement's current state."""


class SubmissionError(StatementError):
    """Raised when a job cannot be submitted."""


class PollingError(StatementError):
    """Raised when job status cannot be queried."""


class RemoteJobFailure(StatementError):
    """Raised when a job reaches the FAILED status."""

    def __init__(self, reason: str | None, detail_error: Exception | None = None) -> None:
        self.reason = reason
        self.detail_error = detail_error
        if detail_error is None:
            message = f"execute instance failed: {reason or _NO_FAILURE_DETAIL}"
        else:
            message = f"execute instance failed; failure detail unavailable: {detail_error}"
        super().__init__(message)


class RemoteJobCancelled(StatementError):
    """Raised when a job reaches the CANCELLED status."""


class ExecutionInterruptedError(StatementError):
    """Raised when waiting for a job was interrupted before a terminal status."""


class MaterializationError(StatementError):
    """Raised when query results cannot be materialized into a temp table."""


class SchemaError(StatementError):
    """Raised when the temp table schema cannot be read."""


class TransferError(StatementError):
    """Raised when a download session cannot be opened or read."""


__all__ = [
    "ExecutionInterruptedError",
    "InvalidStateError",
    "MaterializationError",
    "PollingError",
    "RemoteJobCancelled",
    "RemoteJobFailure",
    "RemoteServiceError",
    "SchemaError",
    "StatementError",
    "SubmissionError",
    "TransferError",
]
