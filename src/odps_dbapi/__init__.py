"""Statement execution driver for a job-based SQL service."""

from odps_dbapi.application import Connection, ForwardResultSet, ScrollableResultSet, Statement
from odps_dbapi.bootstrap import build_connection, connect
from odps_dbapi.config import Settings
from odps_dbapi.domain.errors import (
    ExecutionInterruptedError,
    InvalidStateError,
    MaterializationError,
    PollingError,
    RemoteJobCancelled,
    RemoteJobFailure,
    SchemaError,
    StatementError,
    SubmissionError,
    TransferError,
)

__version__ = "0.1.0"

__all__ = [
    "Connection",
    "ExecutionInterruptedError",
    "ForwardResultSet",
    "InvalidStateError",
    "MaterializationError",
    "PollingError",
    "RemoteJobCancelled",
    "RemoteJobFailure",
    "SchemaError",
    "ScrollableResultSet",
    "Settings",
    "Statement",
    "StatementError",
    "SubmissionError",
    "TransferError",
    "__version__",
    "build_connection",
    "connect",
]
