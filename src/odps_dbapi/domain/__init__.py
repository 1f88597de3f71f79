"""Domain public API."""

from odps_dbapi.domain.entities import (
    ColumnSchema,
    FetchDirection,
    ResultSchema,
    StatementWarning,
    WarningChain,
)
from odps_dbapi.domain.errors import (
    ExecutionInterruptedError,
    InvalidStateError,
    MaterializationError,
    PollingError,
    RemoteJobCancelled,
    RemoteJobFailure,
    RemoteServiceError,
    SchemaError,
    StatementError,
    SubmissionError,
    TransferError,
)
from odps_dbapi.domain.execution_state import ExecutionState, Idle, ResultReady, UpdateReady
from odps_dbapi.domain.job_models import (
    SQL_TASK_NAME,
    TERMINAL_TASK_STATUSES,
    JobCancelled,
    JobDescription,
    JobFailed,
    JobHandle,
    JobOutcome,
    JobSucceeded,
    PollInterrupted,
    TaskStatus,
    TaskSummary,
)
from odps_dbapi.domain.ports import (
    CatalogService,
    DiagnosticsLinkProvider,
    DownloadSession,
    JobService,
    ResultCursor,
    TransferService,
)
from odps_dbapi.domain.statement_types import (
    PropertyDirective,
    StatementKind,
    classify,
    is_query,
    parse_property_directive,
)

__all__ = [
    "CatalogService",
    "ColumnSchema",
    "DiagnosticsLinkProvider",
    "DownloadSession",
    "ExecutionInterruptedError",
    "ExecutionState",
    "FetchDirection",
    "Idle",
    "InvalidStateError",
    "JobCancelled",
    "JobDescription",
    "JobFailed",
    "JobHandle",
    "JobOutcome",
    "JobService",
    "JobSucceeded",
    "MaterializationError",
    "PollInterrupted",
    "PollingError",
    "PropertyDirective",
    "RemoteJobCancelled",
    "RemoteJobFailure",
    "RemoteServiceError",
    "ResultCursor",
    "ResultReady",
    "ResultSchema",
    "SQL_TASK_NAME",
    "SchemaError",
    "StatementError",
    "StatementKind",
    "StatementWarning",
    "SubmissionError",
    "TERMINAL_TASK_STATUSES",
    "TaskStatus",
    "TaskSummary",
    "TransferError",
    "TransferService",
    "UpdateReady",
    "WarningChain",
    "classify",
    "is_query",
    "parse_property_directive",
]
