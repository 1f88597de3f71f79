"""Application services public API."""

from odps_dbapi.application.services.connection import Connection
from odps_dbapi.application.services.job_poller import (
    JobPoller,
    poll_until_terminal,
    raise_for_outcome,
)
from odps_dbapi.application.services.job_submitter import JobSubmitter
from odps_dbapi.application.services.result_materializer import (
    CursorOptions,
    MaterializedResult,
    ResultMaterializer,
)
from odps_dbapi.application.services.statement import Statement

__all__ = [
    "Connection",
    "CursorOptions",
    "JobPoller",
    "JobSubmitter",
    "MaterializedResult",
    "ResultMaterializer",
    "Statement",
    "poll_until_terminal",
    "raise_for_outcome",
]
