"""Application layer public API."""

from odps_dbapi.application.result_sets import ForwardResultSet, ScrollableResultSet
from odps_dbapi.application.services import (
    Connection,
    JobPoller,
    JobSubmitter,
    ResultMaterializer,
    Statement,
)

__all__ = [
    "Connection",
    "ForwardResultSet",
    "JobPoller",
    "JobSubmitter",
    "ResultMaterializer",
    "ScrollableResultSet",
    "Statement",
]
