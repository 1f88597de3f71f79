"""Job service and catalog adapters."""

from odps_dbapi.infrastructure.odps.auth import AccountAuth
from odps_dbapi.infrastructure.odps.client import OdpsClientError, OdpsRestClient
from odps_dbapi.infrastructure.odps.logview import LogViewLinkBuilder

__all__ = ["AccountAuth", "LogViewLinkBuilder", "OdpsClientError", "OdpsRestClient"]
