"""Infrastructure layer public API."""

from odps_dbapi.infrastructure.odps import (
    AccountAuth,
    LogViewLinkBuilder,
    OdpsClientError,
    OdpsRestClient,
)
from odps_dbapi.infrastructure.tunnel import (
    TunnelClient,
    TunnelClientError,
    TunnelDownloadSession,
)

__all__ = [
    "AccountAuth",
    "LogViewLinkBuilder",
    "OdpsClientError",
    "OdpsRestClient",
    "TunnelClient",
    "TunnelClientError",
    "TunnelDownloadSession",
]
