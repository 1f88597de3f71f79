"""Bulk download adapters."""

from odps_dbapi.infrastructure.tunnel.client import (
    TunnelClient,
    TunnelClientError,
    TunnelDownloadSession,
)

__all__ = ["TunnelClient", "TunnelClientError", "TunnelDownloadSession"]
