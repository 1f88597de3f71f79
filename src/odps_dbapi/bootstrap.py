"""Connection bootstrap/wiring."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import httpx

from odps_dbapi.application.services import Connection
from odps_dbapi.config import Settings
from odps_dbapi.infrastructure.odps import AccountAuth, LogViewLinkBuilder, OdpsRestClient
from odps_dbapi.infrastructure.tunnel import TunnelClient

logger = logging.getLogger(__name__)


def _build_auth(settings: Settings, endpoint: str) -> httpx.Auth | None:
    if settings.access_id is None or settings.access_key is None:
        logger.warning(
            "ODPS_DBAPI_ACCESS_ID/ODPS_DBAPI_ACCESS_KEY are not set. "
            "Requests to '%s' will be sent unsigned.",
            endpoint,
        )
        return None
    return AccountAuth(
        access_id=settings.access_id,
        access_key=settings.access_key,
        base_path=urlparse(endpoint).path,
    )


def build_connection(
    settings: Settings,
    transport: httpx.BaseTransport | None = None,
) -> Connection:
    """Compose adapters and services into a connection."""

    endpoint = settings.endpoint.strip()
    tunnel_endpoint = settings.resolved_tunnel_endpoint

    rest_client = OdpsRestClient(
        endpoint=endpoint,
        project=settings.project,
        auth=_build_auth(settings, endpoint),
        timeout_seconds=settings.http_timeout_seconds,
        transport=transport,
    )
    tunnel_client = TunnelClient(
        endpoint=tunnel_endpoint,
        project=settings.project,
        auth=_build_auth(settings, tunnel_endpoint),
        timeout_seconds=settings.http_timeout_seconds,
        transport=transport,
    )

    def close_clients() -> None:
        rest_client.close()
        tunnel_client.close()

    logger.info(
        "Connecting to project '%s' at '%s' (tunnel '%s').",
        settings.project,
        endpoint,
        tunnel_endpoint,
    )
    return Connection(
        job_service=rest_client,
        catalog=rest_client,
        transfer=tunnel_client,
        link_provider=LogViewLinkBuilder(
            endpoint=endpoint,
            project=settings.project,
            host=settings.logview_host,
            hours=settings.logview_hours,
        ),
        lifecycle_days=settings.lifecycle_days,
        poll_interval_seconds=settings.poll_interval_seconds,
        fetch_size=settings.fetch_size,
        sql_task_properties=settings.sql_task_properties,
        on_close=close_clients,
    )


def connect(settings: Settings | None = None, **overrides: Any) -> Connection:
    """Open a connection from settings, environment variables and keyword overrides."""

    if settings is None:
        settings = Settings(**overrides)
    elif overrides:
        settings = Settings.model_validate({**settings.model_dump(), **overrides})
    return build_connection(settings)


__all__ = ["build_connection", "connect"]
