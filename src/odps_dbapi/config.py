"""Driver settings."""

import json
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Connection settings loaded from environment variables."""

    endpoint: str = ""
    project: str = ""
    access_id: str | None = None
    access_key: str | None = None
    tunnel_endpoint: str | None = None
    logview_host: str | None = None
    logview_hours: int = 7 * 24
    lifecycle_days: int = 3
    poll_interval_seconds: float = 3.0
    fetch_size: int = 10000
    http_timeout_seconds: float = 30.0
    sql_task_properties: Annotated[dict[str, str], NoDecode] = Field(default_factory=dict)

    @field_validator("sql_task_properties", mode="before")
    @classmethod
    def parse_properties(cls, value: object) -> object:
        """Accept a JSON object or comma-separated `key=value` pairs."""

        if not isinstance(value, str):
            return value
        text = value.strip()
        if not text:
            return {}
        if text.startswith("{"):
            return json.loads(text)

        properties: dict[str, str] = {}
        for item in text.split(","):
            if not item.strip():
                continue
            key, separator, item_value = item.partition("=")
            if not separator or not key.strip():
                raise ValueError(f"Invalid SQL task property '{item.strip()}', expected key=value.")
            properties[key.strip()] = item_value.strip()
        return properties

    @model_validator(mode="after")
    def validate_connection_settings(self) -> "Settings":
        """Ensure endpoint and tuning values are usable."""

        if not self.endpoint.strip():
            raise ValueError("ODPS_DBAPI_ENDPOINT is required.")
        if not self.project.strip():
            raise ValueError("ODPS_DBAPI_PROJECT is required.")
        if (self.access_id is None) != (self.access_key is None):
            raise ValueError(
                "ODPS_DBAPI_ACCESS_ID and ODPS_DBAPI_ACCESS_KEY must be set together."
            )
        if self.lifecycle_days < 1:
            raise ValueError("ODPS_DBAPI_LIFECYCLE_DAYS must be >= 1.")
        if self.poll_interval_seconds < 0:
            raise ValueError("ODPS_DBAPI_POLL_INTERVAL_SECONDS must be >= 0.")
        if self.fetch_size < 1:
            raise ValueError("ODPS_DBAPI_FETCH_SIZE must be >= 1.")
        if self.http_timeout_seconds <= 0:
            raise ValueError("ODPS_DBAPI_HTTP_TIMEOUT_SECONDS must be > 0.")
        if self.logview_hours < 1:
            raise ValueError("ODPS_DBAPI_LOGVIEW_HOURS must be >= 1.")
        return self

    @property
    def resolved_tunnel_endpoint(self) -> str:
        """Tunnel endpoint, defaulting to the service endpoint."""

        if self.tunnel_endpoint is not None and self.tunnel_endpoint.strip():
            return self.tunnel_endpoint.strip()
        return self.endpoint.strip()

    model_config = SettingsConfigDict(env_prefix="ODPS_DBAPI_", extra="ignore")


__all__ = ["Settings"]
