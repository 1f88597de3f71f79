"""Shared JSON-over-HTTP plumbing for service adapters."""

from __future__ import annotations

from typing import Any, ClassVar
from urllib.parse import quote, urlparse

import httpx

from odps_dbapi.domain.errors import RemoteServiceError


class JsonHttpClient:
    """Synchronous httpx wrapper that maps failures onto `error_class`."""

    error_class: ClassVar[type[RemoteServiceError]] = RemoteServiceError

    def __init__(
        self,
        endpoint: str,
        project: str,
        auth: httpx.Auth | None = None,
        timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._endpoint = self._normalize_endpoint(endpoint)
        self._project = project
        self._http = httpx.Client(
            timeout=timeout_seconds,
            transport=transport,
            auth=auth,
        )

    @property
    def endpoint(self) -> str:
        """Return the normalized service endpoint."""

        return self._endpoint

    @property
    def project(self) -> str:
        """Return the default project."""

        return self._project

    def close(self) -> None:
        """Release underlying HTTP resources."""

        self._http.close()

    def _request(
        self,
        method: str,
        url: str,
        *,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise self.error_class(f"{method} {url} failed: {exc}") from exc
        if allow_not_found and response.status_code == 404:
            return response
        self._ensure_success(response)
        return response

    def _project_url(self, path: str) -> str:
        project = quote(self._project, safe="")
        return f"{self._endpoint}/projects/{project}{path}"

    def _ensure_success(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = self._detail_from_response(response)
        raise self.error_class(
            f"{response.request.method} {response.request.url} failed: "
            f"{response.status_code} {message}"
        )

    def _parse_json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise self.error_class(
                f"{response.request.method} {response.request.url} returned invalid JSON."
            ) from exc
        if not isinstance(payload, dict):
            raise self.error_class(
                f"{response.request.method} {response.request.url} returned non-object JSON."
            )
        return payload

    def _detail_from_response(self, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            text = response.text.strip()
            return text or "<no response body>"

        if isinstance(payload, dict):
            for key in ("Message", "message", "detail"):
                detail = payload.get(key)
                if isinstance(detail, str):
                    return detail
        return str(payload)

    def _normalize_endpoint(self, endpoint: str) -> str:
        normalized = endpoint.strip().rstrip("/")
        if not normalized:
            raise self.error_class("Service endpoint cannot be empty.")
        if not urlparse(normalized).scheme:
            raise self.error_class(f"Service endpoint '{endpoint}' must include a scheme.")
        return normalized


__all__ = ["JsonHttpClient"]
