"""Request signing for the job service and tunnel endpoints."""

from __future__ import annotations

import base64
import hashlib
import hmac
from collections.abc import Generator
from email.utils import formatdate

import httpx

_SIGNED_HEADER_PREFIX = "x-odps-"


class AccountAuth(httpx.Auth):
    """Sign each request with `Authorization: ODPS <access_id>:<signature>`.

    The signature is an HMAC-SHA1 over the method, Content-MD5, Content-Type,
    Date, the `x-odps-*` headers and the canonical resource (path relative to
    the endpoint plus sorted query parameters).
    """

    def __init__(self, access_id: str, access_key: str, base_path: str = "") -> None:
        self._access_id = access_id
        self._access_key = access_key.encode("utf-8")
        self._base_path = base_path.rstrip("/")

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if "Date" not in request.headers:
            request.headers["Date"] = formatdate(usegmt=True)
        signature = self.signature(request)
        request.headers["Authorization"] = f"ODPS {self._access_id}:{signature}"
        yield request

    def signature(self, request: httpx.Request) -> str:
        """Return the base64 signature for a request."""

        digest = hmac.new(
            self._access_key,
            self.string_to_sign(request).encode("utf-8"),
            digestmod=hashlib.sha1,
        ).digest()
        return base64.b64encode(digest).decode("ascii")

    def string_to_sign(self, request: httpx.Request) -> str:
        """Return the canonical text covered by the signature."""

        lines = [
            request.method.upper(),
            request.headers.get("Content-MD5", ""),
            request.headers.get("Content-Type", ""),
            request.headers.get("Date", ""),
        ]
        signed_headers = sorted(
            (name.lower(), value)
            for name, value in request.headers.items()
            if name.lower().startswith(_SIGNED_HEADER_PREFIX)
        )
        lines.extend(f"{name}:{value}" for name, value in signed_headers)
        lines.append(self._canonical_resource(request.url))
        return "\n".join(lines)

    def _canonical_resource(self, url: httpx.URL) -> str:
        path = url.path
        if self._base_path and path.startswith(self._base_path):
            path = path[len(self._base_path) :] or "/"
        params = sorted(url.params.multi_items())
        if not params:
            return path
        query = "&".join(name if not value else f"{name}={value}" for name, value in params)
        return f"{path}?{query}"


__all__ = ["AccountAuth"]
