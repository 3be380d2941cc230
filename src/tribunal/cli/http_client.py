# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""HTTP client for the Tribunal REST API.

All CLI commands except ``serve`` and ``token`` talk to the server through
this module.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from .config import get_cli_config


class TribunalAPIError(Exception):
    """Raised when the API returns an error response."""

    def __init__(self, status_code: int, code: str, message: str, details: dict[str, Any] | None = None):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{status_code}] {code}: {message}")


class TribunalConnectionError(Exception):
    """Raised when unable to connect to the server."""

    def __init__(self, server_url: str, detail: str = ""):
        self.server_url = server_url
        msg = f"Cannot connect to Tribunal server at {server_url}"
        if detail:
            msg += f": {detail}"
        msg += "\n\nIs the server running? Start with: tribunal serve"
        super().__init__(msg)


class TribunalClient:
    """Thin HTTP client for the Tribunal REST API."""

    def __init__(self, server_url: str | None = None, token: str | None = None, timeout: float | None = None):
        config = get_cli_config()
        self.base_url = (server_url if server_url is not None else config.server_url).rstrip("/")
        self.token = token if token is not None else config.token
        self.timeout = timeout if timeout is not None else config.timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/v1{path}"

    def _handle_response(self, resp: httpx.Response) -> dict[str, Any]:
        """Parse response, raise TribunalAPIError on failure."""
        if resp.status_code >= 400:
            try:
                error = resp.json().get("error", {})
            except (json.JSONDecodeError, AttributeError):
                raise TribunalAPIError(resp.status_code, "UNKNOWN", resp.text) from None
            raise TribunalAPIError(
                status_code=resp.status_code,
                code=error.get("code", "UNKNOWN"),
                message=error.get("message", resp.text),
                details=error.get("details"),
            )

        try:
            return resp.json()
        except json.JSONDecodeError:
            return {"formatted": resp.text}

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute an HTTP request with connection error handling."""
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.request(
                    method,
                    self._url(path),
                    headers=self._headers(),
                    params={k: v for k, v in (params or {}).items() if v is not None},
                    json=body if method == "POST" and body is not None else None,
                )
            return self._handle_response(resp)
        except httpx.ConnectError:
            raise TribunalConnectionError(self.base_url) from None
        except httpx.TimeoutException:
            raise TribunalConnectionError(self.base_url, "request timed out") from None

    def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._request("GET", path, params=params)

    def post(self, path: str, body: dict[str, Any] | None = None, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._request("POST", path, params=params, body=body)


def get_client() -> TribunalClient:
    """Get a configured TribunalClient instance."""
    return TribunalClient()
