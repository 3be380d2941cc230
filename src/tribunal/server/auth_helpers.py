# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Authentication and authorization helpers for REST endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from starlette.requests import Request
from starlette.responses import JSONResponse

from .auth import SCOPE_ADMIN, verify_token
from .errors import AUTH_INVALID_TOKEN, AUTH_MISSING_TOKEN, auth_error, forbidden_error

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedClient:
    """The principal behind a request."""

    client_id: str
    scopes: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return SCOPE_ADMIN in self.scopes


def authenticate(request: Request) -> AuthenticatedClient | JSONResponse:
    """Authenticate a request. Returns client on success, error JSONResponse on failure.

    Usage in endpoints::

        client = authenticate(request)
        if isinstance(client, JSONResponse):
            return client
    """
    auth_header = request.headers.get("Authorization", "")

    if not auth_header.startswith("Bearer "):
        return auth_error("Missing or invalid authentication token", code=AUTH_MISSING_TOKEN)

    token = verify_token(auth_header)
    if token is None:
        return auth_error("Invalid authentication token", code=AUTH_INVALID_TOKEN)

    return AuthenticatedClient(client_id=token.client_id, scopes=list(token.scopes))


def require_scope(client: AuthenticatedClient, scope: str) -> JSONResponse | None:
    """Return a 403 response unless the client holds ``scope`` (admin holds all)."""
    if scope in client.scopes or client.is_admin:
        return None

    logger.warning(f"Client '{client.client_id}' lacks scope {scope}")
    return forbidden_error(f"Insufficient scope. Required: {scope}")
