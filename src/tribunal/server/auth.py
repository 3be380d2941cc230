# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Bearer token authentication for the HTTP API.

Tokens are stored hashed in a JSON file. Each token belongs to a client id
(the principal) and carries scopes:

- markets:read       read markets, disputes, statistics and bond quotes
- disputes:write     submit disputes
- arbitration:admin  everything, including decisions, proposals and sweeps
"""

from __future__ import annotations

import hashlib
import json
import logging
import secrets
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Token prefix for identification
TOKEN_PREFIX = "tt_"

SCOPE_READ = "markets:read"
SCOPE_WRITE = "disputes:write"
SCOPE_ADMIN = "arbitration:admin"

DEFAULT_SCOPES = [SCOPE_READ, SCOPE_WRITE]
ALL_SCOPES = [SCOPE_READ, SCOPE_WRITE, SCOPE_ADMIN]


@dataclass
class Token:
    """A stored API token."""

    token_hash: str
    client_id: str
    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    expires_at: float | None = None
    created_at: float = field(default_factory=time.time)
    description: str = ""

    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at

    def has_scope(self, scope: str) -> bool:
        """Admin tokens implicitly hold every scope."""
        return scope in self.scopes or SCOPE_ADMIN in self.scopes

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_hash": self.token_hash,
            "client_id": self.client_id,
            "scopes": self.scopes,
            "expires_at": self.expires_at,
            "created_at": self.created_at,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Token:
        return cls(
            token_hash=data["token_hash"],
            client_id=data["client_id"],
            scopes=data.get("scopes", list(DEFAULT_SCOPES)),
            expires_at=data.get("expires_at"),
            created_at=data.get("created_at", time.time()),
            description=data.get("description", ""),
        )


def hash_token(token: str) -> str:
    """Hash a token using SHA-256."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_token() -> str:
    return f"{TOKEN_PREFIX}{secrets.token_hex(32)}"


class TokenStore:
    """File-based token storage with hashed tokens."""

    def __init__(self, token_file: Path):
        self.token_file = token_file
        self._tokens: dict[str, Token] = {}  # hash -> Token
        self._load()

    def _load(self) -> None:
        if not self.token_file.exists():
            self._tokens = {}
            return

        try:
            with open(self.token_file) as f:
                data = json.load(f)
            self._tokens = {t["token_hash"]: Token.from_dict(t) for t in data.get("tokens", [])}
            logger.info(f"Loaded {len(self._tokens)} tokens from {self.token_file}")
        except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
            logger.error(f"Failed to load tokens from {self.token_file}: {e}")
            self._tokens = {}

    def _save(self) -> None:
        self.token_file.parent.mkdir(parents=True, exist_ok=True)

        data = {"tokens": [t.to_dict() for t in self._tokens.values()]}
        with open(self.token_file, "w") as f:
            json.dump(data, f, indent=2)
        self.token_file.chmod(0o600)

    def create(
        self,
        client_id: str,
        description: str = "",
        scopes: list[str] | None = None,
        expires_at: float | None = None,
    ) -> str:
        """Create a new token and return the raw token (shown only once)."""
        unknown = [s for s in scopes or [] if s not in ALL_SCOPES]
        if unknown:
            raise ValueError(f"Unknown scopes: {', '.join(unknown)}")

        raw_token = generate_token()
        token = Token(
            token_hash=hash_token(raw_token),
            client_id=client_id,
            scopes=scopes or list(DEFAULT_SCOPES),
            expires_at=expires_at,
            description=description,
        )

        self._tokens[token.token_hash] = token
        self._save()

        logger.info(f"Created token for client '{client_id}' with scopes {token.scopes}")
        return raw_token

    def verify(self, raw_token: str) -> Token | None:
        """Return the Token for a raw token string, or None if unknown/expired."""
        if not raw_token:
            return None

        if raw_token.startswith("Bearer "):
            raw_token = raw_token[7:]

        token = self._tokens.get(hash_token(raw_token))
        if token is None:
            logger.warning("Token not found")
            return None

        if token.is_expired():
            logger.debug(f"Token for client '{token.client_id}' is expired")
            return None

        return token

    def revoke(self, token_hash: str) -> bool:
        if token_hash in self._tokens:
            client_id = self._tokens[token_hash].client_id
            del self._tokens[token_hash]
            self._save()
            logger.info(f"Revoked token for client '{client_id}'")
            return True
        return False

    def list_tokens(self) -> list[Token]:
        return list(self._tokens.values())

    def get_by_client_id(self, client_id: str) -> list[Token]:
        return [t for t in self._tokens.values() if t.client_id == client_id]


class TokenScopeAccessControl:
    """AccessControl backed by token scopes: admins hold a live arbitration:admin token."""

    def __init__(self, store: TokenStore):
        self.store = store

    def is_admin(self, principal: str) -> bool:
        return any(
            SCOPE_ADMIN in t.scopes and not t.is_expired() for t in self.store.get_by_client_id(principal)
        )


# Global token store - lazy loaded
_token_store: TokenStore | None = None


def get_token_store(token_file: Path | None = None) -> TokenStore:
    """Get the global token store instance."""
    global _token_store
    if _token_store is None:
        if token_file is None:
            from .config import get_settings

            token_file = get_settings().token_file
        _token_store = TokenStore(token_file)
    return _token_store


def clear_token_store() -> None:
    """Drop the global token store. Useful for testing."""
    global _token_store
    _token_store = None


def verify_token(raw_token: str) -> Token | None:
    return get_token_store().verify(raw_token)
