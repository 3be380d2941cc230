"""Server-specific test fixtures."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest
from starlette.testclient import TestClient

from tribunal.core.engine import ResolutionEngine
from tribunal.server.auth import SCOPE_ADMIN, SCOPE_READ, TokenScopeAccessControl, TokenStore
from tribunal.server.config import ServerSettings

ADMIN_CLIENT = "ops"


@pytest.fixture
def clean_server_settings():
    """Reset server settings between tests."""
    import tribunal.server.config as config_module

    config_module._settings = None
    yield
    config_module._settings = None


@pytest.fixture
def clean_token_store():
    """Reset token store between tests."""
    import tribunal.server.auth as auth_module

    auth_module._token_store = None
    yield
    auth_module._token_store = None


@pytest.fixture
def temp_token_file(tmp_path) -> Path:
    return tmp_path / "tokens.json"


@pytest.fixture
def token_store(clean_token_store, temp_token_file) -> TokenStore:
    """Global token store backed by a temp file."""
    import tribunal.server.auth as auth_module

    store = TokenStore(temp_token_file)
    auth_module._token_store = store
    return store


@pytest.fixture
def tokens(token_store) -> dict[str, str]:
    """Raw tokens by client id: two disputers, a read-only viewer and an admin."""
    return {
        "carol": token_store.create("carol"),
        "poor": token_store.create("poor"),
        "viewer": token_store.create("viewer", scopes=[SCOPE_READ]),
        ADMIN_CLIENT: token_store.create(ADMIN_CLIENT, scopes=[SCOPE_ADMIN]),
    }


@pytest.fixture
def auth(tokens):
    """Authorization headers for a client id."""

    def _headers(client_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {tokens[client_id]}"}

    return _headers


@pytest.fixture
def api_engine(ledger, reputation, clock, token_store) -> ResolutionEngine:
    return ResolutionEngine(
        ledger=ledger,
        reputation=reputation,
        access=TokenScopeAccessControl(token_store),
        dispute_period=timedelta(hours=48),
        clock=clock,
    )


@pytest.fixture
def client(clean_server_settings, api_engine, temp_token_file) -> TestClient:
    from tribunal.server.app import create_app

    settings = ServerSettings(_env_file=None, token_file=temp_token_file)
    return TestClient(create_app(engine=api_engine, settings=settings))


@pytest.fixture
def open_market(client, auth) -> str:
    """Market m1 with a proposed resolution and an open dispute window."""
    client.post("/api/v1/markets", json={"market_id": "m1", "title": "Rain in Lisbon?"}, headers=auth(ADMIN_CLIENT))
    client.post(
        "/api/v1/markets/m1/resolution",
        json={"outcome": "affirmed", "source": "api", "confidence": "high"},
        headers=auth(ADMIN_CLIENT),
    )
    return "m1"


@pytest.fixture
def dispute_body() -> dict:
    return {
        "dispute_type": "evidence",
        "reason": "The airport station recorded 4mm of rain that day",
        "evidence_url": "https://example.com/station-report",
    }
