# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Starlette ASGI application for the Tribunal HTTP API.

Exposes the resolution engine's commands and read models under /api/v1
with Bearer token authentication.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from tribunal.core.engine import ResolutionEngine
from tribunal.core.exceptions import TribunalException
from tribunal.core.logging import correlation_context

from .auth import TokenScopeAccessControl, get_token_store
from .config import ServerSettings, get_settings
from .endpoints.disputes import (
    disputes_decision_endpoint,
    disputes_get_endpoint,
    disputes_list_endpoint,
    disputes_review_endpoint,
    disputes_statistics_endpoint,
)
from .endpoints.markets import (
    market_disputes_list_endpoint,
    market_disputes_submit_endpoint,
    markets_create_endpoint,
    markets_freeze_endpoint,
    markets_get_endpoint,
    markets_list_endpoint,
    markets_propose_endpoint,
    markets_unlock_endpoint,
)
from .endpoints.system import audit_endpoint, bond_quote_endpoint, sweep_endpoint
from .errors import tribunal_exception_handler

logger = logging.getLogger(__name__)

API_V1 = "/api/v1"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag every log line of a request with its X-Request-ID (or a fresh id)."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        with correlation_context(request.headers.get("X-Request-ID")) as cid:
            response = await call_next(request)
        response.headers["X-Request-ID"] = cid
        return response


async def health_endpoint(request: Request) -> JSONResponse:
    """Health check endpoint."""
    settings: ServerSettings = request.app.state.settings
    engine: ResolutionEngine = request.app.state.engine
    return JSONResponse(
        {
            "status": "healthy",
            "server": settings.server_name,
            "version": settings.server_version,
            "bond_policy_version": engine.policy.version,
        }
    )


@asynccontextmanager
async def lifespan(app: Starlette):
    settings: ServerSettings = app.state.settings
    logger.info(f"Starting Tribunal API on {settings.host}:{settings.port}")
    yield
    logger.info("Tribunal API shutting down")


def create_app(engine: ResolutionEngine | None = None, settings: ServerSettings | None = None) -> Starlette:
    """Create the Starlette ASGI application.

    Without an explicit engine one is built from settings, with admin rights
    granted to clients holding an arbitration:admin token.
    """
    settings = settings or get_settings()
    if engine is None:
        store = get_token_store(settings.token_file)
        engine = ResolutionEngine.from_config(settings, access=TokenScopeAccessControl(store))

    routes = [
        Route(f"{API_V1}/health", health_endpoint, methods=["GET"]),
        # Markets
        Route(f"{API_V1}/markets", markets_create_endpoint, methods=["POST"]),
        Route(f"{API_V1}/markets", markets_list_endpoint, methods=["GET"]),
        Route(f"{API_V1}/markets/{{market_id}}", markets_get_endpoint, methods=["GET"]),
        Route(f"{API_V1}/markets/{{market_id}}/resolution", markets_propose_endpoint, methods=["POST"]),
        Route(f"{API_V1}/markets/{{market_id}}/disputes", market_disputes_submit_endpoint, methods=["POST"]),
        Route(f"{API_V1}/markets/{{market_id}}/disputes", market_disputes_list_endpoint, methods=["GET"]),
        Route(f"{API_V1}/markets/{{market_id}}/freeze", markets_freeze_endpoint, methods=["POST"]),
        Route(f"{API_V1}/markets/{{market_id}}/unlock", markets_unlock_endpoint, methods=["POST"]),
        # Disputes (statistics before {dispute_id} so it is not captured as an id)
        Route(f"{API_V1}/disputes", disputes_list_endpoint, methods=["GET"]),
        Route(f"{API_V1}/disputes/statistics", disputes_statistics_endpoint, methods=["GET"]),
        Route(f"{API_V1}/disputes/{{dispute_id}}", disputes_get_endpoint, methods=["GET"]),
        Route(f"{API_V1}/disputes/{{dispute_id}}/review", disputes_review_endpoint, methods=["POST"]),
        Route(f"{API_V1}/disputes/{{dispute_id}}/decision", disputes_decision_endpoint, methods=["POST"]),
        # Bonds, sweep, audit
        Route(f"{API_V1}/bonds/quote", bond_quote_endpoint, methods=["GET"]),
        Route(f"{API_V1}/sweep", sweep_endpoint, methods=["POST"]),
        Route(f"{API_V1}/audit", audit_endpoint, methods=["GET"]),
    ]

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
            expose_headers=["X-Request-ID"],
        ),
        Middleware(CorrelationIdMiddleware),
    ]

    app = Starlette(
        routes=routes,
        middleware=middleware,
        exception_handlers={TribunalException: tribunal_exception_handler},
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    return app


def run() -> None:
    """Run the server using uvicorn."""
    import uvicorn

    from tribunal.core.logging import configure_logging

    settings = get_settings()
    configure_logging(config=settings)

    logger.info(f"Starting Tribunal HTTP API on {settings.host}:{settings.port}")

    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
