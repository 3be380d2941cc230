# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Bond quotes, sweeps and the audit log.

Routes (mounted under /api/v1 in app.py):
    GET    /bonds/quote?type=evidence  - Bond for the caller's reputation
    POST   /sweep                      - Advance elapsed dispute windows (admin)
    GET    /audit                      - Audit events (admin, ?market_id=, ?limit=)
"""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse

from tribunal.core.enums import DisputeType

from ..auth import SCOPE_ADMIN, SCOPE_READ
from ..auth_helpers import authenticate, require_scope
from ..endpoint_utils import _parse_int, get_engine, parse_enum

logger = logging.getLogger(__name__)


async def bond_quote_endpoint(request: Request) -> JSONResponse:
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_READ):
        return err

    dispute_type = parse_enum(DisputeType, request.query_params.get("type"), "type")
    quote = get_engine(request).quote_bond(dispute_type, client.client_id)
    return JSONResponse({"success": True, "quote": quote.to_dict()})


async def sweep_endpoint(request: Request) -> JSONResponse:
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_ADMIN):
        return err

    engine = get_engine(request)
    advanced = engine.sweep()
    pending_action = engine.markets_needing_admin_action()
    return JSONResponse(
        {
            "success": True,
            "advanced": [m.to_dict() for m in advanced],
            "needs_admin": {k: [m.market_id for m in v] for k, v in pending_action.items()},
        }
    )


async def audit_endpoint(request: Request) -> JSONResponse:
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_ADMIN):
        return err

    market_id = request.query_params.get("market_id") or None
    limit = _parse_int(request.query_params.get("limit"), default=100)
    events = get_engine(request).audit_events(market_id=market_id, limit=limit)
    return JSONResponse({"success": True, "events": [e.to_dict() for e in events], "total_count": len(events)})
