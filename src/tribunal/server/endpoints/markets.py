# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""REST endpoints for markets and their resolution lifecycle.

Routes (mounted under /api/v1 in app.py):
    POST   /markets                       - Register a market (admin)
    GET    /markets                       - List markets (?status=)
    GET    /markets/{id}                  - Market read model
    POST   /markets/{id}/resolution       - Propose a resolution (admin)
    POST   /markets/{id}/disputes         - Submit a dispute (caller is the submitter)
    GET    /markets/{id}/disputes         - Disputes on the market
    POST   /markets/{id}/freeze           - Admin freeze
    POST   /markets/{id}/unlock           - Admin unlock
"""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse

from tribunal.core.enums import (
    MarketStatus,
    ResolutionConfidence,
    ResolutionOutcome,
    ResolutionSource,
)
from tribunal.core.exceptions import ValidationException

from ..auth import SCOPE_ADMIN, SCOPE_READ, SCOPE_WRITE
from ..auth_helpers import authenticate, require_scope
from ..endpoint_utils import get_engine, parse_enum, read_json

logger = logging.getLogger(__name__)


async def markets_create_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/markets

    Body: market_id (required), title, yes_pool, no_pool.
    """
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_ADMIN):
        return err

    body = await read_json(request)
    market_id = body.get("market_id")
    if not market_id:
        raise ValidationException("market_id is required", "market_id")
    try:
        yes_pool = float(body.get("yes_pool", 0))
        no_pool = float(body.get("no_pool", 0))
    except (TypeError, ValueError):
        raise ValidationException("yes_pool and no_pool must be numbers", "yes_pool") from None

    market = get_engine(request).register_market(
        str(market_id), body.get("title", ""), yes_pool, no_pool, actor=client.client_id
    )
    return JSONResponse({"success": True, "market": market.to_dict()}, status_code=201)


async def markets_list_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/markets?status=disputing"""
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_READ):
        return err

    status = parse_enum(MarketStatus, request.query_params.get("status"), "status", required=False)
    markets = get_engine(request).list_markets(status)
    return JSONResponse({"success": True, "markets": [m.to_dict() for m in markets], "total_count": len(markets)})


async def markets_get_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/markets/{market_id} - market, active resolution, window and disputes."""
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_READ):
        return err

    view = get_engine(request).market_view(request.path_params["market_id"])
    return JSONResponse({"success": True, "market": view})


async def markets_propose_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/markets/{market_id}/resolution

    Body: outcome (affirmed|denied, required), source (api|admin|contract),
    confidence (high|medium|low).
    """
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_ADMIN):
        return err

    body = await read_json(request)
    outcome = parse_enum(ResolutionOutcome, body.get("outcome"), "outcome")
    source = parse_enum(ResolutionSource, body.get("source", "admin"), "source")
    confidence = parse_enum(ResolutionConfidence, body.get("confidence", "medium"), "confidence")

    record = get_engine(request).propose_resolution(
        request.path_params["market_id"], outcome, source, confidence, proposed_by=client.client_id
    )
    return JSONResponse({"success": True, "resolution": record.to_dict()}, status_code=201)


async def market_disputes_submit_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/markets/{market_id}/disputes

    Body: dispute_type (evidence|interpretation|api_error), reason,
    evidence_url, evidence_description. The authenticated client is the
    submitter and pays the bond.
    """
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_WRITE):
        return err

    body = await read_json(request)
    market_id = request.path_params["market_id"]
    dispute = get_engine(request).submit_dispute(market_id, client.client_id, body)
    return JSONResponse({"success": True, "dispute": dispute.to_dict()}, status_code=201)


async def market_disputes_list_endpoint(request: Request) -> JSONResponse:
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_READ):
        return err

    disputes = get_engine(request).list_disputes(market_id=request.path_params["market_id"])
    return JSONResponse({"success": True, "disputes": [d.to_dict() for d in disputes], "total_count": len(disputes)})


async def markets_freeze_endpoint(request: Request) -> JSONResponse:
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_ADMIN):
        return err

    market = get_engine(request).freeze_market(request.path_params["market_id"], client.client_id)
    return JSONResponse({"success": True, "market": market.to_dict()})


async def markets_unlock_endpoint(request: Request) -> JSONResponse:
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_ADMIN):
        return err

    market = get_engine(request).unlock_market(request.path_params["market_id"], client.client_id)
    return JSONResponse({"success": True, "market": market.to_dict()})
