# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""REST endpoints for disputes and arbitration.

Routes (mounted under /api/v1 in app.py):
    GET    /disputes                  - List (?status=, ?submitter=)
    GET    /disputes/statistics       - Counts, average resolution time, bond totals
    GET    /disputes/{id}             - Dispute read model (with stake entry)
    POST   /disputes/{id}/review      - Mark reviewed (admin)
    POST   /disputes/{id}/decision    - Accept or reject (admin)
"""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse

from tribunal.core.enums import Decision, DisputeStatus

from ..auth import SCOPE_ADMIN, SCOPE_READ
from ..auth_helpers import authenticate, require_scope
from ..endpoint_utils import get_engine, parse_enum, read_json

logger = logging.getLogger(__name__)


async def disputes_list_endpoint(request: Request) -> JSONResponse:
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_READ):
        return err

    status = parse_enum(DisputeStatus, request.query_params.get("status"), "status", required=False)
    submitter = request.query_params.get("submitter") or None
    disputes = get_engine(request).list_disputes(status=status, submitter_id=submitter)
    return JSONResponse({"success": True, "disputes": [d.to_dict() for d in disputes], "total_count": len(disputes)})


async def disputes_statistics_endpoint(request: Request) -> JSONResponse:
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_READ):
        return err

    stats = get_engine(request).dispute_statistics()
    return JSONResponse({"success": True, "statistics": stats.to_dict()})


async def disputes_get_endpoint(request: Request) -> JSONResponse:
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_READ):
        return err

    engine = get_engine(request)
    dispute = engine.get_dispute(request.path_params["dispute_id"])
    entry = engine.stakes.get_entry(dispute.dispute_id)
    return JSONResponse(
        {"success": True, "dispute": dispute.to_dict(), "stake": entry.to_dict() if entry else None}
    )


async def disputes_review_endpoint(request: Request) -> JSONResponse:
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_ADMIN):
        return err

    dispute = get_engine(request).review_dispute(request.path_params["dispute_id"], client.client_id)
    return JSONResponse({"success": True, "dispute": dispute.to_dict()})


async def disputes_decision_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/disputes/{dispute_id}/decision

    Body: decision (accept|reject, required), note (required, >= 10 chars).
    """
    client = authenticate(request)
    if isinstance(client, JSONResponse):
        return client
    if err := require_scope(client, SCOPE_ADMIN):
        return err

    body = await read_json(request)
    decision = parse_enum(Decision, body.get("decision"), "decision")
    result = get_engine(request).decide_dispute(
        request.path_params["dispute_id"], decision, client.client_id, body.get("note") or ""
    )
    return JSONResponse({"success": True, **result.to_dict()})
