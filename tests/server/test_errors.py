"""Tests for tribunal.server.errors - exception to HTTP mapping."""

from __future__ import annotations

import json

import pytest

from tribunal.core.exceptions import (
    AlreadyDecided,
    AlreadySettled,
    AuthorizationError,
    CollaboratorUnavailable,
    ConfigException,
    DuplicateActiveDispute,
    InsufficientFunds,
    InvalidTransition,
    NotFoundError,
    SettlementInFlight,
    StateConflict,
    ValidationException,
    WindowClosed,
)
from tribunal.server.errors import error_response, exception_response, status_for


@pytest.mark.parametrize(
    "exc,status,code",
    [
        (ValidationException("bad", "reason"), 400, "VALIDATION_INVALID_VALUE"),
        (AuthorizationError("carol", "decide disputes"), 403, "FORBIDDEN_NOT_ADMIN"),
        (NotFoundError("Dispute", "d1"), 404, "NOT_FOUND_RESOURCE"),
        (WindowClosed("m1", "2026-03-03T12:00:00+00:00"), 409, "CONFLICT_WINDOW_CLOSED"),
        (DuplicateActiveDispute("m1", "carol", "d1"), 409, "CONFLICT_DUPLICATE_DISPUTE"),
        (AlreadyDecided("d1", "rejected"), 409, "CONFLICT_ALREADY_DECIDED"),
        (AlreadySettled("d1", "forfeited"), 409, "CONFLICT_ALREADY_SETTLED"),
        (SettlementInFlight("d1", "reject"), 409, "CONFLICT_SETTLEMENT_IN_FLIGHT"),
        (InvalidTransition("m1", "locked", "freeze"), 409, "CONFLICT_INVALID_TRANSITION"),
        (StateConflict("taken"), 409, "CONFLICT_STATE"),
        (InsufficientFunds("poor", 100, 10), 402, "INSUFFICIENT_FUNDS"),
        (CollaboratorUnavailable("balance ledger"), 503, "SERVICE_UNAVAILABLE"),
    ],
)
def test_status_for(exc, status, code):
    assert status_for(exc) == (status, code)


class TestExceptionResponse:
    def test_envelope(self):
        response = exception_response(InsufficientFunds("poor", 100, 10))

        assert response.status_code == 402
        body = json.loads(response.body)
        assert body["success"] is False
        assert body["error"]["code"] == "INSUFFICIENT_FUNDS"
        assert body["error"]["details"]["available"] == 10

    def test_config_errors_are_internal(self):
        response = exception_response(ConfigException("bad bond policy"))

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert len(body["error"]["request_id"]) == 12


def test_error_response_omits_empty_details():
    body = json.loads(error_response("X", "msg", 418).body)
    assert body == {"success": False, "error": {"code": "X", "message": "msg"}}
