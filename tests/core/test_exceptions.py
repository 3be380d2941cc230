"""Tests for tribunal.core.exceptions."""

from __future__ import annotations

from tribunal.core.exceptions import (
    AlreadySettled,
    CollaboratorUnavailable,
    InsufficientFunds,
    InvalidTransition,
    NotFoundError,
    ResourceError,
    StateConflict,
    TribunalException,
    ValidationException,
    WindowClosed,
)


class TestTribunalException:
    def test_to_dict(self):
        exc = TribunalException("boom", {"k": "v"})
        assert exc.to_dict() == {"error": "TribunalException", "message": "boom", "details": {"k": "v"}}

    def test_validation_details(self):
        exc = ValidationException("bad reason", "reason", "short")
        assert exc.details == {"field": "reason", "value": "short"}

    def test_not_found_message(self):
        exc = NotFoundError("Dispute", "d1")
        assert str(exc) == "Dispute not found: d1"
        assert exc.details["resource_type"] == "Dispute"


class TestStateConflicts:
    def test_invalid_transition_names_states(self):
        exc = InvalidTransition("m1", "locked", "submit dispute", "frozen by admin")

        assert "locked" in exc.message
        assert "submit dispute" in exc.message
        assert exc.details["current_state"] == "locked"

    def test_family(self):
        assert isinstance(WindowClosed("m1", "2026-03-03T12:00:00+00:00"), StateConflict)
        assert isinstance(AlreadySettled("d1", "forfeited"), StateConflict)


class TestResourceErrors:
    def test_insufficient_funds(self):
        exc = InsufficientFunds("poor", 100, 10)

        assert isinstance(exc, ResourceError)
        assert exc.details == {"account_id": "poor", "required": 100, "available": 10}

    def test_collaborator_unavailable(self):
        exc = CollaboratorUnavailable("reputation store", "timeout")
        assert exc.message == "reputation store unavailable: timeout"
        assert isinstance(exc, ResourceError)
