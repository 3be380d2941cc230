# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Custom exception hierarchy for Tribunal.

Three families cover the resolution workflow:

- ValidationException: malformed input. Rejected immediately, never retried.
- StateConflict: the request is well formed but the current state forbids it
  (illegal transition, duplicate dispute, already decided/resolved/settled).
  Safe to retry only after re-reading state.
- ResourceError: an external collaborator refused or failed (insufficient
  funds, ledger or reputation store unavailable). Propagated to the caller.
"""

from __future__ import annotations

from typing import Any


class TribunalException(Exception):
    """Base exception for all Tribunal errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(TribunalException):
    """Exception for validation errors.

    Raised when:
    - A dispute reason or admin note is too short
    - Required fields are missing
    - Enum values or URLs are malformed
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ConfigException(TribunalException):
    """Exception for configuration errors (bad bond policy file, etc.)."""

    def __init__(self, message: str, missing_vars: list[str] | None = None):
        details = {}
        if missing_vars:
            details["missing_vars"] = missing_vars
        super().__init__(message, details)
        self.missing_vars = missing_vars or []


class NotFoundError(TribunalException):
    """Requested market, resolution, dispute or stake entry doesn't exist."""

    def __init__(self, resource_type: str, resource_id: str):
        message = f"{resource_type} not found: {resource_id}"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        super().__init__(message, details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class AuthenticationError(TribunalException):
    """Caller could not be identified."""


class AuthorizationError(TribunalException):
    """Caller is known but lacks the required role."""

    def __init__(self, principal: str, action: str):
        super().__init__(
            f"{principal} is not permitted to {action}",
            {"principal": principal, "action": action},
        )
        self.principal = principal
        self.action = action


# ============================================================================
# State conflicts
# ============================================================================


class StateConflict(TribunalException):
    """Base for requests refused because of the current state."""


class InvalidTransition(StateConflict):
    """A lifecycle transition that the state machine does not allow."""

    def __init__(self, market_id: str, current: str, attempted: str, reason: str | None = None):
        message = f"Market {market_id}: cannot {attempted} while {current}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(
            message,
            {"market_id": market_id, "current_state": current, "attempted": attempted},
        )
        self.market_id = market_id
        self.current = current
        self.attempted = attempted


class WindowClosed(StateConflict):
    """The dispute window of the active resolution has elapsed."""

    def __init__(self, market_id: str, window_end: str):
        super().__init__(
            f"Dispute window for market {market_id} closed at {window_end}",
            {"market_id": market_id, "dispute_window_end": window_end},
        )
        self.market_id = market_id


class DuplicateActiveDispute(StateConflict):
    """Submitter already has a pending or reviewed dispute on the market."""

    def __init__(self, market_id: str, submitter_id: str, existing_id: str):
        super().__init__(
            f"{submitter_id} already has an active dispute on market {market_id}",
            {"market_id": market_id, "submitter_id": submitter_id, "existing_id": existing_id},
        )
        self.existing_id = existing_id


class AlreadyDecided(StateConflict):
    """Dispute has already reached a terminal status."""

    def __init__(self, dispute_id: str, status: str):
        super().__init__(
            f"Dispute {dispute_id} already decided ({status})",
            {"dispute_id": dispute_id, "status": status},
        )
        self.dispute_id = dispute_id
        self.status = status


class AlreadyResolved(StateConflict):
    """Market settlement already happened; the final outcome is fixed."""

    def __init__(self, market_id: str):
        super().__init__(f"Market {market_id} is already resolved", {"market_id": market_id})
        self.market_id = market_id


class AlreadySettled(StateConflict):
    """Stake entry for a dispute was already refunded or slashed."""

    def __init__(self, dispute_id: str, disposition: str):
        super().__init__(
            f"Stake for dispute {dispute_id} already settled ({disposition})",
            {"dispute_id": dispute_id, "disposition": disposition},
        )
        self.dispute_id = dispute_id


class DuplicateCommit(StateConflict):
    """A stake entry already exists for the dispute."""

    def __init__(self, dispute_id: str):
        super().__init__(f"Stake already committed for dispute {dispute_id}", {"dispute_id": dispute_id})
        self.dispute_id = dispute_id


class SettlementInFlight(StateConflict):
    """A partly applied settlement can only be completed with its original outcome."""

    def __init__(self, dispute_id: str, outcome: str):
        super().__init__(
            f"Stake for dispute {dispute_id} is mid-settlement as {outcome}",
            {"dispute_id": dispute_id, "outcome": outcome},
        )
        self.dispute_id = dispute_id
        self.outcome = outcome


# ============================================================================
# Resource errors
# ============================================================================


class ResourceError(TribunalException):
    """Base for failures of funds or external collaborators."""


class InsufficientFunds(ResourceError):
    """Account balance is below the required bond."""

    def __init__(self, account_id: str, required: int, available: int):
        super().__init__(
            f"Insufficient funds for {account_id}: bond requires {required}, balance is {available}",
            {"account_id": account_id, "required": required, "available": available},
        )
        self.account_id = account_id
        self.required = required
        self.available = available


class CollaboratorUnavailable(ResourceError):
    """Balance ledger, reputation store or another collaborator failed."""

    def __init__(self, collaborator: str, detail: str = ""):
        message = f"{collaborator} unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, {"collaborator": collaborator})
        self.collaborator = collaborator
