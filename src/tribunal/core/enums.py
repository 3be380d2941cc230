# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Enums for the resolution and dispute workflow."""

from enum import StrEnum


class MarketStatus(StrEnum):
    """Lifecycle state of a market."""

    ACTIVE = "active"  # Open trading, no resolution proposed
    PENDING_RESOLUTION = "pending_resolution"  # Outcome proposed, window open
    DISPUTING = "disputing"  # At least one dispute against the active record
    RESOLVED = "resolved"  # Final, irreversible
    DISPUTED_RESOLUTION = "disputed_resolution"  # Active record invalidated
    LOCKED = "locked"  # Admin freeze


class ResolutionOutcome(StrEnum):
    """Binary outcome proposed for a market."""

    AFFIRMED = "affirmed"  # YES
    DENIED = "denied"  # NO


class ResolutionSource(StrEnum):
    API = "api"
    ADMIN = "admin"
    CONTRACT = "contract"


class ResolutionConfidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DisputeType(StrEnum):
    """Why a resolution is being challenged."""

    EVIDENCE = "evidence"  # New or overlooked evidence
    INTERPRETATION = "interpretation"  # The data was read wrongly
    API_ERROR = "api_error"  # Oracle / data feed failure


class DisputeStatus(StrEnum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONTRACT_PROCESSING = "contract_processing"  # Ledger settlement in flight

    @property
    def is_active(self) -> bool:
        return self in (DisputeStatus.PENDING, DisputeStatus.REVIEWED)


class Decision(StrEnum):
    """Admin arbitration decision."""

    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def dispute_status(self) -> DisputeStatus:
        return DisputeStatus.ACCEPTED if self is Decision.ACCEPT else DisputeStatus.REJECTED


class StakeDisposition(StrEnum):
    HELD = "held"
    REFUNDED_FULL = "refunded_full"
    REFUNDED_HALF_SLASHED_HALF = "refunded_half_slashed_half"
    FORFEITED = "forfeited"


class AuditEventType(StrEnum):
    MARKET_REGISTERED = "market_registered"
    MARKET_TRANSITION = "market_transition"
    RESOLUTION_PROPOSED = "resolution_proposed"
    MARKET_SETTLED = "market_settled"
    DISPUTE_SUBMITTED = "dispute_submitted"
    DISPUTE_REVIEWED = "dispute_reviewed"
    DISPUTE_DECIDED = "dispute_decided"
    STAKE_SETTLED = "stake_settled"
