# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Data models for markets, resolution records, disputes and stakes.

Each model is owned by exactly one component:

- Market, ResolutionRecord: MarketLifecycle
- Dispute: DisputeRegistry
- StakeEntry: StakeLedger

Components hand out snapshots (``snapshot()``) so callers never hold a
reference into another component's storage.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .enums import (
    Decision,
    DisputeStatus,
    DisputeType,
    MarketStatus,
    ResolutionConfidence,
    ResolutionOutcome,
    ResolutionSource,
    StakeDisposition,
)
from .exceptions import AlreadyResolved, ValidationException


def utcnow() -> datetime:
    return datetime.now(UTC)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ============================================================================
# Market
# ============================================================================


@dataclass
class Market:
    """A prediction market as seen by the resolution workflow.

    Pool totals are carried state only; no pricing happens here.
    """

    market_id: str
    title: str = ""
    status: MarketStatus = MarketStatus.ACTIVE
    dispute_period_end: datetime | None = None
    active_resolution_id: str | None = None
    resolution_history: list[str] = field(default_factory=list)
    yes_pool: float = 0.0
    no_pool: float = 0.0
    locked_from: MarketStatus | None = None
    created_at: datetime = field(default_factory=utcnow)
    resolved_at: datetime | None = None

    @property
    def total_pool(self) -> float:
        return self.yes_pool + self.no_pool

    def snapshot(self) -> Market:
        return dataclasses.replace(self, resolution_history=list(self.resolution_history))

    def to_dict(self) -> dict[str, Any]:
        return {
            "market_id": self.market_id,
            "title": self.title,
            "status": self.status.value,
            "dispute_period_end": _iso(self.dispute_period_end),
            "active_resolution_id": self.active_resolution_id,
            "resolution_history": list(self.resolution_history),
            "yes_pool": self.yes_pool,
            "no_pool": self.no_pool,
            "total_pool": self.total_pool,
            "locked_from": self.locked_from.value if self.locked_from else None,
            "created_at": _iso(self.created_at),
            "resolved_at": _iso(self.resolved_at),
        }


# ============================================================================
# Resolution record
# ============================================================================


@dataclass
class ResolutionRecord:
    """A proposed outcome for a market and its dispute-window deadline.

    Immutable after creation except ``final_outcome``, which is set exactly
    once when the market settles.
    """

    resolution_id: str
    market_id: str
    outcome: ResolutionOutcome
    source: ResolutionSource
    confidence: ResolutionConfidence
    proposed_at: datetime
    dispute_window_end: datetime
    proposed_by: str | None = None
    final_outcome: ResolutionOutcome | None = None

    def window_open(self, now: datetime) -> bool:
        return now < self.dispute_window_end

    def finalize(self) -> ResolutionOutcome:
        """Fix the final outcome. A second call raises AlreadyResolved."""
        if self.final_outcome is not None:
            raise AlreadyResolved(self.market_id)
        self.final_outcome = self.outcome
        return self.final_outcome

    def snapshot(self) -> ResolutionRecord:
        return dataclasses.replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resolution_id": self.resolution_id,
            "market_id": self.market_id,
            "outcome": self.outcome.value,
            "source": self.source.value,
            "confidence": self.confidence.value,
            "proposed_at": _iso(self.proposed_at),
            "dispute_window_end": _iso(self.dispute_window_end),
            "proposed_by": self.proposed_by,
            "final_outcome": self.final_outcome.value if self.final_outcome else None,
        }


# ============================================================================
# Disputes
# ============================================================================


@dataclass
class DisputeForm:
    """What a user submits when challenging a resolution."""

    dispute_type: DisputeType
    reason: str
    evidence_url: str | None = None
    evidence_description: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DisputeForm:
        raw_type = data.get("dispute_type")
        if not raw_type:
            raise ValidationException("dispute_type is required", "dispute_type")
        try:
            dispute_type = DisputeType(raw_type)
        except (ValueError, TypeError):
            raise ValidationException(
                f"Unknown dispute type: {raw_type}", "dispute_type", raw_type
            ) from None
        return cls(
            dispute_type=dispute_type,
            reason=_optional_text(data, "reason") or "",
            evidence_url=_optional_text(data, "evidence_url"),
            evidence_description=_optional_text(data, "evidence_description"),
        )


def _optional_text(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationException(f"{key} must be a string", key, value)
    return value


@dataclass
class Dispute:
    """A challenge against one resolution record. Never deleted."""

    dispute_id: str
    market_id: str
    resolution_id: str
    submitter_id: str
    dispute_type: DisputeType
    reason: str
    bond_amount: int
    evidence_url: str | None = None
    evidence_description: str | None = None
    status: DisputeStatus = DisputeStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)
    reviewed_at: datetime | None = None
    decided_at: datetime | None = None
    decided_by: str | None = None
    admin_note: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def snapshot(self) -> Dispute:
        return dataclasses.replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dispute_id": self.dispute_id,
            "market_id": self.market_id,
            "resolution_id": self.resolution_id,
            "submitter_id": self.submitter_id,
            "dispute_type": self.dispute_type.value,
            "reason": self.reason,
            "bond_amount": self.bond_amount,
            "evidence_url": self.evidence_url,
            "evidence_description": self.evidence_description,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "reviewed_at": _iso(self.reviewed_at),
            "decided_at": _iso(self.decided_at),
            "decided_by": self.decided_by,
            "admin_note": self.admin_note,
        }


# ============================================================================
# Stakes and reputation signals
# ============================================================================


@dataclass
class StakeEntry:
    """Funds locked for one dispute and what eventually happened to them."""

    dispute_id: str
    account_id: str
    amount_committed: int
    disposition: StakeDisposition = StakeDisposition.HELD
    refunded_amount: int = 0
    forfeited_amount: int = 0
    committed_at: datetime = field(default_factory=utcnow)
    settled_at: datetime | None = None
    # Partial settlement progress: outcome being applied and forfeit already moved
    settling_outcome: Decision | None = None
    transferred_amount: int = 0

    @property
    def is_settled(self) -> bool:
        return self.disposition != StakeDisposition.HELD

    @property
    def in_flight(self) -> bool:
        return self.settling_outcome is not None and not self.is_settled

    def snapshot(self) -> StakeEntry:
        return dataclasses.replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dispute_id": self.dispute_id,
            "account_id": self.account_id,
            "amount_committed": self.amount_committed,
            "disposition": self.disposition.value,
            "refunded_amount": self.refunded_amount,
            "forfeited_amount": self.forfeited_amount,
            "committed_at": _iso(self.committed_at),
            "settled_at": _iso(self.settled_at),
            "settling_outcome": self.settling_outcome.value if self.settling_outcome else None,
            "transferred_amount": self.transferred_amount,
        }


@dataclass(frozen=True)
class ReputationEvent:
    """Reputation delta emitted when a stake settles."""

    account_id: str
    delta: int
    reason: str
    dispute_id: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "delta": self.delta,
            "reason": self.reason,
            "dispute_id": self.dispute_id,
            "timestamp": _iso(self.timestamp),
        }
