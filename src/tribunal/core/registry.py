# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Dispute registry.

Stores disputes keyed by market and enforces the submission guards:

- reason of at least ``min_reason_length`` characters (after stripping)
- evidence URL, when given, must be http(s)
- market must be pending_resolution or disputing
- the active resolution's dispute window must still be open
- at most one pending/reviewed dispute per (market, submitter)

Submission locks the bond in the StakeLedger and moves the market to
disputing. Both happen under the market lock and either both succeed or
neither does.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from .audit import AuditTrail
from .bonds import DEFAULT_BOND_POLICY, BondPolicy, compute_bond
from .collaborators import ReputationStore
from .enums import AuditEventType, Decision, DisputeStatus
from .exceptions import (
    AlreadyDecided,
    CollaboratorUnavailable,
    DuplicateActiveDispute,
    NotFoundError,
    TribunalException,
    ValidationException,
)
from .models import Dispute, DisputeForm, utcnow
from .stake_ledger import StakeLedger

if TYPE_CHECKING:
    from .lifecycle import MarketLifecycle

logger = logging.getLogger(__name__)


def validate_dispute_form(form: DisputeForm, min_reason_length: int = 20) -> list[str]:
    """Return a list of problems with a dispute form (empty when valid).

    Each problem starts with the name of the offending field.
    """
    errors = []
    for name in ("reason", "evidence_url", "evidence_description"):
        value = getattr(form, name)
        if value is not None and not isinstance(value, str):
            errors.append(f"{name} must be a string")
    if errors:
        return errors

    reason = (form.reason or "").strip()
    if len(reason) < min_reason_length:
        errors.append(f"reason must be at least {min_reason_length} characters (got {len(reason)})")

    if form.evidence_url:
        parsed = urlparse(form.evidence_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append("evidence_url must be an http(s) URL")

    return errors


@dataclass
class DisputeStatistics:
    """Aggregate dispute figures for dashboards."""

    total: int = 0
    pending: int = 0
    reviewed: int = 0
    accepted: int = 0
    rejected: int = 0
    contract_processing: int = 0
    average_resolution_hours: float = 0.0
    total_bonds: int = 0
    bonds_locked: int = 0
    bonds_refunded: int = 0
    bonds_slashed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "pending": self.pending,
            "reviewed": self.reviewed,
            "accepted": self.accepted,
            "rejected": self.rejected,
            "contract_processing": self.contract_processing,
            "average_resolution_hours": self.average_resolution_hours,
            "total_bonds": self.total_bonds,
            "bonds_locked": self.bonds_locked,
            "bonds_refunded": self.bonds_refunded,
            "bonds_slashed": self.bonds_slashed,
        }


class DisputeRegistry:
    """Owns Dispute records. Disputes are never deleted."""

    def __init__(
        self,
        stakes: StakeLedger,
        reputation: ReputationStore,
        policy: BondPolicy | None = None,
        audit: AuditTrail | None = None,
        min_reason_length: int = 20,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.stakes = stakes
        self.reputation = reputation
        self.policy = policy or DEFAULT_BOND_POLICY
        self.audit = audit or AuditTrail()
        self.min_reason_length = min_reason_length
        self._clock = clock
        self._lifecycle: MarketLifecycle | None = None

        self._disputes: dict[str, Dispute] = {}
        self._by_market: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    def bind(self, lifecycle: MarketLifecycle) -> None:
        """Attach the lifecycle that owns markets and their locks."""
        self._lifecycle = lifecycle

    @property
    def lifecycle(self) -> MarketLifecycle:
        if self._lifecycle is None:
            raise RuntimeError("DisputeRegistry is not bound to a MarketLifecycle")
        return self._lifecycle

    # =========================================================================
    # Commands
    # =========================================================================

    def submit(self, market_id: str, submitter_id: str, form: DisputeForm) -> Dispute:
        """Submit a dispute against the market's active resolution.

        Raises:
            ValidationException: reason too short or bad evidence URL
            NotFoundError: unknown market
            InvalidTransition: market not accepting disputes
            WindowClosed: dispute window elapsed
            DuplicateActiveDispute: submitter already has an active dispute here
            InsufficientFunds: balance below the required bond
        """
        errors = validate_dispute_form(form, self.min_reason_length)
        if errors:
            raise ValidationException("; ".join(errors), errors[0].split(" ", 1)[0])

        try:
            score = self.reputation.get_score(submitter_id)
        except Exception as e:
            raise CollaboratorUnavailable("reputation store", str(e)) from e
        bond = compute_bond(form.dispute_type, score, self.policy)

        lifecycle = self.lifecycle
        with lifecycle.lock(market_id):
            record = lifecycle.require_open_window(market_id)

            existing = self._active_for(market_id, submitter_id)
            if existing is not None:
                logger.warning(f"Duplicate dispute refused: {submitter_id} on {market_id} ({existing.dispute_id})")
                raise DuplicateActiveDispute(market_id, submitter_id, existing.dispute_id)

            dispute = Dispute(
                dispute_id=str(uuid.uuid4()),
                market_id=market_id,
                resolution_id=record.resolution_id,
                submitter_id=submitter_id,
                dispute_type=form.dispute_type,
                reason=form.reason.strip(),
                bond_amount=bond,
                evidence_url=form.evidence_url,
                evidence_description=form.evidence_description,
                created_at=self._clock(),
            )

            self.stakes.commit(dispute.dispute_id, submitter_id, bond)
            try:
                with self._lock:
                    self._disputes[dispute.dispute_id] = dispute
                    self._by_market.setdefault(market_id, []).append(dispute.dispute_id)
                lifecycle.on_dispute_submitted(market_id, dispute.dispute_id, submitter_id)
            except TribunalException:
                self._forget(dispute.dispute_id)
                self.stakes.rollback(dispute.dispute_id)
                raise

            self.audit.record(
                AuditEventType.DISPUTE_SUBMITTED,
                market_id,
                submitter_id,
                to_state=DisputeStatus.PENDING.value,
                dispute_id=dispute.dispute_id,
                dispute_type=form.dispute_type.value,
                bond_amount=bond,
                reputation_score=score,
            )

        logger.info(
            f"Dispute {dispute.dispute_id} submitted on {market_id} by {submitter_id} "
            f"({form.dispute_type.value}, bond {bond})"
        )
        return dispute.snapshot()

    def review(self, dispute_id: str, actor: str = "system") -> Dispute:
        """Mark a pending dispute as reviewed. No-op if already reviewed."""
        market_id = self._require(dispute_id).market_id
        with self.lifecycle.lock(market_id):
            dispute = self._require(dispute_id)
            if dispute.status == DisputeStatus.REVIEWED:
                return dispute.snapshot()
            if not dispute.is_active:
                raise AlreadyDecided(dispute_id, dispute.status.value)

            dispute.status = DisputeStatus.REVIEWED
            dispute.reviewed_at = self._clock()
            self.audit.record(
                AuditEventType.DISPUTE_REVIEWED,
                market_id,
                actor,
                from_state=DisputeStatus.PENDING.value,
                to_state=DisputeStatus.REVIEWED.value,
                dispute_id=dispute_id,
            )

        logger.info(f"Dispute {dispute_id} marked reviewed by {actor}")
        return dispute.snapshot()

    def record_decision(self, dispute_id: str, decision: Decision, admin_note: str, admin_id: str) -> Dispute:
        """Move an active dispute to accepted/rejected.

        A dispute left in ``contract_processing`` by an interrupted
        settlement can be decided again to finish it.

        Raises:
            NotFoundError: unknown dispute
            AlreadyDecided: dispute is already terminal
        """
        market_id = self._require(dispute_id).market_id
        with self.lifecycle.lock(market_id):
            dispute = self._require(dispute_id)
            if not (dispute.is_active or dispute.status == DisputeStatus.CONTRACT_PROCESSING):
                raise AlreadyDecided(dispute_id, dispute.status.value)

            dispute.status = decision.dispute_status
            dispute.decided_at = self._clock()
            dispute.decided_by = admin_id
            dispute.admin_note = admin_note.strip()
            return dispute.snapshot()

    def mark_processing(self, dispute_id: str) -> Dispute:
        """Park a decided dispute whose bond settlement is partly applied."""
        market_id = self._require(dispute_id).market_id
        with self.lifecycle.lock(market_id):
            dispute = self._require(dispute_id)
            dispute.status = DisputeStatus.CONTRACT_PROCESSING
        logger.warning(f"Dispute {dispute_id} waiting in contract_processing for settlement to finish")
        return dispute.snapshot()

    def restore(self, previous: Dispute) -> None:
        """Put back a dispute snapshot taken before a failed decision."""
        with self.lifecycle.lock(previous.market_id):
            with self._lock:
                if previous.dispute_id not in self._disputes:
                    raise NotFoundError("Dispute", previous.dispute_id)
                self._disputes[previous.dispute_id] = previous.snapshot()
        logger.warning(f"Dispute {previous.dispute_id} restored to {previous.status.value}")

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, dispute_id: str) -> Dispute:
        return self._require(dispute_id).snapshot()

    def for_market(self, market_id: str) -> list[Dispute]:
        with self._lock:
            return [self._disputes[d].snapshot() for d in self._by_market.get(market_id, [])]

    def for_resolution(self, resolution_id: str) -> list[Dispute]:
        with self._lock:
            return [d.snapshot() for d in self._disputes.values() if d.resolution_id == resolution_id]

    def for_submitter(self, submitter_id: str) -> list[Dispute]:
        """Disputes filed by one user, newest first."""
        with self._lock:
            found = [d.snapshot() for d in self._disputes.values() if d.submitter_id == submitter_id]
        return sorted(found, key=lambda d: d.created_at, reverse=True)

    def pending(self) -> list[Dispute]:
        """Disputes awaiting a decision (pending or reviewed), oldest first."""
        with self._lock:
            found = [d.snapshot() for d in self._disputes.values() if d.is_active]
        return sorted(found, key=lambda d: d.created_at)

    def all(self, status: DisputeStatus | None = None) -> list[Dispute]:
        with self._lock:
            found = [d.snapshot() for d in self._disputes.values() if status is None or d.status == status]
        return sorted(found, key=lambda d: d.created_at, reverse=True)

    def statistics(self) -> DisputeStatistics:
        with self._lock:
            disputes = list(self._disputes.values())

        stats = DisputeStatistics(total=len(disputes))
        durations = []
        for d in disputes:
            if d.status == DisputeStatus.PENDING:
                stats.pending += 1
            elif d.status == DisputeStatus.REVIEWED:
                stats.reviewed += 1
            elif d.status == DisputeStatus.ACCEPTED:
                stats.accepted += 1
            elif d.status == DisputeStatus.REJECTED:
                stats.rejected += 1
            elif d.status == DisputeStatus.CONTRACT_PROCESSING:
                stats.contract_processing += 1

            stats.total_bonds += d.bond_amount
            if d.is_active:
                stats.bonds_locked += d.bond_amount
            if d.decided_at is not None:
                durations.append((d.decided_at - d.created_at).total_seconds() / 3600)

        if durations:
            stats.average_resolution_hours = round(sum(durations) / len(durations), 2)

        totals = self.stakes.totals()
        stats.bonds_refunded = totals["refunded"]
        stats.bonds_slashed = totals["forfeited"]
        return stats

    # =========================================================================
    # Internals
    # =========================================================================

    def _require(self, dispute_id: str) -> Dispute:
        with self._lock:
            dispute = self._disputes.get(dispute_id)
        if dispute is None:
            raise NotFoundError("Dispute", dispute_id)
        return dispute

    def _active_for(self, market_id: str, submitter_id: str) -> Dispute | None:
        with self._lock:
            for dispute_id in self._by_market.get(market_id, []):
                dispute = self._disputes[dispute_id]
                if dispute.submitter_id == submitter_id and dispute.is_active:
                    return dispute
        return None

    def _forget(self, dispute_id: str) -> None:
        with self._lock:
            dispute = self._disputes.pop(dispute_id, None)
            if dispute is not None:
                self._by_market[dispute.market_id].remove(dispute_id)
