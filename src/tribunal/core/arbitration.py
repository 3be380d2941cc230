# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Admin arbitration of disputes.

A decision is one logical transaction under the market lock:

1. record the decision on the dispute
2. settle the bond (refund, or refund/slash split)
3. aggregate the market state

If settlement fails before any funds move the dispute goes back to its
previous status. If it fails after the forfeit was transferred the dispute
waits in ``contract_processing`` until the same decision is submitted
again, which completes only the missing ledger step. Either way the error
propagates and the market is untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .audit import AuditTrail
from .collaborators import AccessControl
from .enums import AuditEventType, Decision, DisputeStatus, MarketStatus, StakeDisposition
from .exceptions import AuthorizationError, InvalidTransition, SettlementInFlight, ValidationException
from .lifecycle import MarketLifecycle
from .logging import log_context
from .models import Dispute, Market
from .registry import DisputeRegistry
from .stake_ledger import StakeLedger

logger = logging.getLogger(__name__)


@dataclass
class ArbitrationResult:
    """What a decision did to the dispute, the bond and the market."""

    dispute: Dispute
    disposition: StakeDisposition
    refunded_amount: int
    forfeited_amount: int
    market: Market

    def to_dict(self) -> dict[str, Any]:
        return {
            "dispute": self.dispute.to_dict(),
            "disposition": self.disposition.value,
            "refunded_amount": self.refunded_amount,
            "forfeited_amount": self.forfeited_amount,
            "market": self.market.to_dict(),
        }


class ArbitrationService:
    def __init__(
        self,
        registry: DisputeRegistry,
        stakes: StakeLedger,
        lifecycle: MarketLifecycle,
        access: AccessControl,
        audit: AuditTrail | None = None,
        min_note_length: int = 10,
    ):
        self.registry = registry
        self.stakes = stakes
        self.lifecycle = lifecycle
        self.access = access
        self.audit = audit or AuditTrail()
        self.min_note_length = min_note_length

    def authorize(self, admin: str, action: str) -> None:
        if not admin or not self.access.is_admin(admin):
            logger.warning(f"Unauthorized {action} attempt by {admin!r}")
            raise AuthorizationError(admin or "anonymous", action)

    def review(self, dispute_id: str, admin: str) -> Dispute:
        self.authorize(admin, "review disputes")
        return self.registry.review(dispute_id, actor=admin)

    def decide(self, dispute_id: str, decision: Decision, admin: str, note: str) -> ArbitrationResult:
        """Accept or reject a dispute.

        Raises:
            AuthorizationError: ``admin`` lacks the admin role
            ValidationException: note shorter than the minimum
            NotFoundError: unknown dispute
            AlreadyDecided: dispute already terminal
            InvalidTransition: market is locked or resolved
            SettlementInFlight: an interrupted settlement had the other decision
            ResourceError: settlement failed (decision rolled back or parked)
        """
        self.authorize(admin, "decide disputes")

        note = (note or "").strip()
        if len(note) < self.min_note_length:
            raise ValidationException(
                f"Admin note must be at least {self.min_note_length} characters (got {len(note)})",
                "note",
            )

        market_id = self.registry.get(dispute_id).market_id
        with self.lifecycle.lock(market_id), log_context(market_id=market_id, dispute_id=dispute_id):
            market = self.lifecycle.get_market(market_id)
            if market.status in (MarketStatus.LOCKED, MarketStatus.RESOLVED):
                raise InvalidTransition(market_id, market.status.value, f"{decision.value} dispute")

            before = self.registry.get(dispute_id)
            if before.status == DisputeStatus.CONTRACT_PROCESSING:
                entry = self.stakes.get_entry(dispute_id)
                if entry is not None and entry.in_flight and entry.settling_outcome is not decision:
                    raise SettlementInFlight(dispute_id, entry.settling_outcome.value)

            decided = self.registry.record_decision(dispute_id, decision, note, admin)
            try:
                disposition = self.stakes.settle(dispute_id, decision)
            except Exception:
                entry = self.stakes.get_entry(dispute_id)
                if entry is not None and entry.in_flight:
                    logger.error(f"Settlement for dispute {dispute_id} partly applied; retry the same decision")
                    self.registry.mark_processing(dispute_id)
                else:
                    logger.error(f"Settlement failed for dispute {dispute_id}; restoring {before.status.value}")
                    self.registry.restore(before)
                raise

            entry = self.stakes.get_entry(dispute_id)
            self.audit.record(
                AuditEventType.DISPUTE_DECIDED,
                market_id,
                admin,
                from_state=before.status.value,
                to_state=decided.status.value,
                dispute_id=dispute_id,
                note=note,
            )
            self.audit.record(
                AuditEventType.STAKE_SETTLED,
                market_id,
                admin,
                dispute_id=dispute_id,
                disposition=disposition.value,
                refunded=entry.refunded_amount,
                forfeited=entry.forfeited_amount,
            )

            if decided.resolution_id == market.active_resolution_id:
                market = self.lifecycle.reconcile(market_id, actor=admin)
            else:
                logger.info(f"Dispute {dispute_id} targets a superseded record; market state unchanged")

        logger.info(
            f"Dispute {dispute_id} {decided.status.value} by {admin}: {disposition.value}, market now {market.status.value}"
        )
        return ArbitrationResult(
            dispute=decided,
            disposition=disposition,
            refunded_amount=entry.refunded_amount,
            forfeited_amount=entry.forfeited_amount,
            market=market,
        )
