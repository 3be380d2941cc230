# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""ResolutionEngine: wires the workflow components and their collaborators.

This is the entry point used by the HTTP API and tests. It exposes the
commands (register, propose, submit, review, decide, freeze, unlock, sweep)
and the read models the UI consumes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from .arbitration import ArbitrationResult, ArbitrationService
from .audit import AuditBackend, AuditEvent, AuditTrail, FileAuditBackend, InMemoryAuditBackend
from .bonds import DEFAULT_BOND_POLICY, BondCalculation, BondPolicy, calculate_bond, load_bond_policy
from .collaborators import (
    AccessControl,
    BalanceLedger,
    InMemoryBalanceLedger,
    InMemoryReputationStore,
    ReputationEventApplier,
    ReputationStore,
    StaticAccessControl,
)
from .config import CoreSettings, get_config
from .enums import (
    Decision,
    DisputeStatus,
    DisputeType,
    MarketStatus,
    ResolutionConfidence,
    ResolutionOutcome,
    ResolutionSource,
)
from .exceptions import CollaboratorUnavailable
from .lifecycle import MarketLifecycle
from .logging import log_context
from .models import Dispute, DisputeForm, Market, ResolutionRecord, utcnow
from .registry import DisputeRegistry, DisputeStatistics
from .stake_ledger import StakeLedger

logger = logging.getLogger(__name__)


class ResolutionEngine:
    """Facade over MarketLifecycle, DisputeRegistry, StakeLedger and ArbitrationService."""

    def __init__(
        self,
        ledger: BalanceLedger | None = None,
        reputation: ReputationStore | None = None,
        access: AccessControl | None = None,
        policy: BondPolicy | None = None,
        audit_backend: AuditBackend | None = None,
        dispute_period: timedelta = timedelta(hours=72),
        treasury_account: str = "treasury",
        min_reason_length: int = 20,
        min_note_length: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ledger = ledger if ledger is not None else InMemoryBalanceLedger()
        self.reputation = reputation if reputation is not None else InMemoryReputationStore()
        self.access = access if access is not None else StaticAccessControl()
        self.policy = policy or DEFAULT_BOND_POLICY
        self.audit = AuditTrail(audit_backend or InMemoryAuditBackend(), clock=clock)
        self._clock = clock

        self.stakes = StakeLedger(self.ledger, self.policy, treasury_account, clock=clock)
        self.stakes.subscribe(ReputationEventApplier(self.reputation))
        self.registry = DisputeRegistry(
            self.stakes,
            self.reputation,
            self.policy,
            self.audit,
            min_reason_length=min_reason_length,
            clock=clock,
        )
        self.lifecycle = MarketLifecycle(self.registry, self.audit, dispute_period, clock=clock)
        self.arbitration = ArbitrationService(
            self.registry,
            self.stakes,
            self.lifecycle,
            self.access,
            self.audit,
            min_note_length=min_note_length,
        )

    @classmethod
    def from_config(
        cls,
        config: CoreSettings | None = None,
        ledger: BalanceLedger | None = None,
        reputation: ReputationStore | None = None,
        access: AccessControl | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> ResolutionEngine:
        """Build an engine from settings (bond policy file, audit log, periods)."""
        config = config or get_config()
        policy = load_bond_policy(config.bond_policy_file) if config.bond_policy_file else DEFAULT_BOND_POLICY
        backend: AuditBackend
        if config.audit_log_file:
            backend = FileAuditBackend(config.audit_log_file)
        else:
            backend = InMemoryAuditBackend()

        logger.info(
            f"Engine configured: dispute period {config.dispute_period_hours}h, "
            f"bond policy v{policy.version}, audit {'file' if config.audit_log_file else 'memory'}"
        )
        return cls(
            ledger=ledger,
            reputation=reputation,
            access=access,
            policy=policy,
            audit_backend=backend,
            dispute_period=timedelta(seconds=config.dispute_period_seconds),
            treasury_account=config.treasury_account,
            min_reason_length=config.min_reason_length,
            min_note_length=config.min_admin_note_length,
            clock=clock,
        )

    # =========================================================================
    # Commands
    # =========================================================================

    def register_market(
        self, market_id: str, title: str = "", yes_pool: float = 0.0, no_pool: float = 0.0, actor: str = "system"
    ) -> Market:
        return self.lifecycle.register_market(market_id, title, yes_pool, no_pool, actor=actor)

    def propose_resolution(
        self,
        market_id: str,
        outcome: ResolutionOutcome,
        source: ResolutionSource = ResolutionSource.API,
        confidence: ResolutionConfidence = ResolutionConfidence.MEDIUM,
        proposed_by: str | None = None,
    ) -> ResolutionRecord:
        """Propose an outcome. Replacing an invalidated record needs an admin."""
        with log_context(market_id=market_id, actor=proposed_by):
            if self.lifecycle.get_market(market_id).status == MarketStatus.DISPUTED_RESOLUTION:
                self.arbitration.authorize(proposed_by or "", "propose a replacement resolution")
            return self.lifecycle.propose_resolution(market_id, outcome, source, confidence, proposed_by)

    def submit_dispute(self, market_id: str, submitter_id: str, form: DisputeForm | dict[str, Any]) -> Dispute:
        with log_context(market_id=market_id, actor=submitter_id):
            if isinstance(form, dict):
                form = DisputeForm.from_dict(form)
            return self.registry.submit(market_id, submitter_id, form)

    def review_dispute(self, dispute_id: str, admin: str) -> Dispute:
        with log_context(dispute_id=dispute_id, actor=admin):
            return self.arbitration.review(dispute_id, admin)

    def decide_dispute(self, dispute_id: str, decision: Decision, admin: str, note: str) -> ArbitrationResult:
        with log_context(dispute_id=dispute_id, actor=admin):
            return self.arbitration.decide(dispute_id, decision, admin, note)

    def freeze_market(self, market_id: str, admin: str) -> Market:
        with log_context(market_id=market_id, actor=admin):
            self.arbitration.authorize(admin, "freeze markets")
            return self.lifecycle.freeze(market_id, admin)

    def unlock_market(self, market_id: str, admin: str) -> Market:
        with log_context(market_id=market_id, actor=admin):
            self.arbitration.authorize(admin, "unlock markets")
            return self.lifecycle.unlock(market_id, admin)

    def sweep(self) -> list[Market]:
        """Advance every market whose dispute window has elapsed.

        Returns the markets whose status changed.
        """
        changed = self.lifecycle.sweep()
        redelivered = self.stakes.redeliver() if self.stakes.undelivered else 0
        logger.info(f"Sweep advanced {len(changed)} market(s), redelivered {redelivered} reputation event(s)")
        return changed

    # =========================================================================
    # Read models
    # =========================================================================

    def get_market(self, market_id: str) -> Market:
        return self.lifecycle.get_market(market_id)

    def market_view(self, market_id: str) -> dict[str, Any]:
        """Market, its active resolution, window state and disputes."""
        market = self.lifecycle.get_market(market_id)
        record = self.lifecycle.active_resolution(market_id)
        now = self._clock()
        view = market.to_dict()
        view["active_resolution"] = record.to_dict() if record else None
        view["dispute_window_open"] = bool(
            record
            and market.status in (MarketStatus.PENDING_RESOLUTION, MarketStatus.DISPUTING)
            and record.window_open(now)
        )
        view["seconds_remaining"] = (
            max(0, int((record.dispute_window_end - now).total_seconds())) if view["dispute_window_open"] else 0
        )
        view["disputes"] = [d.to_dict() for d in self.registry.for_market(market_id)]
        return view

    def list_markets(self, status: MarketStatus | None = None) -> list[Market]:
        return self.lifecycle.markets(status)

    def markets_needing_admin_action(self) -> dict[str, list[Market]]:
        """Markets that cannot progress without an admin.

        - awaiting_decision: disputing, with undecided disputes
        - awaiting_replacement: disputed_resolution, needs a new record
        """
        awaiting_decision = []
        awaiting_replacement = []
        for market in self.lifecycle.markets():
            if market.status == MarketStatus.DISPUTING:
                awaiting_decision.append(market)
            elif market.status == MarketStatus.DISPUTED_RESOLUTION:
                awaiting_replacement.append(market)
        return {"awaiting_decision": awaiting_decision, "awaiting_replacement": awaiting_replacement}

    def get_dispute(self, dispute_id: str) -> Dispute:
        return self.registry.get(dispute_id)

    def list_disputes(
        self,
        market_id: str | None = None,
        status: DisputeStatus | None = None,
        submitter_id: str | None = None,
    ) -> list[Dispute]:
        if market_id is not None:
            self.lifecycle.get_market(market_id)
            disputes = self.registry.for_market(market_id)
        elif submitter_id is not None:
            disputes = self.registry.for_submitter(submitter_id)
        else:
            disputes = self.registry.all()

        if status is not None:
            disputes = [d for d in disputes if d.status == status]
        if submitter_id is not None:
            disputes = [d for d in disputes if d.submitter_id == submitter_id]
        return disputes

    def dispute_statistics(self) -> DisputeStatistics:
        return self.registry.statistics()

    def quote_bond(self, dispute_type: DisputeType, account_id: str) -> BondCalculation:
        try:
            score = self.reputation.get_score(account_id)
        except Exception as e:
            raise CollaboratorUnavailable("reputation store", str(e)) from e
        return calculate_bond(dispute_type, score, self.policy)

    def audit_events(self, market_id: str | None = None, limit: int = 100) -> list[AuditEvent]:
        return self.audit.query(market_id=market_id, limit=limit)
