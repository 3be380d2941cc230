# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Market lifecycle state machine.

States and transitions:

    active --propose--> pending_resolution
    pending_resolution --dispute submitted--> disputing
    pending_resolution --window elapsed, no active dispute--> resolved
    disputing --all disputes terminal, all rejected--> resolved
    disputing --a dispute accepted--> disputed_resolution
    disputed_resolution --replacement proposed--> pending_resolution
    any but resolved --freeze--> locked
    locked --unlock--> state held before the freeze

Each market is one unit of mutual exclusion: every read-modify-write holds
the market's re-entrant lock. The dispute window is evaluated lazily on
every read and transition attempt; sweep() advances markets nobody reads.

Settlement into ``resolved`` is exactly-once: ResolutionRecord.finalize()
is a check-and-set under the market lock and a losing attempt observes
AlreadyResolved.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta

from .audit import AuditTrail
from .enums import (
    AuditEventType,
    DisputeStatus,
    MarketStatus,
    ResolutionConfidence,
    ResolutionOutcome,
    ResolutionSource,
)
from .exceptions import (
    AlreadyResolved,
    InvalidTransition,
    NotFoundError,
    StateConflict,
    ValidationException,
    WindowClosed,
)
from .models import Market, ResolutionRecord, utcnow
from .registry import DisputeRegistry

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


class MarketLifecycle:
    """Owns Market and ResolutionRecord state and the per-market locks."""

    def __init__(
        self,
        registry: DisputeRegistry,
        audit: AuditTrail | None = None,
        dispute_period: timedelta = timedelta(hours=72),
        clock: Callable[[], datetime] = utcnow,
    ):
        if dispute_period <= timedelta(0):
            raise ValidationException("Dispute period must be positive", "dispute_period", dispute_period)
        self.registry = registry
        self.audit = audit or AuditTrail()
        self.dispute_period = dispute_period
        self._clock = clock

        self._markets: dict[str, Market] = {}
        self._resolutions: dict[str, ResolutionRecord] = {}
        self._market_locks: dict[str, threading.RLock] = {}
        # Only guards creation of per-market locks and the market index
        self._global_lock = threading.Lock()

        registry.bind(self)

    # =========================================================================
    # Locking
    # =========================================================================

    @contextmanager
    def lock(self, market_id: str) -> Iterator[None]:
        """Hold the market's re-entrant lock."""
        with self._global_lock:
            market_lock = self._market_locks.get(market_id)
            if market_lock is None:
                market_lock = threading.RLock()
                self._market_locks[market_id] = market_lock
        with market_lock:
            yield

    def now(self) -> datetime:
        return self._clock()

    # =========================================================================
    # Commands
    # =========================================================================

    def register_market(
        self,
        market_id: str,
        title: str = "",
        yes_pool: float = 0.0,
        no_pool: float = 0.0,
        actor: str = SYSTEM_ACTOR,
    ) -> Market:
        if not market_id or not market_id.strip():
            raise ValidationException("market_id is required", "market_id")

        with self.lock(market_id):
            with self._global_lock:
                if market_id in self._markets:
                    raise StateConflict(f"Market {market_id} already registered", {"market_id": market_id})
                market = Market(
                    market_id=market_id,
                    title=title,
                    yes_pool=yes_pool,
                    no_pool=no_pool,
                    created_at=self._clock(),
                )
                self._markets[market_id] = market

            self.audit.record(
                AuditEventType.MARKET_REGISTERED,
                market_id,
                actor,
                to_state=MarketStatus.ACTIVE.value,
                title=title,
            )

        logger.info(f"Registered market {market_id}")
        return market.snapshot()

    def propose_resolution(
        self,
        market_id: str,
        outcome: ResolutionOutcome,
        source: ResolutionSource,
        confidence: ResolutionConfidence,
        proposed_by: str | None = None,
    ) -> ResolutionRecord:
        """Open a dispute window for a proposed outcome.

        Allowed from ``active`` (first proposal) and ``disputed_resolution``
        (replacement record). A replacement requires every dispute on the
        superseded record to be decided.
        """
        actor = proposed_by or SYSTEM_ACTOR
        with self.lock(market_id):
            market = self._require(market_id)
            self._advance_locked(market)

            if market.status not in (MarketStatus.ACTIVE, MarketStatus.DISPUTED_RESOLUTION):
                raise InvalidTransition(market_id, market.status.value, "propose resolution")

            if market.active_resolution_id is not None:
                open_disputes = [
                    d for d in self.registry.for_resolution(market.active_resolution_id)
                    if d.is_active or d.status == DisputeStatus.CONTRACT_PROCESSING
                ]
                if open_disputes:
                    raise InvalidTransition(
                        market_id,
                        market.status.value,
                        "propose resolution",
                        f"{len(open_disputes)} dispute(s) on the current record are undecided",
                    )

            now = self._clock()
            record = ResolutionRecord(
                resolution_id=str(uuid.uuid4()),
                market_id=market_id,
                outcome=outcome,
                source=source,
                confidence=confidence,
                proposed_at=now,
                dispute_window_end=now + self.dispute_period,
                proposed_by=proposed_by,
            )
            self._resolutions[record.resolution_id] = record

            previous_id = market.active_resolution_id
            market.active_resolution_id = record.resolution_id
            market.resolution_history.append(record.resolution_id)
            market.dispute_period_end = record.dispute_window_end
            self._transition(market, MarketStatus.PENDING_RESOLUTION, actor, resolution_id=record.resolution_id)

            self.audit.record(
                AuditEventType.RESOLUTION_PROPOSED,
                market_id,
                actor,
                resolution_id=record.resolution_id,
                supersedes=previous_id,
                outcome=outcome.value,
                source=source.value,
                confidence=confidence.value,
                dispute_window_end=record.dispute_window_end.isoformat(),
            )

        logger.info(
            f"Resolution {record.resolution_id} proposed for {market_id}: {outcome.value} "
            f"({source.value}/{confidence.value}), window ends {record.dispute_window_end.isoformat()}"
        )
        return record.snapshot()

    def require_open_window(self, market_id: str) -> ResolutionRecord:
        """Return the active record if the market accepts disputes right now.

        Caller must hold the market lock.

        Raises:
            NotFoundError: unknown market
            InvalidTransition: market not pending_resolution/disputing
            WindowClosed: the active record's window elapsed
        """
        market = self._require(market_id)
        if market.status not in (MarketStatus.PENDING_RESOLUTION, MarketStatus.DISPUTING):
            raise InvalidTransition(market_id, market.status.value, "submit dispute")

        record = self._resolutions[market.active_resolution_id]
        if not record.window_open(self._clock()):
            logger.warning(f"Dispute refused on {market_id}: window closed at {record.dispute_window_end.isoformat()}")
            # Settle now so the closed window is reflected on the next read
            self._advance_locked(market)
            raise WindowClosed(market_id, record.dispute_window_end.isoformat())
        return record.snapshot()

    def on_dispute_submitted(self, market_id: str, dispute_id: str, actor: str) -> Market:
        """pending_resolution -> disputing. No-op when already disputing."""
        with self.lock(market_id):
            market = self._require(market_id)
            if market.status == MarketStatus.PENDING_RESOLUTION:
                self._transition(market, MarketStatus.DISPUTING, actor, dispute_id=dispute_id)
            elif market.status != MarketStatus.DISPUTING:
                raise InvalidTransition(market_id, market.status.value, "submit dispute")
            return market.snapshot()

    def advance(self, market_id: str) -> Market:
        """Apply any time-based transition that is due (lazy window evaluation)."""
        with self.lock(market_id):
            market = self._require(market_id)
            self._advance_locked(market)
            return market.snapshot()

    def reconcile(self, market_id: str, actor: str = SYSTEM_ACTOR) -> Market:
        """Aggregate dispute outcomes on the active record after a decision.

        - any accepted dispute: disputed_resolution
        - all disputes terminal and rejected: resolved
        - otherwise unchanged

        disputed_resolution is absorbing here; later acceptances change nothing.
        """
        with self.lock(market_id):
            market = self._require(market_id)
            if market.status != MarketStatus.DISPUTING:
                return market.snapshot()

            disputes = self.registry.for_resolution(market.active_resolution_id)
            if any(d.status == DisputeStatus.ACCEPTED for d in disputes):
                self._transition(market, MarketStatus.DISPUTED_RESOLUTION, actor)
            elif disputes and all(d.status == DisputeStatus.REJECTED for d in disputes):
                try:
                    self._settle(market, actor)
                except AlreadyResolved:
                    logger.info(f"Market {market_id} already settled; reconcile is a no-op")
            return market.snapshot()

    def freeze(self, market_id: str, actor: str) -> Market:
        with self.lock(market_id):
            market = self._require(market_id)
            self._advance_locked(market)
            if market.status in (MarketStatus.RESOLVED, MarketStatus.LOCKED):
                raise InvalidTransition(market_id, market.status.value, "freeze")

            market.locked_from = market.status
            self._transition(market, MarketStatus.LOCKED, actor)
            return market.snapshot()

    def unlock(self, market_id: str, actor: str) -> Market:
        with self.lock(market_id):
            market = self._require(market_id)
            if market.status != MarketStatus.LOCKED or market.locked_from is None:
                raise InvalidTransition(market_id, market.status.value, "unlock")

            restored = market.locked_from
            market.locked_from = None
            self._transition(market, restored, actor)
            self._advance_locked(market)
            return market.snapshot()

    def sweep(self) -> list[Market]:
        """Advance every market whose window elapsed. Returns those that changed."""
        with self._global_lock:
            market_ids = list(self._markets)

        changed = []
        for market_id in market_ids:
            with self.lock(market_id):
                market = self._require(market_id)
                before = market.status
                self._advance_locked(market)
                if market.status != before:
                    changed.append(market.snapshot())
        return changed

    # =========================================================================
    # Queries
    # =========================================================================

    def get_market(self, market_id: str) -> Market:
        return self.advance(market_id)

    def markets(self, status: MarketStatus | None = None) -> list[Market]:
        with self._global_lock:
            market_ids = list(self._markets)
        found = [self.advance(market_id) for market_id in market_ids]
        if status is not None:
            found = [m for m in found if m.status == status]
        return found

    def get_resolution(self, resolution_id: str) -> ResolutionRecord:
        record = self._resolutions.get(resolution_id)
        if record is None:
            raise NotFoundError("ResolutionRecord", resolution_id)
        with self.lock(record.market_id):
            return record.snapshot()

    def active_resolution(self, market_id: str) -> ResolutionRecord | None:
        with self.lock(market_id):
            market = self._require(market_id)
            self._advance_locked(market)
            if market.active_resolution_id is None:
                return None
            return self._resolutions[market.active_resolution_id].snapshot()

    # =========================================================================
    # Internals (market lock held)
    # =========================================================================

    def _require(self, market_id: str) -> Market:
        with self._global_lock:
            market = self._markets.get(market_id)
        if market is None:
            raise NotFoundError("Market", market_id)
        return market

    def _advance_locked(self, market: Market) -> None:
        if market.status != MarketStatus.PENDING_RESOLUTION:
            return
        record = self._resolutions[market.active_resolution_id]
        if record.window_open(self._clock()):
            return
        if any(d.is_active for d in self.registry.for_resolution(record.resolution_id)):
            return
        try:
            self._settle(market, SYSTEM_ACTOR)
        except AlreadyResolved:
            logger.info(f"Market {market.market_id} already settled; window close is a no-op")

    def _settle(self, market: Market, actor: str) -> None:
        record = self._resolutions[market.active_resolution_id]
        outcome = record.finalize()
        market.resolved_at = self._clock()
        self._transition(market, MarketStatus.RESOLVED, actor, resolution_id=record.resolution_id)
        self.audit.record(
            AuditEventType.MARKET_SETTLED,
            market.market_id,
            actor,
            to_state=MarketStatus.RESOLVED.value,
            resolution_id=record.resolution_id,
            final_outcome=outcome.value,
        )
        logger.info(f"Market {market.market_id} settled: final outcome {outcome.value}")

    def _transition(self, market: Market, to_state: MarketStatus, actor: str, **details) -> None:
        from_state = market.status
        market.status = to_state
        self.audit.record(
            AuditEventType.MARKET_TRANSITION,
            market.market_id,
            actor,
            from_state=from_state.value,
            to_state=to_state.value,
            **details,
        )
        logger.info(f"Market {market.market_id}: {from_state.value} -> {to_state.value} (by {actor})")
