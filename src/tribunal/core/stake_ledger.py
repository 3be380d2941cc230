# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Stake ledger: bonds committed per dispute and their disposition.

Stake outcomes:
- Accepted dispute: full refund, positive reputation event
- Rejected dispute: refund = floor(bond * (1 - slash_fraction)), the rest is
  forfeited to the treasury, negative reputation event

Every committed unit is accounted for exactly once: refund + forfeited
equals the committed bond for every settled entry.

Token movement is delegated to a BalanceLedger collaborator and reputation
changes are emitted as events, never applied here.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from decimal import ROUND_FLOOR, Decimal
from typing import Any

from .bonds import DEFAULT_BOND_POLICY, BondPolicy
from .collaborators import BalanceLedger
from .enums import Decision, StakeDisposition
from .exceptions import (
    AlreadySettled,
    CollaboratorUnavailable,
    DuplicateCommit,
    InsufficientFunds,
    NotFoundError,
    SettlementInFlight,
    TribunalException,
    ValidationException,
)
from .models import ReputationEvent, StakeEntry, utcnow

logger = logging.getLogger(__name__)

ReputationListener = Callable[[ReputationEvent], None]


def split_bond(amount: int, slash_fraction: Decimal) -> tuple[int, int]:
    """Split a rejected bond into (refund, forfeited).

    The refund is floored so rounding never creates tokens.
    """
    refund = int((Decimal(amount) * (Decimal(1) - slash_fraction)).to_integral_value(rounding=ROUND_FLOOR))
    return refund, amount - refund


def _disposition_for(refund: int, forfeited: int) -> StakeDisposition:
    if forfeited == 0:
        return StakeDisposition.REFUNDED_FULL
    if refund == 0:
        return StakeDisposition.FORFEITED
    return StakeDisposition.REFUNDED_HALF_SLASHED_HALF


class StakeLedger:
    """Tracks bonds locked for disputes.

    Thread-safe: a single internal lock guards the entries, and collaborator
    calls for an entry happen while it is held so a concurrent second
    settle() can never issue a second transfer.
    """

    def __init__(
        self,
        ledger: BalanceLedger,
        policy: BondPolicy | None = None,
        treasury_account: str = "treasury",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ledger = ledger
        self.policy = policy or DEFAULT_BOND_POLICY
        self.treasury_account = treasury_account
        self._clock = clock
        self._entries: dict[str, StakeEntry] = {}
        self._lock = threading.RLock()
        self._listeners: list[ReputationListener] = []
        # (listener, event) pairs that failed; see redeliver()
        self.undelivered: list[tuple[ReputationListener, ReputationEvent]] = []

    def subscribe(self, listener: ReputationListener) -> None:
        self._listeners.append(listener)

    # =========================================================================
    # Commit / settle
    # =========================================================================

    def commit(self, dispute_id: str, account_id: str, amount: int) -> StakeEntry:
        """Lock ``amount`` of ``account_id``'s balance as the bond for a dispute.

        Raises:
            ValidationException: amount is not positive
            DuplicateCommit: an entry already exists for the dispute
            InsufficientFunds: balance is below the bond
            CollaboratorUnavailable: the balance ledger failed
        """
        if amount <= 0:
            raise ValidationException("Bond amount must be positive", "amount", amount)

        with self._lock:
            if dispute_id in self._entries:
                raise DuplicateCommit(dispute_id)

            available = self._call("balance ledger", self.ledger.get_balance, account_id)
            if available < amount:
                logger.warning(f"Stake commit refused for {account_id}: needs {amount}, has {available}")
                raise InsufficientFunds(account_id, amount, available)

            self._call("balance ledger", self.ledger.lock, account_id, amount)

            entry = StakeEntry(
                dispute_id=dispute_id,
                account_id=account_id,
                amount_committed=amount,
                committed_at=self._clock(),
            )
            self._entries[dispute_id] = entry

        logger.info(f"Committed stake {amount} {self.policy.currency} for dispute {dispute_id} by {account_id}")
        return entry.snapshot()

    def settle(self, dispute_id: str, outcome: Decision) -> StakeDisposition:
        """Refund or slash the bond of a decided dispute.

        A rejected bond takes two ledger calls (forfeit transfer, then refund
        release). Progress is recorded on the entry after each call, so when
        the second call fails a later settle() with the same outcome only
        performs the missing step.

        Raises:
            NotFoundError: no entry for the dispute
            AlreadySettled: the entry was settled before (no second transfer)
            SettlementInFlight: a partly applied settlement had another outcome
            CollaboratorUnavailable: the balance ledger failed; entry stays held
        """
        with self._lock:
            entry = self._entries.get(dispute_id)
            if entry is None:
                raise NotFoundError("StakeEntry", dispute_id)
            if entry.is_settled:
                raise AlreadySettled(dispute_id, entry.disposition.value)
            if entry.in_flight and entry.settling_outcome is not outcome:
                raise SettlementInFlight(dispute_id, entry.settling_outcome.value)

            bond = entry.amount_committed
            if outcome is Decision.ACCEPT:
                refund, forfeited = bond, 0
                delta = self.policy.accepted_reputation_delta
            else:
                refund, forfeited = split_bond(bond, self.policy.slash_fraction)
                delta = self.policy.rejected_reputation_delta

            if forfeited > entry.transferred_amount:
                self._call(
                    "balance ledger",
                    self.ledger.transfer,
                    entry.account_id,
                    self.treasury_account,
                    forfeited - entry.transferred_amount,
                )
                entry.transferred_amount = forfeited
                entry.settling_outcome = outcome
            if refund:
                try:
                    self._call("balance ledger", self.ledger.release, entry.account_id, refund)
                except CollaboratorUnavailable:
                    if entry.in_flight:
                        logger.warning(
                            f"Stake for dispute {dispute_id} mid-settlement: {entry.transferred_amount} "
                            f"forfeited, refund of {refund} pending"
                        )
                    raise

            entry.refunded_amount = refund
            entry.forfeited_amount = forfeited
            entry.disposition = _disposition_for(refund, forfeited)
            entry.settling_outcome = outcome
            entry.settled_at = self._clock()
            disposition = entry.disposition
            account_id = entry.account_id

        logger.info(
            f"Settled stake for dispute {dispute_id}: {disposition.value} "
            f"(refund={refund}, forfeited={forfeited})"
        )

        if delta:
            self._emit(
                ReputationEvent(
                    account_id=account_id,
                    delta=delta,
                    reason=f"dispute_{outcome.dispute_status.value}",
                    dispute_id=dispute_id,
                    timestamp=self._clock(),
                )
            )
        return disposition

    def rollback(self, dispute_id: str) -> None:
        """Release a held bond and drop its entry.

        Compensates a commit whose enclosing submission failed. Settled
        entries are never rolled back.
        """
        with self._lock:
            entry = self._entries.get(dispute_id)
            if entry is None:
                raise NotFoundError("StakeEntry", dispute_id)
            if entry.is_settled:
                raise AlreadySettled(dispute_id, entry.disposition.value)
            if entry.in_flight:
                raise SettlementInFlight(dispute_id, entry.settling_outcome.value)
            self._call("balance ledger", self.ledger.release, entry.account_id, entry.amount_committed)
            del self._entries[dispute_id]

        logger.warning(f"Rolled back stake for dispute {dispute_id} ({entry.amount_committed} released)")

    # =========================================================================
    # Reputation events
    # =========================================================================

    def _emit(self, event: ReputationEvent) -> None:
        for listener in list(self._listeners):
            self._deliver(listener, event)

    def _deliver(self, listener: ReputationListener, event: ReputationEvent) -> bool:
        try:
            listener(event)
        except Exception:
            logger.exception(
                f"Reputation listener failed for {event.account_id} ({event.delta:+d}); queued for redelivery"
            )
            with self._lock:
                self.undelivered.append((listener, event))
            return False
        return True

    def redeliver(self) -> int:
        """Retry events on the listeners that failed to take them. Returns how many were delivered."""
        with self._lock:
            pending, self.undelivered = self.undelivered, []
        return sum(1 for listener, event in pending if self._deliver(listener, event))

    # =========================================================================
    # Queries
    # =========================================================================

    def get_entry(self, dispute_id: str) -> StakeEntry | None:
        with self._lock:
            entry = self._entries.get(dispute_id)
            return entry.snapshot() if entry else None

    def entries(self) -> list[StakeEntry]:
        with self._lock:
            return [e.snapshot() for e in self._entries.values()]

    def totals(self) -> dict[str, Any]:
        """Aggregate amounts: still locked, refunded and forfeited."""
        with self._lock:
            held = [e for e in self._entries.values() if not e.is_settled]
            locked = sum(e.amount_committed - e.transferred_amount for e in held)
            refunded = sum(e.refunded_amount for e in self._entries.values())
            forfeited = sum(e.transferred_amount for e in self._entries.values())
            count = len(self._entries)
        return {
            "entries": count,
            "locked": locked,
            "refunded": refunded,
            "forfeited": forfeited,
            "currency": self.policy.currency,
        }

    @staticmethod
    def _call(collaborator: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except TribunalException:
            raise
        except Exception as e:
            logger.error(f"{collaborator} call {getattr(fn, '__name__', fn)} failed: {e}")
            raise CollaboratorUnavailable(collaborator, str(e)) from e
