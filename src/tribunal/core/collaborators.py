# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""External collaborators consumed by the resolution workflow.

The engine never moves tokens or stores reputation itself. It talks to
these Protocols; production deployments plug in a chain/ledger client and
a reputation service, development and tests use the in-memory versions
below.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from .exceptions import InsufficientFunds
from .models import ReputationEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class BalanceLedger(Protocol):
    """Token balances and bond escrow."""

    def get_balance(self, account_id: str) -> int:
        """Spendable (unlocked) balance."""
        ...

    def lock(self, account_id: str, amount: int) -> None:
        """Move ``amount`` from spendable to locked."""
        ...

    def release(self, account_id: str, amount: int) -> None:
        """Move ``amount`` from locked back to spendable."""
        ...

    def transfer(self, from_account: str, to_account: str, amount: int) -> None:
        """Move locked funds of ``from_account`` to ``to_account``'s spendable balance."""
        ...


@runtime_checkable
class ReputationStore(Protocol):
    def get_score(self, account_id: str) -> int: ...

    def apply_delta(self, account_id: str, delta: int) -> None: ...


@runtime_checkable
class AccessControl(Protocol):
    def is_admin(self, principal: str) -> bool: ...


# ============================================================================
# In-memory implementations
# ============================================================================


class InMemoryBalanceLedger:
    """Thread-safe in-memory balance ledger for development and testing."""

    def __init__(self, balances: dict[str, int] | None = None):
        self._available: dict[str, int] = dict(balances or {})
        self._locked: dict[str, int] = {}
        self._lock = threading.Lock()
        self.transfers: list[tuple[str, str, int]] = []

    def deposit(self, account_id: str, amount: int) -> None:
        with self._lock:
            self._available[account_id] = self._available.get(account_id, 0) + amount

    def get_balance(self, account_id: str) -> int:
        with self._lock:
            return self._available.get(account_id, 0)

    def get_locked(self, account_id: str) -> int:
        with self._lock:
            return self._locked.get(account_id, 0)

    def lock(self, account_id: str, amount: int) -> None:
        with self._lock:
            available = self._available.get(account_id, 0)
            if available < amount:
                raise InsufficientFunds(account_id, amount, available)
            self._available[account_id] = available - amount
            self._locked[account_id] = self._locked.get(account_id, 0) + amount

    def release(self, account_id: str, amount: int) -> None:
        with self._lock:
            self._take_locked(account_id, amount)
            self._available[account_id] = self._available.get(account_id, 0) + amount

    def transfer(self, from_account: str, to_account: str, amount: int) -> None:
        with self._lock:
            self._take_locked(from_account, amount)
            self._available[to_account] = self._available.get(to_account, 0) + amount
            self.transfers.append((from_account, to_account, amount))

    def _take_locked(self, account_id: str, amount: int) -> None:
        locked = self._locked.get(account_id, 0)
        if locked < amount:
            raise ValueError(f"{account_id} has {locked} locked, cannot take {amount}")
        self._locked[account_id] = locked - amount


class InMemoryReputationStore:
    """Thread-safe in-memory reputation scores.

    Unknown accounts start at ``default_score``; scores never drop below 0.
    """

    def __init__(self, scores: dict[str, int] | None = None, default_score: int = 10):
        self._scores: dict[str, int] = dict(scores or {})
        self._default = default_score
        self._lock = threading.Lock()

    def set_score(self, account_id: str, score: int) -> None:
        with self._lock:
            self._scores[account_id] = score

    def get_score(self, account_id: str) -> int:
        with self._lock:
            return self._scores.get(account_id, self._default)

    def apply_delta(self, account_id: str, delta: int) -> None:
        with self._lock:
            old = self._scores.get(account_id, self._default)
            self._scores[account_id] = max(0, old + delta)
        logger.info("Reputation for %s: %d -> %d (%+d)", account_id, old, max(0, old + delta), delta)


class StaticAccessControl:
    """Admin role granted to a fixed set of principals."""

    def __init__(self, admins: Iterable[str] = ()):
        self._admins = frozenset(admins)

    def is_admin(self, principal: str) -> bool:
        return principal in self._admins


class ReputationEventApplier:
    """StakeLedger listener that forwards reputation events to a store."""

    def __init__(self, store: ReputationStore):
        self.store = store

    def __call__(self, event: ReputationEvent) -> None:
        self.store.apply_delta(event.account_id, event.delta)
