# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Audit trail for market transitions and dispute decisions.

Every state transition and every dispute decision produces an immutable
AuditEvent (market ID, from-state, to-state, actor, timestamp). Each event
carries the SHA-256 hash of the previous one, so the log is a tamper-evident
append-only chain that UIs and external auditors can consume.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from .enums import AuditEventType

logger = logging.getLogger(__name__)


@dataclass
class AuditEvent:
    """One immutable audit record.

    Attributes:
        event_type: Category of event
        market_id: Market the event belongs to
        actor: Principal that caused the event ("system" for lazy/timer paths)
        from_state: Market or dispute state before the event (if any)
        to_state: State after the event (if any)
        details: Additional context (dispute id, amounts, note, ...)
        previous_hash: Hash of the previous event (None for genesis)
        event_hash: SHA-256 of this event's data + previous_hash
    """

    event_type: AuditEventType
    market_id: str
    actor: str
    from_state: str | None = None
    to_state: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    previous_hash: str | None = None
    event_hash: str = ""

    def __post_init__(self):
        if not self.event_hash:
            self.event_hash = self._compute_hash()

    def _compute_hash(self) -> str:
        hashable = {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "market_id": self.market_id,
            "actor": self.actor,
            "from_state": self.from_state,
            "to_state": self.to_state,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "previous_hash": self.previous_hash,
        }
        data = json.dumps(hashable, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(data.encode("utf-8")).hexdigest()

    def chain_to(self, previous_hash: str | None) -> None:
        self.previous_hash = previous_hash
        self.event_hash = self._compute_hash()

    def verify_hash(self) -> bool:
        return self.event_hash == self._compute_hash()

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "market_id": self.market_id,
            "actor": self.actor,
            "from_state": self.from_state,
            "to_state": self.to_state,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "previous_hash": self.previous_hash,
            "event_hash": self.event_hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditEvent:
        return cls(
            event_id=data["event_id"],
            event_type=AuditEventType(data["event_type"]),
            market_id=data["market_id"],
            actor=data["actor"],
            from_state=data.get("from_state"),
            to_state=data.get("to_state"),
            details=data.get("details", {}),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            previous_hash=data.get("previous_hash"),
            event_hash=data.get("event_hash", ""),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_json(cls, json_str: str) -> AuditEvent:
        return cls.from_dict(json.loads(json_str))


class ChainVerificationError(Exception):
    """Raised when audit chain verification fails."""

    def __init__(self, message: str, event_index: int, event_id: str):
        self.message = message
        self.event_index = event_index
        self.event_id = event_id
        super().__init__(f"{message} at index {event_index} (event_id: {event_id})")


def verify_chain(events: list[AuditEvent]) -> tuple[bool, ChainVerificationError | None]:
    """Verify the integrity of an audit event hash chain.

    Checks:
    1. Genesis event has null previous_hash
    2. Each event's hash is correctly computed
    3. Each event's previous_hash matches the prior event's hash

    Returns:
        Tuple of (is_valid, error_or_none)
    """
    for i, event in enumerate(events):
        if i == 0:
            if event.previous_hash is not None:
                return False, ChainVerificationError(
                    "Genesis event must have null previous_hash", i, event.event_id
                )
        elif event.previous_hash != events[i - 1].event_hash:
            return False, ChainVerificationError(
                "Chain broken: previous_hash mismatch", i, event.event_id
            )

        if not event.verify_hash():
            return False, ChainVerificationError(
                "Event hash verification failed (data may be tampered)", i, event.event_id
            )

    return True, None


class AuditBackend(Protocol):
    """Protocol for audit log storage backends."""

    def write(self, event: AuditEvent) -> None: ...

    def query(
        self,
        market_id: str | None = None,
        event_type: AuditEventType | None = None,
        limit: int = 100,
    ) -> list[AuditEvent]: ...

    def all_events(self) -> list[AuditEvent]: ...


def _matches(event: AuditEvent, market_id: str | None, event_type: AuditEventType | None) -> bool:
    if market_id and event.market_id != market_id:
        return False
    if event_type and event.event_type != event_type:
        return False
    return True


class InMemoryAuditBackend:
    """In-memory audit log backend for testing and development.

    Thread-safe but not persistent. Maintains the hash chain.
    """

    def __init__(self):
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()
        self._last_hash: str | None = None

    @property
    def last_hash(self) -> str | None:
        with self._lock:
            return self._last_hash

    def write(self, event: AuditEvent) -> None:
        with self._lock:
            event.chain_to(self._last_hash)
            self._events.append(event)
            self._last_hash = event.event_hash

    def query(
        self,
        market_id: str | None = None,
        event_type: AuditEventType | None = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent first."""
        with self._lock:
            results = []
            for event in reversed(self._events):
                if not _matches(event, market_id, event_type):
                    continue
                results.append(event)
                if len(results) >= limit:
                    break
            return results

    def all_events(self) -> list[AuditEvent]:
        with self._lock:
            return list(self._events)

    def verify_chain(self) -> tuple[bool, ChainVerificationError | None]:
        with self._lock:
            return verify_chain(self._events)


class FileAuditBackend:
    """JSON-lines audit log file, one event per line."""

    def __init__(self, log_path: str | Path):
        self._log_path = Path(log_path)
        self._lock = threading.Lock()
        self._last_hash: str | None = None

        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._load_last_hash()

    def _load_last_hash(self) -> None:
        events = self._read_all()
        if events:
            self._last_hash = events[-1].event_hash

    def _read_all(self) -> list[AuditEvent]:
        if not self._log_path.exists():
            return []
        events = []
        with open(self._log_path) as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(AuditEvent.from_json(line))
                except (json.JSONDecodeError, KeyError, ValueError):
                    logger.warning("Skipping malformed audit line in %s", self._log_path)
        return events

    def write(self, event: AuditEvent) -> None:
        with self._lock:
            event.chain_to(self._last_hash)
            with open(self._log_path, "a") as f:
                f.write(event.to_json() + "\n")
            self._last_hash = event.event_hash

    def query(
        self,
        market_id: str | None = None,
        event_type: AuditEventType | None = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        with self._lock:
            events = self._read_all()
        results = [e for e in reversed(events) if _matches(e, market_id, event_type)]
        return results[:limit]

    def all_events(self) -> list[AuditEvent]:
        with self._lock:
            return self._read_all()

    def verify_chain(self) -> tuple[bool, ChainVerificationError | None]:
        return verify_chain(self.all_events())


class AuditTrail:
    """Front door used by the workflow components to emit audit events.

    A failing backend is logged loudly but never undoes a state change that
    has already been applied.
    """

    def __init__(
        self,
        backend: AuditBackend | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.backend: AuditBackend = backend or InMemoryAuditBackend()
        self._clock = clock

    def record(
        self,
        event_type: AuditEventType,
        market_id: str,
        actor: str,
        from_state: str | None = None,
        to_state: str | None = None,
        **details: Any,
    ) -> AuditEvent:
        event = AuditEvent(
            event_type=event_type,
            market_id=market_id,
            actor=actor,
            from_state=from_state,
            to_state=to_state,
            details=details,
            timestamp=self._clock(),
        )
        try:
            self.backend.write(event)
        except OSError:
            logger.exception("Failed to write audit event %s for market %s", event_type.value, market_id)
        return event

    def query(
        self,
        market_id: str | None = None,
        event_type: AuditEventType | None = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return self.backend.query(market_id=market_id, event_type=event_type, limit=limit)
