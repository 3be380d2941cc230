"""Global test fixtures for the Tribunal test suite."""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

import pytest

from tribunal.core.collaborators import InMemoryBalanceLedger, InMemoryReputationStore, StaticAccessControl
from tribunal.core.engine import ResolutionEngine
from tribunal.core.enums import ResolutionConfidence, ResolutionOutcome, ResolutionSource
from tribunal.core.models import DisputeForm

# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all TRIBUNAL_ environment variables."""
    for key in list(os.environ.keys()):
        if key.startswith("TRIBUNAL_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_config_cache():
    """Reset the core config singleton between tests."""
    from tribunal.core.config import clear_config_cache

    clear_config_cache()
    yield
    clear_config_cache()


# ============================================================================
# Clock
# ============================================================================


class FrozenClock:
    """Settable clock injected wherever the workflow reads the time."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, when: datetime) -> None:
        self.now = when


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))


# ============================================================================
# Engine Fixtures
# ============================================================================

ADMIN = "admin"


@pytest.fixture
def ledger() -> InMemoryBalanceLedger:
    return InMemoryBalanceLedger({"alice": 1000, "bob": 1000, "carol": 1000, "dave": 1000, "poor": 10})


@pytest.fixture
def reputation() -> InMemoryReputationStore:
    return InMemoryReputationStore({"alice": 5, "bob": 120, "carol": 10, "dave": 60})


@pytest.fixture
def engine(ledger, reputation, clock) -> ResolutionEngine:
    return ResolutionEngine(
        ledger=ledger,
        reputation=reputation,
        access=StaticAccessControl({ADMIN}),
        dispute_period=timedelta(hours=48),
        clock=clock,
    )


@pytest.fixture
def proposed_market(engine) -> str:
    """A market with a YES/high resolution proposed and its 48h window open."""
    engine.register_market("m1", "Will it rain in Lisbon on 1 March?")
    engine.propose_resolution(
        "m1", ResolutionOutcome.AFFIRMED, ResolutionSource.API, ResolutionConfidence.HIGH, proposed_by="oracle"
    )
    return "m1"


@pytest.fixture
def make_form():
    """Factory for valid dispute forms."""

    def _make(dispute_type: str = "evidence", reason: str = "The weather station data shows no rainfall at all", **kw):
        return DisputeForm.from_dict({"dispute_type": dispute_type, "reason": reason, **kw})

    return _make
