"""Tests for tribunal.core.audit - hash-chained audit trail."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

from tribunal.core.audit import (
    AuditEvent,
    AuditTrail,
    FileAuditBackend,
    InMemoryAuditBackend,
    verify_chain,
)
from tribunal.core.enums import AuditEventType, Decision


def _event(market_id="m1", event_type=AuditEventType.MARKET_TRANSITION, **details):
    return AuditEvent(
        event_type=event_type,
        market_id=market_id,
        actor="system",
        from_state="pending_resolution",
        to_state="resolved",
        details=details,
    )


class TestAuditEvent:
    def test_hash_computed_on_creation(self):
        event = _event()
        assert len(event.event_hash) == 64
        assert event.verify_hash()

    def test_tampering_is_detected(self):
        event = _event(dispute_id="d1")
        event.details["dispute_id"] = "d2"
        assert not event.verify_hash()

    def test_json_round_trip_keeps_hash(self):
        event = _event(amount=375)
        restored = AuditEvent.from_json(event.to_json())

        assert restored.event_hash == event.event_hash
        assert restored.verify_hash()
        assert restored.event_type == AuditEventType.MARKET_TRANSITION


class TestInMemoryBackend:
    def test_chain_links(self):
        backend = InMemoryAuditBackend()
        first, second = _event(), _event()
        backend.write(first)
        backend.write(second)

        assert first.previous_hash is None
        assert second.previous_hash == first.event_hash
        assert backend.last_hash == second.event_hash
        assert backend.verify_chain() == (True, None)

    def test_tampered_chain_fails(self):
        backend = InMemoryAuditBackend()
        for _ in range(3):
            backend.write(_event())
        backend.all_events()[1].to_state = "disputing"

        valid, error = backend.verify_chain()

        assert not valid
        assert error.event_index == 1

    def test_broken_link_fails(self):
        events = [_event(), _event()]
        events[0].chain_to(None)
        events[1].chain_to("0" * 64)

        valid, error = verify_chain(events)

        assert not valid
        assert "previous_hash mismatch" in error.message

    def test_query_filters_newest_first(self):
        backend = InMemoryAuditBackend()
        backend.write(_event("m1"))
        backend.write(_event("m2"))
        backend.write(_event("m1", AuditEventType.DISPUTE_SUBMITTED))

        results = backend.query(market_id="m1")
        assert [e.event_type for e in results] == [
            AuditEventType.DISPUTE_SUBMITTED,
            AuditEventType.MARKET_TRANSITION,
        ]
        assert len(backend.query(event_type=AuditEventType.MARKET_TRANSITION)) == 2
        assert len(backend.query(limit=1)) == 1


class TestFileBackend:
    def test_persists_and_resumes_chain(self, tmp_path):
        path = tmp_path / "audit" / "events.jsonl"
        backend = FileAuditBackend(path)
        backend.write(_event("m1"))
        backend.write(_event("m2"))

        reopened = FileAuditBackend(path)
        third = _event("m1")
        reopened.write(third)

        events = reopened.all_events()
        assert len(events) == 3
        assert third.previous_hash == events[1].event_hash
        assert reopened.verify_chain() == (True, None)
        assert len(reopened.query(market_id="m1")) == 2

    def test_skips_malformed_lines(self, tmp_path, caplog):
        path = tmp_path / "events.jsonl"
        backend = FileAuditBackend(path)
        backend.write(_event())
        with open(path, "a") as f:
            f.write("{broken\n")

        with caplog.at_level(logging.WARNING):
            events = backend.all_events()

        assert len(events) == 1
        assert "malformed" in caplog.text


class TestAuditTrail:
    def test_record(self):
        trail = AuditTrail()
        event = trail.record(AuditEventType.DISPUTE_SUBMITTED, "m1", "carol", to_state="pending", bond_amount=100)

        assert event.details == {"bond_amount": 100}
        assert trail.query(market_id="m1") == [event]

    def test_write_failure_is_logged_not_raised(self, caplog):
        backend = MagicMock()
        backend.write.side_effect = OSError("disk full")
        trail = AuditTrail(backend)

        with caplog.at_level(logging.ERROR):
            event = trail.record(AuditEventType.MARKET_SETTLED, "m1", "system")

        assert event.market_id == "m1"
        assert "Failed to write audit event" in caplog.text

    def test_timestamps_follow_injected_clock(self, clock):
        trail = AuditTrail(clock=clock)
        event = trail.record(AuditEventType.MARKET_REGISTERED, "m1", "system")
        assert event.timestamp == clock.now

    def test_engine_events_share_the_workflow_clock(self, engine, proposed_market, make_form, clock):
        clock.advance(hours=3)
        dispute = engine.submit_dispute(proposed_market, "carol", make_form())
        clock.advance(hours=1)
        result = engine.decide_dispute(
            dispute.dispute_id, Decision.REJECT, "admin", "Checked against the station archive"
        )

        decided = engine.audit_events(market_id=proposed_market)
        decided = [e for e in decided if e.event_type == AuditEventType.DISPUTE_DECIDED]
        assert [e.timestamp for e in decided] == [result.dispute.decided_at]
        assert engine.get_market(proposed_market).resolved_at == clock.now
