"""Tests for tribunal.core.engine - wiring and read models."""

from __future__ import annotations

import json

import pytest

from tribunal.core.audit import FileAuditBackend
from tribunal.core.collaborators import InMemoryBalanceLedger, StaticAccessControl
from tribunal.core.config import CoreSettings
from tribunal.core.engine import ResolutionEngine
from tribunal.core.enums import Decision, DisputeType, MarketStatus, ResolutionOutcome
from tribunal.core.exceptions import CollaboratorUnavailable, NotFoundError

NOTE = "Reviewed against the official record"


class TestFromConfig:
    def test_uses_settings(self, clean_env, monkeypatch, tmp_path, clock):
        policy_file = tmp_path / "policy.json"
        policy_file.write_text(
            json.dumps({"version": 2, "base_bonds": {"evidence": 10, "interpretation": 20, "api_error": 30}})
        )
        monkeypatch.setenv("TRIBUNAL_BOND_POLICY_FILE", str(policy_file))
        monkeypatch.setenv("TRIBUNAL_AUDIT_LOG_FILE", str(tmp_path / "audit.jsonl"))
        monkeypatch.setenv("TRIBUNAL_DISPUTE_PERIOD_HOURS", "24")
        monkeypatch.setenv("TRIBUNAL_TREASURY_ACCOUNT", "vault")

        engine = ResolutionEngine.from_config(
            CoreSettings(_env_file=None),
            ledger=InMemoryBalanceLedger({"carol": 100}),
            access=StaticAccessControl({"admin"}),
            clock=clock,
        )

        assert engine.policy.version == 2
        assert isinstance(engine.audit.backend, FileAuditBackend)
        assert engine.lifecycle.dispute_period.total_seconds() == 24 * 3600
        assert engine.stakes.treasury_account == "vault"
        assert engine.quote_bond(DisputeType.API_ERROR, "carol").final_amount == 30

    def test_defaults_to_memory(self, clean_env):
        engine = ResolutionEngine.from_config(CoreSettings(_env_file=None))
        assert engine.policy.version == 1
        assert engine.lifecycle.dispute_period.total_seconds() == 72 * 3600


class TestMarketView:
    def test_pending_market(self, engine, proposed_market, clock):
        clock.advance(hours=47)

        view = engine.market_view(proposed_market)

        assert view["status"] == "pending_resolution"
        assert view["active_resolution"]["outcome"] == "affirmed"
        assert view["dispute_window_open"] is True
        assert view["seconds_remaining"] == 3600
        assert view["disputes"] == []

    def test_resolved_market(self, engine, proposed_market, clock):
        clock.advance(hours=48)

        view = engine.market_view(proposed_market)

        assert view["status"] == "resolved"
        assert view["dispute_window_open"] is False
        assert view["seconds_remaining"] == 0
        assert view["active_resolution"]["final_outcome"] == "affirmed"

    def test_lists_disputes(self, engine, proposed_market, make_form):
        engine.submit_dispute(proposed_market, "carol", make_form())
        view = engine.market_view(proposed_market)
        assert [d["submitter_id"] for d in view["disputes"]] == ["carol"]

    def test_unregistered(self, engine):
        with pytest.raises(NotFoundError):
            engine.market_view("missing")

    def test_active_market_has_no_resolution(self, engine):
        engine.register_market("m2")
        view = engine.market_view("m2")
        assert view["active_resolution"] is None
        assert view["dispute_window_open"] is False


class TestAdminQueues:
    def test_markets_needing_admin_action(self, engine, proposed_market, make_form):
        engine.register_market("m2")
        engine.propose_resolution("m2", ResolutionOutcome.DENIED)
        engine.submit_dispute(proposed_market, "carol", make_form())
        accepted = engine.submit_dispute("m2", "carol", make_form())
        engine.decide_dispute(accepted.dispute_id, Decision.ACCEPT, "admin", NOTE)

        queues = engine.markets_needing_admin_action()

        assert [m.market_id for m in queues["awaiting_decision"]] == [proposed_market]
        assert [m.market_id for m in queues["awaiting_replacement"]] == ["m2"]

    def test_list_markets_by_status(self, engine, proposed_market):
        engine.register_market("m2")
        assert [m.market_id for m in engine.list_markets(MarketStatus.ACTIVE)] == ["m2"]
        assert len(engine.list_markets()) == 2

    def test_list_disputes_unknown_market(self, engine):
        with pytest.raises(NotFoundError):
            engine.list_disputes(market_id="missing")


class TestQuoteBond:
    def test_quote(self, engine):
        quote = engine.quote_bond(DisputeType.API_ERROR, "alice")
        assert quote.final_amount == 750
        assert quote.reputation_score == 5

    def test_reputation_store_down(self, engine, monkeypatch):
        def broken(account_id):
            raise ConnectionError("reputation offline")

        monkeypatch.setattr(engine.reputation, "get_score", broken)
        with pytest.raises(CollaboratorUnavailable):
            engine.quote_bond(DisputeType.EVIDENCE, "alice")


class TestReputationWiring:
    def test_settlement_updates_reputation_store(self, engine, proposed_market, make_form, reputation):
        dispute = engine.submit_dispute(proposed_market, "carol", make_form())
        engine.decide_dispute(dispute.dispute_id, Decision.ACCEPT, "admin", NOTE)
        assert reputation.get_score("carol") == 20

    def test_sweep_redelivers_failed_reputation_events(
        self, engine, proposed_market, make_form, reputation, monkeypatch
    ):
        original = reputation.apply_delta
        calls = []

        def flaky(account_id, delta):
            calls.append(account_id)
            if len(calls) == 1:
                raise RuntimeError("reputation store down")
            original(account_id, delta)

        monkeypatch.setattr(reputation, "apply_delta", flaky)
        dispute = engine.submit_dispute(proposed_market, "carol", make_form())
        engine.decide_dispute(dispute.dispute_id, Decision.ACCEPT, "admin", NOTE)
        assert reputation.get_score("carol") == 10
        assert len(engine.stakes.undelivered) == 1

        engine.sweep()
        assert reputation.get_score("carol") == 20
        assert engine.stakes.undelivered == []
