"""Tests for bond quote, sweep and audit endpoints."""

from __future__ import annotations

API = "/api/v1"


class TestBondQuote:
    def test_quote_uses_caller_reputation(self, client, auth):
        response = client.get(f"{API}/bonds/quote", params={"type": "api_error"}, headers=auth("carol"))

        assert response.status_code == 200
        quote = response.json()["quote"]
        assert quote["final_amount"] == 500
        assert quote["reputation_score"] == 10
        assert quote["currency"] == "BCDB"

    def test_missing_type(self, client, auth):
        response = client.get(f"{API}/bonds/quote", headers=auth("carol"))

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "type is required"


class TestSweep:
    def test_sweep_advances_elapsed_markets(self, client, auth, open_market, clock):
        clock.advance(hours=48)

        response = client.post(f"{API}/sweep", headers=auth("ops"))

        assert response.status_code == 200
        data = response.json()
        assert [m["market_id"] for m in data["advanced"]] == [open_market]
        assert data["advanced"][0]["status"] == "resolved"
        assert data["needs_admin"] == {"awaiting_decision": [], "awaiting_replacement": []}

    def test_reports_markets_needing_decisions(self, client, auth, open_market, dispute_body):
        client.post(f"{API}/markets/{open_market}/disputes", json=dispute_body, headers=auth("carol"))

        data = client.post(f"{API}/sweep", headers=auth("ops")).json()

        assert data["advanced"] == []
        assert data["needs_admin"]["awaiting_decision"] == [open_market]

    def test_requires_admin(self, client, auth):
        assert client.post(f"{API}/sweep", headers=auth("carol")).status_code == 403


class TestAudit:
    def test_audit_events_for_market(self, client, auth, open_market):
        response = client.get(f"{API}/audit", params={"market_id": open_market, "limit": 2}, headers=auth("ops"))

        data = response.json()
        assert data["total_count"] == 2
        # Newest first: the proposal comes after its transition
        assert data["events"][0]["event_type"] == "resolution_proposed"
        assert data["events"][1]["event_type"] == "market_transition"
        assert data["events"][0]["previous_hash"] == data["events"][1]["event_hash"]

    def test_requires_admin(self, client, auth):
        assert client.get(f"{API}/audit", headers=auth("viewer")).status_code == 403
