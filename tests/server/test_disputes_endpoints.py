"""Tests for dispute and arbitration endpoints."""

from __future__ import annotations

import pytest

API = "/api/v1"
NOTE = "Station data confirms the original outcome"


@pytest.fixture
def submitted(client, auth, open_market, dispute_body) -> str:
    response = client.post(f"{API}/markets/{open_market}/disputes", json=dispute_body, headers=auth("carol"))
    return response.json()["dispute"]["dispute_id"]


class TestReadDisputes:
    def test_get_includes_stake(self, client, auth, submitted):
        response = client.get(f"{API}/disputes/{submitted}", headers=auth("viewer"))

        assert response.status_code == 200
        data = response.json()
        assert data["dispute"]["dispute_id"] == submitted
        assert data["stake"]["disposition"] == "held"
        assert data["stake"]["amount_committed"] == 100

    def test_get_unknown(self, client, auth):
        response = client.get(f"{API}/disputes/missing", headers=auth("viewer"))
        assert response.status_code == 404

    def test_list_filters(self, client, auth, submitted):
        by_submitter = client.get(f"{API}/disputes", params={"submitter": "carol"}, headers=auth("viewer")).json()
        by_status = client.get(f"{API}/disputes", params={"status": "rejected"}, headers=auth("viewer")).json()

        assert by_submitter["total_count"] == 1
        assert by_status["total_count"] == 0

    def test_list_invalid_status(self, client, auth):
        response = client.get(f"{API}/disputes", params={"status": "lost"}, headers=auth("viewer"))
        assert response.status_code == 400

    def test_statistics(self, client, auth, submitted):
        response = client.get(f"{API}/disputes/statistics", headers=auth("viewer"))

        stats = response.json()["statistics"]
        assert stats["total"] == 1
        assert stats["pending"] == 1
        assert stats["bonds_locked"] == 100


class TestReview:
    def test_review(self, client, auth, submitted):
        response = client.post(f"{API}/disputes/{submitted}/review", headers=auth("ops"))

        assert response.status_code == 200
        assert response.json()["dispute"]["status"] == "reviewed"

    def test_review_requires_admin(self, client, auth, submitted):
        assert client.post(f"{API}/disputes/{submitted}/review", headers=auth("carol")).status_code == 403


class TestDecision:
    def test_reject_settles_market(self, client, auth, submitted, open_market, ledger):
        response = client.post(
            f"{API}/disputes/{submitted}/decision", json={"decision": "reject", "note": NOTE}, headers=auth("ops")
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["dispute"]["status"] == "rejected"
        assert data["dispute"]["decided_by"] == "ops"
        assert data["disposition"] == "refunded_half_slashed_half"
        assert data["refunded_amount"] == 50
        assert data["forfeited_amount"] == 50
        assert data["market"]["status"] == "resolved"
        assert ledger.get_balance("treasury") == 50

    def test_accept_invalidates_record(self, client, auth, submitted):
        response = client.post(
            f"{API}/disputes/{submitted}/decision", json={"decision": "accept", "note": NOTE}, headers=auth("ops")
        )

        data = response.json()
        assert data["disposition"] == "refunded_full"
        assert data["market"]["status"] == "disputed_resolution"

    def test_replacement_after_accept(self, client, auth, submitted, open_market):
        client.post(
            f"{API}/disputes/{submitted}/decision", json={"decision": "accept", "note": NOTE}, headers=auth("ops")
        )

        response = client.post(
            f"{API}/markets/{open_market}/resolution", json={"outcome": "denied"}, headers=auth("ops")
        )

        assert response.status_code == 201
        market = client.get(f"{API}/markets/{open_market}", headers=auth("viewer")).json()["market"]
        assert market["status"] == "pending_resolution"
        assert len(market["resolution_history"]) == 2

    def test_short_note(self, client, auth, submitted):
        response = client.post(
            f"{API}/disputes/{submitted}/decision", json={"decision": "reject", "note": "no"}, headers=auth("ops")
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["field"] == "note"

    def test_missing_decision(self, client, auth, submitted):
        response = client.post(f"{API}/disputes/{submitted}/decision", json={"note": NOTE}, headers=auth("ops"))

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "decision is required"

    def test_requires_admin_scope(self, client, auth, submitted):
        response = client.post(
            f"{API}/disputes/{submitted}/decision", json={"decision": "accept", "note": NOTE}, headers=auth("carol")
        )
        assert response.status_code == 403

    def test_already_decided(self, client, auth, submitted, open_market, ledger):
        # A second open dispute keeps the market disputing
        ledger.deposit("poor", 1000)
        client.post(
            f"{API}/markets/{open_market}/disputes",
            json={"dispute_type": "interpretation", "reason": "The question concerned the city centre only"},
            headers=auth("poor"),
        )
        client.post(
            f"{API}/disputes/{submitted}/decision", json={"decision": "reject", "note": NOTE}, headers=auth("ops")
        )

        response = client.post(
            f"{API}/disputes/{submitted}/decision", json={"decision": "reject", "note": NOTE}, headers=auth("ops")
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT_ALREADY_DECIDED"
