"""Tests for markets command module."""

from __future__ import annotations

import argparse
from unittest.mock import MagicMock, patch

from tribunal.cli.commands.markets import (
    cmd_markets_create,
    cmd_markets_freeze,
    cmd_markets_list,
    cmd_markets_propose,
    cmd_markets_show,
    register,
)
from tribunal.cli.http_client import TribunalAPIError, TribunalConnectionError

MARKET = {
    "market_id": "m1",
    "title": "Rain in Lisbon?",
    "status": "pending_resolution",
    "locked_from": None,
    "active_resolution": {
        "outcome": "affirmed",
        "source": "api",
        "confidence": "high",
        "dispute_window_end": "2026-03-03T12:00:00+00:00",
        "final_outcome": None,
    },
    "dispute_window_open": True,
    "seconds_remaining": 3600,
    "disputes": [],
}


class TestMarketsRegistration:
    def test_register(self):
        parser = argparse.ArgumentParser()
        subparsers = parser.add_subparsers()
        register(subparsers)

        args = parser.parse_args(["markets", "list", "--status", "disputing"])
        assert args.markets_command == "list"
        assert args.status == "disputing"

        args = parser.parse_args(["markets", "create", "m1", "--title", "T", "--yes-pool", "5"])
        assert args.market_id == "m1"
        assert args.yes_pool == 5.0

        args = parser.parse_args(["markets", "propose", "m1", "--outcome", "denied"])
        assert args.outcome == "denied"
        assert args.source == "admin"
        assert args.confidence == "medium"


class TestMarketsList:
    @patch("tribunal.cli.commands.markets.get_client")
    def test_list(self, mock_get_client, capsys):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client
        mock_client.get.return_value = {"success": True, "markets": [MARKET], "total_count": 1}

        result = cmd_markets_list(MagicMock(status="pending_resolution"))

        assert result == 0
        mock_client.get.assert_called_once_with("/markets", params={"status": "pending_resolution"})
        assert "m1" in capsys.readouterr().out

    @patch("tribunal.cli.commands.markets.get_client")
    def test_list_empty(self, mock_get_client, capsys):
        mock_get_client.return_value.get.return_value = {"success": True, "markets": [], "total_count": 0}

        assert cmd_markets_list(MagicMock(status=None)) == 0
        assert "No markets." in capsys.readouterr().out


class TestMarketsShow:
    @patch("tribunal.cli.commands.markets.get_client")
    def test_show_text(self, mock_get_client, capsys):
        mock_get_client.return_value.get.return_value = {"success": True, "market": MARKET}

        assert cmd_markets_show(MagicMock(market_id="m1")) == 0

        out = capsys.readouterr().out
        assert "Status:         pending_resolution" in out
        assert "open, 3600s left" in out

    @patch("tribunal.cli.commands.markets.get_client")
    def test_show_json(self, mock_get_client, capsys, cli_config):
        cli_config.output = "json"
        mock_get_client.return_value.get.return_value = {"success": True, "market": MARKET}

        assert cmd_markets_show(MagicMock(market_id="m1")) == 0
        assert '"market_id": "m1"' in capsys.readouterr().out

    @patch("tribunal.cli.commands.markets.get_client")
    def test_not_found(self, mock_get_client, capsys):
        mock_get_client.return_value.get.side_effect = TribunalAPIError(
            404, "NOT_FOUND_RESOURCE", "Market not found: m9"
        )

        assert cmd_markets_show(MagicMock(market_id="m9")) == 1
        assert "Error: Market not found: m9 (NOT_FOUND_RESOURCE)" in capsys.readouterr().err

    @patch("tribunal.cli.commands.markets.get_client")
    def test_connection_error(self, mock_get_client, capsys):
        mock_get_client.return_value.get.side_effect = TribunalConnectionError("http://tribunal.test:8430")

        assert cmd_markets_show(MagicMock(market_id="m1")) == 1
        assert "Cannot connect" in capsys.readouterr().err


class TestMarketsAdmin:
    @patch("tribunal.cli.commands.markets.get_client")
    def test_create(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client
        mock_client.post.return_value = {"success": True, "market": {**MARKET, "status": "active"}}

        args = MagicMock(market_id="m1", title="Rain in Lisbon?", yes_pool=1.0, no_pool=2.0)
        assert cmd_markets_create(args) == 0
        mock_client.post.assert_called_once_with(
            "/markets", body={"market_id": "m1", "title": "Rain in Lisbon?", "yes_pool": 1.0, "no_pool": 2.0}
        )

    @patch("tribunal.cli.commands.markets.get_client")
    def test_propose(self, mock_get_client, capsys):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client
        mock_client.post.return_value = {
            "success": True,
            "resolution": {"resolution_id": "r1", "outcome": "denied", "dispute_window_end": "2026-03-04"},
        }

        args = MagicMock(market_id="m1", outcome="denied", source="admin", confidence="high")
        assert cmd_markets_propose(args) == 0

        mock_client.post.assert_called_once_with(
            "/markets/m1/resolution", body={"outcome": "denied", "source": "admin", "confidence": "high"}
        )
        assert "Resolution r1 proposed: denied" in capsys.readouterr().out

    @patch("tribunal.cli.commands.markets.get_client")
    def test_freeze_forbidden(self, mock_get_client, capsys):
        mock_get_client.return_value.post.side_effect = TribunalAPIError(
            403, "FORBIDDEN_INSUFFICIENT_PERMISSION", "Insufficient scope. Required: arbitration:admin"
        )

        assert cmd_markets_freeze(MagicMock(market_id="m1")) == 1
        assert "FORBIDDEN_INSUFFICIENT_PERMISSION" in capsys.readouterr().err
