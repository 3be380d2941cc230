# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Market commands.

Commands:
    tribunal markets list [--status S]                    List markets
    tribunal markets show <market_id>                     Market, resolution, window, disputes
    tribunal markets create <market_id> [--title T]       Register a market (admin)
    tribunal markets propose <market_id> --outcome O      Propose a resolution (admin)
    tribunal markets freeze <market_id>                   Freeze (admin)
    tribunal markets unlock <market_id>                   Unlock (admin)
"""

from __future__ import annotations

import argparse

from ..http_client import get_client
from ..output import format_market, format_markets, run_api_call

MARKET_STATUSES = ["active", "pending_resolution", "disputing", "resolved", "disputed_resolution", "locked"]


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the markets sub-command group."""
    markets_parser = subparsers.add_parser("markets", help="Markets and their resolution lifecycle")
    markets_sub = markets_parser.add_subparsers(dest="markets_command", required=True)

    list_p = markets_sub.add_parser("list", help="List markets")
    list_p.add_argument("--status", choices=MARKET_STATUSES, help="Filter by status")
    list_p.set_defaults(func=cmd_markets_list)

    show_p = markets_sub.add_parser("show", help="Show a market")
    show_p.add_argument("market_id")
    show_p.set_defaults(func=cmd_markets_show)

    create_p = markets_sub.add_parser("create", help="Register a market")
    create_p.add_argument("market_id")
    create_p.add_argument("--title", default="")
    create_p.add_argument("--yes-pool", type=float, default=0.0)
    create_p.add_argument("--no-pool", type=float, default=0.0)
    create_p.set_defaults(func=cmd_markets_create)

    propose_p = markets_sub.add_parser("propose", help="Propose a resolution")
    propose_p.add_argument("market_id")
    propose_p.add_argument("--outcome", required=True, choices=["affirmed", "denied"], help="affirmed = YES, denied = NO")
    propose_p.add_argument("--source", default="admin", choices=["api", "admin", "contract"])
    propose_p.add_argument("--confidence", default="medium", choices=["high", "medium", "low"])
    propose_p.set_defaults(func=cmd_markets_propose)

    freeze_p = markets_sub.add_parser("freeze", help="Freeze a market")
    freeze_p.add_argument("market_id")
    freeze_p.set_defaults(func=cmd_markets_freeze)

    unlock_p = markets_sub.add_parser("unlock", help="Unlock a frozen market")
    unlock_p.add_argument("market_id")
    unlock_p.set_defaults(func=cmd_markets_unlock)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def cmd_markets_list(args: argparse.Namespace) -> int:
    client = get_client()
    return run_api_call(lambda: client.get("/markets", params={"status": args.status}), format_markets)


def cmd_markets_show(args: argparse.Namespace) -> int:
    client = get_client()
    return run_api_call(lambda: client.get(f"/markets/{args.market_id}"), format_market)


def cmd_markets_create(args: argparse.Namespace) -> int:
    client = get_client()
    body = {
        "market_id": args.market_id,
        "title": args.title,
        "yes_pool": args.yes_pool,
        "no_pool": args.no_pool,
    }
    return run_api_call(lambda: client.post("/markets", body=body), format_market)


def cmd_markets_propose(args: argparse.Namespace) -> int:
    client = get_client()
    body = {"outcome": args.outcome, "source": args.source, "confidence": args.confidence}

    def _format(data: dict) -> str:
        r = data["resolution"]
        return f"Resolution {r['resolution_id']} proposed: {r['outcome']}, dispute window ends {r['dispute_window_end']}"

    return run_api_call(lambda: client.post(f"/markets/{args.market_id}/resolution", body=body), _format)


def cmd_markets_freeze(args: argparse.Namespace) -> int:
    client = get_client()
    return run_api_call(lambda: client.post(f"/markets/{args.market_id}/freeze"), format_market)


def cmd_markets_unlock(args: argparse.Namespace) -> int:
    client = get_client()
    return run_api_call(lambda: client.post(f"/markets/{args.market_id}/unlock"), format_market)
