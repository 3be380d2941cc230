# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Dispute commands.

Commands:
    tribunal disputes list [--status S] [--submitter U]
    tribunal disputes show <dispute_id>
    tribunal disputes submit <market_id> --type T --reason R [--evidence-url U]
    tribunal disputes review <dispute_id>                        (admin)
    tribunal disputes decide <dispute_id> --decision D --note N  (admin)
    tribunal disputes stats
"""

from __future__ import annotations

import argparse

from ..http_client import get_client
from ..output import format_dispute, format_disputes, format_statistics, run_api_call

DISPUTE_TYPES = ["evidence", "interpretation", "api_error"]
DISPUTE_STATUSES = ["pending", "reviewed", "accepted", "rejected", "contract_processing"]


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the disputes sub-command group."""
    disputes_parser = subparsers.add_parser("disputes", help="Disputes and arbitration")
    disputes_sub = disputes_parser.add_subparsers(dest="disputes_command", required=True)

    list_p = disputes_sub.add_parser("list", help="List disputes")
    list_p.add_argument("--status", choices=DISPUTE_STATUSES)
    list_p.add_argument("--submitter", help="Only disputes filed by this account")
    list_p.set_defaults(func=cmd_disputes_list)

    show_p = disputes_sub.add_parser("show", help="Show a dispute and its stake")
    show_p.add_argument("dispute_id")
    show_p.set_defaults(func=cmd_disputes_show)

    submit_p = disputes_sub.add_parser("submit", help="Challenge a market's proposed resolution")
    submit_p.add_argument("market_id")
    submit_p.add_argument("--type", "-t", dest="dispute_type", required=True, choices=DISPUTE_TYPES)
    submit_p.add_argument("--reason", "-r", required=True, help="Why the resolution is wrong (min 20 chars)")
    submit_p.add_argument("--evidence-url")
    submit_p.add_argument("--evidence-description")
    submit_p.set_defaults(func=cmd_disputes_submit)

    review_p = disputes_sub.add_parser("review", help="Mark a dispute as reviewed")
    review_p.add_argument("dispute_id")
    review_p.set_defaults(func=cmd_disputes_review)

    decide_p = disputes_sub.add_parser("decide", help="Accept or reject a dispute")
    decide_p.add_argument("dispute_id")
    decide_p.add_argument("--decision", "-d", required=True, choices=["accept", "reject"])
    decide_p.add_argument("--note", "-n", required=True, help="Admin note (min 10 chars)")
    decide_p.set_defaults(func=cmd_disputes_decide)

    stats_p = disputes_sub.add_parser("stats", help="Dispute statistics")
    stats_p.set_defaults(func=cmd_disputes_stats)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def cmd_disputes_list(args: argparse.Namespace) -> int:
    client = get_client()
    params = {"status": args.status, "submitter": args.submitter}
    return run_api_call(lambda: client.get("/disputes", params=params), format_disputes)


def cmd_disputes_show(args: argparse.Namespace) -> int:
    client = get_client()
    return run_api_call(lambda: client.get(f"/disputes/{args.dispute_id}"), format_dispute)


def cmd_disputes_submit(args: argparse.Namespace) -> int:
    client = get_client()
    body = {
        "dispute_type": args.dispute_type,
        "reason": args.reason,
        "evidence_url": args.evidence_url,
        "evidence_description": args.evidence_description,
    }
    return run_api_call(lambda: client.post(f"/markets/{args.market_id}/disputes", body=body), format_dispute)


def cmd_disputes_review(args: argparse.Namespace) -> int:
    client = get_client()
    return run_api_call(lambda: client.post(f"/disputes/{args.dispute_id}/review"), format_dispute)


def cmd_disputes_decide(args: argparse.Namespace) -> int:
    client = get_client()
    body = {"decision": args.decision, "note": args.note}
    return run_api_call(lambda: client.post(f"/disputes/{args.dispute_id}/decision", body=body), format_dispute)


def cmd_disputes_stats(args: argparse.Namespace) -> int:
    client = get_client()
    return run_api_call(lambda: client.get("/disputes/statistics"), format_statistics)
