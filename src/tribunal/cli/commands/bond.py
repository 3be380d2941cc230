# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Bond quote command: tribunal bond quote --type api_error"""

from __future__ import annotations

import argparse

from ..http_client import get_client
from ..output import format_quote, run_api_call
from .disputes import DISPUTE_TYPES


def register(subparsers: argparse._SubParsersAction) -> None:
    bond_parser = subparsers.add_parser("bond", help="Dispute bonds")
    bond_sub = bond_parser.add_subparsers(dest="bond_command", required=True)

    quote_p = bond_sub.add_parser("quote", help="Bond you would lock for a dispute type")
    quote_p.add_argument("--type", "-t", dest="dispute_type", required=True, choices=DISPUTE_TYPES)
    quote_p.set_defaults(func=cmd_bond_quote)


def cmd_bond_quote(args: argparse.Namespace) -> int:
    client = get_client()
    return run_api_call(lambda: client.get("/bonds/quote", params={"type": args.dispute_type}), format_quote)
