# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Sweep command: advance markets whose dispute window elapsed.

Meant to be run periodically (cron, systemd timer) in addition to the lazy
evaluation that happens on every read.
"""

from __future__ import annotations

import argparse
from typing import Any

from ..http_client import get_client
from ..output import run_api_call


def register(subparsers: argparse._SubParsersAction) -> None:
    sweep_parser = subparsers.add_parser("sweep", help="Settle markets whose dispute window elapsed")
    sweep_parser.set_defaults(func=cmd_sweep)


def _format(data: dict[str, Any]) -> str:
    lines = [f"Advanced {len(data['advanced'])} market(s)"]
    for m in data["advanced"]:
        lines.append(f"  {m['market_id']} -> {m['status']}")
    needs_admin = data.get("needs_admin", {})
    for bucket, market_ids in needs_admin.items():
        if market_ids:
            lines.append(f"{bucket.replace('_', ' ')}: {', '.join(market_ids)}")
    return "\n".join(lines)


def cmd_sweep(args: argparse.Namespace) -> int:
    client = get_client()
    return run_api_call(lambda: client.post("/sweep"), _format)
