# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Output formatting for CLI commands.

JSON mode prints the full API response. Text mode uses a per-command
formatter when one is given and falls back to JSON otherwise.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from typing import Any

from .config import get_cli_config
from .http_client import TribunalAPIError, TribunalConnectionError

Formatter = Callable[[dict[str, Any]], str]


def output_result(data: dict[str, Any], formatter: Formatter | None = None, output_format: str | None = None) -> None:
    fmt = output_format or get_cli_config().output

    if fmt == "text" and formatter is not None:
        print(formatter(data))
    elif "formatted" in data:
        print(data["formatted"])
    else:
        print(json.dumps(data, indent=2, default=str))


def output_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


def run_api_call(call: Callable[[], dict[str, Any]], formatter: Formatter | None = None) -> int:
    """Run one API call, print its result, and map failures to exit code 1."""
    try:
        result = call()
    except TribunalConnectionError as e:
        output_error(str(e))
        return 1
    except TribunalAPIError as e:
        output_error(f"{e.message} ({e.code})")
        return 1
    output_result(result, formatter)
    return 0


# =============================================================================
# Text formatters
# =============================================================================


def format_market_line(m: dict[str, Any]) -> str:
    title = f"  {m['title']}" if m.get("title") else ""
    return f"{m['market_id']:<24} {m['status']:<20}{title}"


def format_market(data: dict[str, Any]) -> str:
    m = data["market"]
    lines = [
        f"Market {m['market_id']}" + (f": {m['title']}" if m.get("title") else ""),
        f"  Status:         {m['status']}",
    ]
    if m.get("locked_from"):
        lines.append(f"  Frozen from:    {m['locked_from']}")
    resolution = m.get("active_resolution")
    if resolution:
        lines.append(
            f"  Resolution:     {resolution['outcome']} ({resolution['source']}, {resolution['confidence']} confidence)"
        )
        lines.append(f"  Window ends:    {resolution['dispute_window_end']}")
        if resolution.get("final_outcome"):
            lines.append(f"  Final outcome:  {resolution['final_outcome']}")
    if "dispute_window_open" in m:
        state = f"open, {m['seconds_remaining']}s left" if m["dispute_window_open"] else "closed"
        lines.append(f"  Dispute window: {state}")
    for d in m.get("disputes", []):
        lines.append(f"    - {format_dispute_line(d)}")
    return "\n".join(lines)


def format_markets(data: dict[str, Any]) -> str:
    markets = data.get("markets", [])
    if not markets:
        return "No markets."
    return "\n".join(format_market_line(m) for m in markets)


def format_dispute_line(d: dict[str, Any]) -> str:
    return f"{d['dispute_id']}  {d['status']:<10} {d['dispute_type']:<15} bond {d['bond_amount']:<6} by {d['submitter_id']}"


def format_dispute(data: dict[str, Any]) -> str:
    d = data["dispute"]
    lines = [
        f"Dispute {d['dispute_id']} on market {d['market_id']}",
        f"  Status:     {d['status']}",
        f"  Type:       {d['dispute_type']}",
        f"  Submitter:  {d['submitter_id']}",
        f"  Bond:       {d['bond_amount']}",
        f"  Reason:     {d['reason']}",
    ]
    if d.get("evidence_url"):
        lines.append(f"  Evidence:   {d['evidence_url']}")
    if d.get("admin_note"):
        lines.append(f"  Decided by: {d['decided_by']} ({d['admin_note']})")
    stake = data.get("stake")
    if stake:
        lines.append(
            f"  Stake:      {stake['disposition']} (refunded {stake['refunded_amount']}, "
            f"forfeited {stake['forfeited_amount']})"
        )
    if data.get("market"):
        lines.append(f"  Market now: {data['market']['status']}")
    return "\n".join(lines)


def format_disputes(data: dict[str, Any]) -> str:
    disputes = data.get("disputes", [])
    if not disputes:
        return "No disputes."
    return "\n".join(format_dispute_line(d) for d in disputes)


def format_statistics(data: dict[str, Any]) -> str:
    s = data["statistics"]
    return "\n".join(
        [
            "Dispute statistics",
            f"  Total:            {s['total']}",
            f"  Pending:          {s['pending']}",
            f"  Reviewed:         {s['reviewed']}",
            f"  Accepted:         {s['accepted']}",
            f"  Rejected:         {s['rejected']}",
            f"  Settling:         {s.get('contract_processing', 0)}",
            f"  Avg resolution:   {s['average_resolution_hours']}h",
            f"  Bonds locked:     {s['bonds_locked']}",
            f"  Bonds refunded:   {s['bonds_refunded']}",
            f"  Bonds slashed:    {s['bonds_slashed']}",
        ]
    )


def format_quote(data: dict[str, Any]) -> str:
    q = data["quote"]
    return (
        f"Bond for {q['dispute_type']}: {q['final_amount']} {q['currency']} "
        f"(base {q['base_amount']} x{q['reputation_multiplier']}, reputation {q['reputation_score']}, "
        f"policy v{q['policy_version']})"
    )
