# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""
Tribunal CLI - market resolution and dispute arbitration.

Commands:
  tribunal serve                         Run the HTTP API
  tribunal markets list|show|create|propose|freeze|unlock
  tribunal disputes list|show|submit|review|decide|stats
  tribunal bond quote --type T           Bond for a dispute type
  tribunal sweep                         Settle markets whose window elapsed
  tribunal token create --client-id C    Issue an API token
"""

from __future__ import annotations

import argparse
import sys

from .commands import COMMAND_MODULES
from .config import CLIConfig, set_cli_config


def app() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tribunal",
        description="Market resolution and dispute arbitration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tribunal markets create btc-100k --title "BTC above 100k by June?"
  tribunal markets propose btc-100k --outcome affirmed --confidence high
  tribunal disputes submit btc-100k -t evidence -r "Exchange data shows the close was below 100k"
  tribunal disputes decide <id> -d reject -n "Source data confirms the close"
        """,
    )
    parser.add_argument("--server", help="Server URL (default http://127.0.0.1:8430)")
    parser.add_argument("--token", help="API token (default from TRIBUNAL_TOKEN or cli.toml)")
    parser.add_argument("--json", action="store_true", help="Print raw JSON responses")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for module in COMMAND_MODULES:
        module.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = app()
    args = parser.parse_args(argv)

    set_cli_config(
        CLIConfig.load(
            server_url=args.server,
            token=args.token,
            output="json" if args.json else None,
        )
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
