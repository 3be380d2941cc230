# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Token management, run on the server host against the token file.

Commands:
    tribunal token create --client-id alice
    tribunal token create --client-id ops --admin
    tribunal token list
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from tribunal.server.auth import ALL_SCOPES, SCOPE_ADMIN, TokenStore

from ..output import output_error


def register(subparsers: argparse._SubParsersAction) -> None:
    token_parser = subparsers.add_parser("token", help="Manage API tokens")
    token_parser.add_argument("--token-file", type=Path, help="Token file (default from TRIBUNAL_TOKEN_FILE)")
    token_sub = token_parser.add_subparsers(dest="token_command", required=True)

    create_p = token_sub.add_parser("create", help="Create a token (printed once)")
    create_p.add_argument("--client-id", required=True, help="Principal the token acts as")
    create_p.add_argument("--description", default="")
    create_p.add_argument("--scope", action="append", choices=ALL_SCOPES, help="Scope (repeatable)")
    create_p.add_argument("--admin", action="store_true", help=f"Grant {SCOPE_ADMIN}")
    create_p.set_defaults(func=cmd_token_create)

    list_p = token_sub.add_parser("list", help="List tokens")
    list_p.set_defaults(func=cmd_token_list)


def _store(args: argparse.Namespace) -> TokenStore:
    if args.token_file is not None:
        return TokenStore(args.token_file)
    from tribunal.server.config import get_settings

    return TokenStore(get_settings().token_file)


def cmd_token_create(args: argparse.Namespace) -> int:
    scopes = list(args.scope or [])
    if args.admin and SCOPE_ADMIN not in scopes:
        scopes.append(SCOPE_ADMIN)

    try:
        raw = _store(args).create(args.client_id, description=args.description, scopes=scopes or None)
    except (OSError, ValueError) as e:
        output_error(str(e))
        return 1

    print(raw)
    return 0


def cmd_token_list(args: argparse.Namespace) -> int:
    tokens = _store(args).list_tokens()
    if getattr(args, "json", False):
        print(json.dumps([{k: v for k, v in t.to_dict().items() if k != "token_hash"} for t in tokens], indent=2))
        return 0
    if not tokens:
        print("No tokens.")
    for t in tokens:
        print(f"{t.client_id:<20} {' '.join(t.scopes):<50} {t.description}")
    return 0
