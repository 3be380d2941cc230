# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Serve command: run the HTTP API with uvicorn."""

from __future__ import annotations

import argparse


def register(subparsers: argparse._SubParsersAction) -> None:
    serve_parser = subparsers.add_parser("serve", help="Run the Tribunal HTTP API")
    serve_parser.add_argument("--host", help="Host to bind to (default from TRIBUNAL_HOST)")
    serve_parser.add_argument("--port", type=int, help="Port to bind to (default from TRIBUNAL_PORT)")
    serve_parser.set_defaults(func=cmd_serve)


def cmd_serve(args: argparse.Namespace) -> int:
    from tribunal.server.app import run
    from tribunal.server.config import get_settings

    settings = get_settings()
    if args.host:
        settings.host = args.host
    if args.port:
        settings.port = args.port

    run()
    return 0
