# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""CLI command modules for Tribunal.

Each module exposes a ``register(subparsers)`` function that wires up
its argparse sub-commands and sets ``parser.set_defaults(func=handler)``.
"""

from . import bond, disputes, markets, serve, sweep, tokens

# All command modules with register() functions, in registration order.
COMMAND_MODULES = [
    markets,
    disputes,
    bond,
    sweep,
    serve,
    tokens,
]

__all__ = ["COMMAND_MODULES"]
