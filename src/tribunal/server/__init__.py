# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Tribunal HTTP API.

Usage:
    # Start the server
    tribunal serve

    # Manage tokens
    tribunal token create --client-id alice
    tribunal token create --client-id ops --admin
"""

from .auth import TokenStore, get_token_store, verify_token
from .config import ServerSettings, get_settings

__all__ = [
    "ServerSettings",
    "get_settings",
    "TokenStore",
    "verify_token",
    "get_token_store",
]
