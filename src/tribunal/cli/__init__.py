# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Tribunal CLI."""

from .main import app, main

__all__ = ["main", "app"]
