# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""REST endpoint modules, mounted under /api/v1 in app.py."""
