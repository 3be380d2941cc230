# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Tribunal - Market resolution and dispute arbitration engine.

A prediction market moves from open trading to a proposed outcome, through
a bonded dispute window, to a final and irreversible settlement.

Architecture:
  MarketLifecycle (state machine, per-market locks)
    -> DisputeRegistry (one active dispute per market and submitter)
    -> StakeLedger (bonds: refund, slash, reputation events)
    -> ArbitrationService (admin decisions as one logical transaction)

Every transition and decision is written to a hash-chained audit log.

CLI entry point: ``tribunal``
"""

__version__ = "0.1.0"

from . import (
    core as core,
)
