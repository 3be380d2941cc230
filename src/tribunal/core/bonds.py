# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Dispute bond sizing.

A disputer must lock a bond to challenge a resolution. The bond depends on
the dispute type and on the submitter's reputation:

Base bonds (BCDB):
- evidence: 100
- interpretation: 250
- api_error: 500

Reputation ladder:
- score >= 100: x0.7
- score >= 50: x0.85
- score < 10: x1.5
- otherwise: x1.0

required_bond = floor(base * multiplier), never below 1.

The numbers live in a versioned BondPolicy so bond economics can change
without touching the state machine. Arithmetic is done in Decimal so
floor() never sees a binary rounding artifact.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .enums import DisputeType
from .exceptions import ConfigException

logger = logging.getLogger(__name__)


class ReputationTier(BaseModel):
    """Scores at or above ``min_score`` use ``multiplier``."""

    model_config = ConfigDict(frozen=True)

    min_score: int
    multiplier: Decimal = Field(gt=0)


class BondPolicy(BaseModel):
    """Versioned bond economics."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(default=1, ge=1)
    currency: str = "BCDB"
    base_bonds: dict[DisputeType, int] = Field(
        default_factory=lambda: {
            DisputeType.EVIDENCE: 100,
            DisputeType.INTERPRETATION: 250,
            DisputeType.API_ERROR: 500,
        }
    )
    tiers: list[ReputationTier] = Field(
        default_factory=lambda: [
            ReputationTier(min_score=100, multiplier=Decimal("0.7")),
            ReputationTier(min_score=50, multiplier=Decimal("0.85")),
            ReputationTier(min_score=10, multiplier=Decimal("1.0")),
        ]
    )
    # Applies below the lowest tier
    floor_multiplier: Decimal = Field(default=Decimal("1.5"), gt=0)
    slash_fraction: Decimal = Field(default=Decimal("0.5"), ge=0, le=1)
    accepted_reputation_delta: int = 10
    rejected_reputation_delta: int = -5

    @field_validator("tiers")
    @classmethod
    def _sort_tiers(cls, tiers: list[ReputationTier]) -> list[ReputationTier]:
        ordered = sorted(tiers, key=lambda t: t.min_score, reverse=True)
        scores = [t.min_score for t in ordered]
        if len(set(scores)) != len(scores):
            raise ValueError("tier min_score values must be unique")
        return ordered

    @model_validator(mode="after")
    def _check_economics(self) -> BondPolicy:
        missing = [t.value for t in DisputeType if t not in self.base_bonds]
        if missing:
            raise ValueError(f"base_bonds missing dispute types: {', '.join(missing)}")
        for dispute_type, amount in self.base_bonds.items():
            if amount <= 0:
                raise ValueError(f"base bond for {dispute_type.value} must be positive")

        # Higher reputation may never cost more: multipliers must not
        # decrease as the score threshold goes down.
        multipliers = [t.multiplier for t in self.tiers] + [self.floor_multiplier]
        for higher, lower in zip(multipliers, multipliers[1:]):
            if lower < higher:
                raise ValueError("tier multipliers must be non-increasing in reputation score")
        return self

    def multiplier_for(self, reputation_score: int) -> tuple[str, Decimal]:
        """Return (tier label, multiplier) for a reputation score."""
        for tier in self.tiers:
            if reputation_score >= tier.min_score:
                return f">={tier.min_score}", tier.multiplier
        lowest = self.tiers[-1].min_score if self.tiers else 0
        return f"<{lowest}", self.floor_multiplier

    def with_base_bonds(self, **amounts: int) -> BondPolicy:
        """Return a new policy version with some base bonds replaced."""
        bases = {t.value: v for t, v in self.base_bonds.items()}
        for name, amount in amounts.items():
            bases[DisputeType(name).value] = amount
        data = self.model_dump(mode="json")
        data["base_bonds"] = bases
        data["version"] = self.version + 1
        return BondPolicy.model_validate(data)


DEFAULT_BOND_POLICY = BondPolicy()


@dataclass
class BondCalculation:
    """Breakdown of a required bond."""

    dispute_type: DisputeType
    reputation_score: int
    base_amount: int
    reputation_multiplier: Decimal
    tier: str
    final_amount: int
    policy_version: int
    currency: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "dispute_type": self.dispute_type.value,
            "reputation_score": self.reputation_score,
            "base_amount": self.base_amount,
            "reputation_multiplier": str(self.reputation_multiplier),
            "tier": self.tier,
            "final_amount": self.final_amount,
            "policy_version": self.policy_version,
            "currency": self.currency,
        }


def calculate_bond(
    dispute_type: DisputeType,
    reputation_score: int,
    policy: BondPolicy | None = None,
) -> BondCalculation:
    """Calculate the bond required to file a dispute.

    Args:
        dispute_type: Kind of dispute being filed.
        reputation_score: Submitter's current reputation score.
        policy: Bond policy to apply (defaults to DEFAULT_BOND_POLICY).

    Returns:
        BondCalculation with breakdown.
    """
    policy = policy or DEFAULT_BOND_POLICY
    base = policy.base_bonds[dispute_type]
    tier, multiplier = policy.multiplier_for(reputation_score)
    amount = int((Decimal(base) * multiplier).to_integral_value(rounding=ROUND_FLOOR))

    return BondCalculation(
        dispute_type=dispute_type,
        reputation_score=reputation_score,
        base_amount=base,
        reputation_multiplier=multiplier,
        tier=tier,
        final_amount=max(1, amount),
        policy_version=policy.version,
        currency=policy.currency,
    )


def compute_bond(
    dispute_type: DisputeType,
    reputation_score: int,
    policy: BondPolicy | None = None,
) -> int:
    """Required bond amount for a dispute type and reputation score."""
    return calculate_bond(dispute_type, reputation_score, policy).final_amount


def load_bond_policy(path: str | Path) -> BondPolicy:
    """Load a bond policy from a JSON file.

    Raises:
        ConfigException: If the file is missing or the policy is invalid.
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
        policy = BondPolicy.model_validate(data)
    except OSError as e:
        raise ConfigException(f"Cannot read bond policy {path}: {e}") from e
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigException(f"Invalid bond policy {path}: {e}") from e

    logger.info("Loaded bond policy v%d from %s", policy.version, path)
    return policy
