# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Tribunal Core - resolution state machine, disputes, bonds and stakes."""

from .arbitration import ArbitrationResult, ArbitrationService
from .audit import AuditEvent, AuditTrail, FileAuditBackend, InMemoryAuditBackend, verify_chain
from .bonds import DEFAULT_BOND_POLICY, BondCalculation, BondPolicy, calculate_bond, compute_bond
from .collaborators import (
    AccessControl,
    BalanceLedger,
    InMemoryBalanceLedger,
    InMemoryReputationStore,
    ReputationStore,
    StaticAccessControl,
)
from .engine import ResolutionEngine
from .enums import (
    Decision,
    DisputeStatus,
    DisputeType,
    MarketStatus,
    ResolutionConfidence,
    ResolutionOutcome,
    ResolutionSource,
    StakeDisposition,
)
from .exceptions import (
    AlreadyDecided,
    AlreadyResolved,
    AlreadySettled,
    AuthenticationError,
    AuthorizationError,
    CollaboratorUnavailable,
    ConfigException,
    DuplicateActiveDispute,
    DuplicateCommit,
    InsufficientFunds,
    InvalidTransition,
    NotFoundError,
    ResourceError,
    SettlementInFlight,
    StateConflict,
    TribunalException,
    ValidationException,
    WindowClosed,
)
from .lifecycle import MarketLifecycle
from .logging import configure_logging, correlation_context, log_context
from .models import Dispute, DisputeForm, Market, ReputationEvent, ResolutionRecord, StakeEntry
from .registry import DisputeRegistry, DisputeStatistics
from .stake_ledger import StakeLedger

__all__ = [
    # Workflow
    "ResolutionEngine",
    "MarketLifecycle",
    "DisputeRegistry",
    "DisputeStatistics",
    "StakeLedger",
    "ArbitrationService",
    "ArbitrationResult",
    # Bonds
    "BondPolicy",
    "BondCalculation",
    "DEFAULT_BOND_POLICY",
    "calculate_bond",
    "compute_bond",
    # Models
    "Market",
    "ResolutionRecord",
    "Dispute",
    "DisputeForm",
    "StakeEntry",
    "ReputationEvent",
    # Enums
    "MarketStatus",
    "ResolutionOutcome",
    "ResolutionSource",
    "ResolutionConfidence",
    "DisputeType",
    "DisputeStatus",
    "Decision",
    "StakeDisposition",
    # Collaborators
    "BalanceLedger",
    "ReputationStore",
    "AccessControl",
    "InMemoryBalanceLedger",
    "InMemoryReputationStore",
    "StaticAccessControl",
    # Audit
    "AuditEvent",
    "AuditTrail",
    "InMemoryAuditBackend",
    "FileAuditBackend",
    "verify_chain",
    # Exceptions
    "TribunalException",
    "ValidationException",
    "ConfigException",
    "NotFoundError",
    "AuthenticationError",
    "AuthorizationError",
    "StateConflict",
    "InvalidTransition",
    "WindowClosed",
    "DuplicateActiveDispute",
    "AlreadyDecided",
    "AlreadyResolved",
    "AlreadySettled",
    "DuplicateCommit",
    "SettlementInFlight",
    "ResourceError",
    "InsufficientFunds",
    "CollaboratorUnavailable",
    # Logging
    "configure_logging",
    "correlation_context",
    "log_context",
]
