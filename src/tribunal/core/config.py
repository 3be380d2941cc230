# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Core configuration - centralized config for the tribunal package.

All environment-based configuration should flow through this module.

Usage:
    from tribunal.core.config import get_config
    config = get_config()

    hours = config.dispute_period_hours
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoreSettings(BaseSettings):
    """Core configuration settings for Tribunal.

    Settings can be configured via environment variables with the
    TRIBUNAL_ prefix or a local .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # RESOLUTION WORKFLOW
    # ==========================================================================

    dispute_period_hours: float = Field(
        default=72,
        gt=0,
        description="Length of the dispute window after a resolution is proposed",
        validation_alias="TRIBUNAL_DISPUTE_PERIOD_HOURS",
    )
    min_reason_length: int = Field(
        default=20,
        ge=1,
        description="Minimum dispute reason length (characters)",
        validation_alias="TRIBUNAL_MIN_REASON_LENGTH",
    )
    min_admin_note_length: int = Field(
        default=10,
        ge=1,
        description="Minimum admin note length for arbitration decisions",
        validation_alias="TRIBUNAL_MIN_ADMIN_NOTE_LENGTH",
    )
    treasury_account: str = Field(
        default="treasury",
        description="Account receiving slashed bond amounts",
        validation_alias="TRIBUNAL_TREASURY_ACCOUNT",
    )
    bond_policy_file: str | None = Field(
        default=None,
        description="Optional JSON file with a versioned bond policy",
        validation_alias="TRIBUNAL_BOND_POLICY_FILE",
    )

    # ==========================================================================
    # AUDIT SETTINGS
    # ==========================================================================

    audit_log_file: str | None = Field(
        default=None,
        description="JSON-lines audit log path (in-memory audit log if unset)",
        validation_alias="TRIBUNAL_AUDIT_LOG_FILE",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="TRIBUNAL_LOG_LEVEL",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
        validation_alias="TRIBUNAL_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="TRIBUNAL_LOG_FILE",
    )

    @property
    def dispute_period_seconds(self) -> float:
        return self.dispute_period_hours * 3600


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: CoreSettings | None = None


def get_config() -> CoreSettings:
    """Get the global configuration instance.

    Returns:
        The singleton CoreSettings instance.
    """
    global _config
    if _config is None:
        _config = CoreSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
