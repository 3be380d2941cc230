# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Server configuration using pydantic-settings."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from tribunal.core.config import CoreSettings

logger = logging.getLogger(__name__)


def get_package_version() -> str:
    """Installed package version, or a dev fallback when running from source."""
    try:
        return version("tribunal")
    except PackageNotFoundError:
        return "0.0.0-dev"


class ServerSettings(CoreSettings):
    """Configuration for the Tribunal HTTP API.

    Inherits core settings (dispute period, bond policy, audit log, logging)
    and adds HTTP settings. Environment variables use the TRIBUNAL_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRIBUNAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1", description="Host to bind to")
    port: int = Field(default=8430, description="Port to bind to")

    token_file: Path = Field(
        default=Path.home() / ".tribunal" / "tokens.json",
        description="Path to token storage file",
    )

    # CORS settings
    allowed_origins: list[str] = Field(
        default=[],
        description="Allowed CORS origins. Empty = same-origin only. Set to ['*'] for development.",
    )

    server_name: str = Field(default="tribunal", description="Server name reported by /health")
    server_version: str = Field(default_factory=get_package_version, description="Server version")

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


# Global settings instance - lazy loaded
_settings: ServerSettings | None = None


def get_settings() -> ServerSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = ServerSettings()
    return _settings


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    global _settings
    _settings = None
