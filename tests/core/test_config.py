"""Tests for tribunal.core.config."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tribunal.core.config import CoreSettings, clear_config_cache, get_config


class TestCoreSettingsDefaults:
    def test_defaults(self, clean_env):
        settings = CoreSettings(_env_file=None)

        assert settings.dispute_period_hours == 72
        assert settings.min_reason_length == 20
        assert settings.min_admin_note_length == 10
        assert settings.treasury_account == "treasury"
        assert settings.bond_policy_file is None
        assert settings.audit_log_file is None
        assert settings.log_level == "INFO"

    def test_dispute_period_seconds(self, clean_env):
        assert CoreSettings(_env_file=None).dispute_period_seconds == 72 * 3600


class TestCoreSettingsEnv:
    def test_env_overrides(self, clean_env, monkeypatch):
        monkeypatch.setenv("TRIBUNAL_DISPUTE_PERIOD_HOURS", "48")
        monkeypatch.setenv("TRIBUNAL_TREASURY_ACCOUNT", "dao-treasury")
        monkeypatch.setenv("TRIBUNAL_MIN_REASON_LENGTH", "30")

        settings = CoreSettings(_env_file=None)

        assert settings.dispute_period_hours == 48
        assert settings.treasury_account == "dao-treasury"
        assert settings.min_reason_length == 30

    def test_rejects_non_positive_period(self, clean_env, monkeypatch):
        monkeypatch.setenv("TRIBUNAL_DISPUTE_PERIOD_HOURS", "0")
        with pytest.raises(ValidationError):
            CoreSettings(_env_file=None)


class TestGetConfig:
    def test_singleton(self, clean_env):
        assert get_config() is get_config()

    def test_clear_cache(self, clean_env, monkeypatch):
        first = get_config()
        monkeypatch.setenv("TRIBUNAL_LOG_LEVEL", "DEBUG")
        clear_config_cache()

        second = get_config()

        assert second is not first
        assert second.log_level == "DEBUG"
