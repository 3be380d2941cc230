"""Tests for tribunal.cli.config."""

from __future__ import annotations

import pytest

from tribunal.cli.config import CLIConfig, get_cli_config, reset_cli_config


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "cli.toml"
    path.write_text('server_url = "http://file:1"\ntoken = "tt_file"\noutput = "json"\ntimeout = 5\n')
    return path


class TestCLIConfig:
    def test_defaults(self, clean_env, tmp_path):
        config = CLIConfig.load(config_path=tmp_path / "missing.toml")

        assert config.server_url == "http://127.0.0.1:8430"
        assert config.token == ""
        assert config.output == "text"
        assert config.timeout == 30.0

    def test_file(self, clean_env, config_file):
        config = CLIConfig.load(config_path=config_file)

        assert config.server_url == "http://file:1"
        assert config.token == "tt_file"
        assert config.output == "json"
        assert config.timeout == 5.0

    def test_env_beats_file(self, clean_env, monkeypatch, config_file):
        monkeypatch.setenv("TRIBUNAL_SERVER_URL", "http://env:2")
        monkeypatch.setenv("TRIBUNAL_OUTPUT", "text")

        config = CLIConfig.load(config_path=config_file)

        assert config.server_url == "http://env:2"
        assert config.output == "text"
        assert config.token == "tt_file"

    def test_flags_beat_env(self, clean_env, monkeypatch, config_file):
        monkeypatch.setenv("TRIBUNAL_TOKEN", "tt_env")
        config = CLIConfig.load(config_path=config_file, token="tt_flag", server_url="http://flag:3")

        assert config.token == "tt_flag"
        assert config.server_url == "http://flag:3"

    def test_unknown_output_ignored(self, clean_env, monkeypatch, tmp_path):
        monkeypatch.setenv("TRIBUNAL_OUTPUT", "yaml")
        assert CLIConfig.load(config_path=tmp_path / "missing.toml").output == "text"


class TestSingleton:
    def test_reset(self, cli_config):
        assert get_cli_config() is cli_config
        reset_cli_config()
        assert get_cli_config() is not cli_config
