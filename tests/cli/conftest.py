"""CLI test fixtures."""

from __future__ import annotations

import pytest

from tribunal.cli.config import CLIConfig, reset_cli_config, set_cli_config


@pytest.fixture(autouse=True)
def cli_config():
    """Text output against a fixed server, independent of ~/.tribunal/cli.toml."""
    config = CLIConfig(server_url="http://tribunal.test:8430", token="tt_test", output="text")
    set_cli_config(config)
    yield config
    reset_cli_config()
