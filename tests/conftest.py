"""Pytest configuration and shared fixtures for all tests."""

import pytest

# Environment variables read by protosdk.cli.main.build_config
CONFIG_ENV_VARS = (
    "REPO_PATH",
    "OUTPUT_PATH",
    "SDK",
    "GENERATE_DOCS",
    "SORT_PROTO_FILES",
    "COMMAND_TIMEOUT",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "PROTOSDK_CONFIG",
)


@pytest.fixture(autouse=True)
def isolate_config_env(monkeypatch):
    """Keep the developer's or CI's environment out of configuration tests.

    Tests that need a variable set it explicitly (monkeypatch, patch.dict or
    CliRunner's env argument).
    """
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
