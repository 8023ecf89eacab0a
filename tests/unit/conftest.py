"""
Unit test configuration for agentdash.

Every unit test gets its own config file location and a clean
AGENTDASH_API_BASE so the user's ~/.agentdash never leaks in.
"""

import pytest

from agentdash import config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    config_file = tmp_path / "agentdash" / "config.yaml"
    monkeypatch.setattr(config, "CONFIG_PATH", config_file)
    monkeypatch.delenv(config.API_BASE_ENV, raising=False)
    return config_file
