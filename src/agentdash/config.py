"""
User configuration for agentdash.

Config is read from ~/.agentdash/config.yaml. Every getter tolerates a
missing, unreadable or malformed file and falls back to its default.
"""

import os
from pathlib import Path
from typing import Optional

import yaml

from .models import DetailMode

CONFIG_PATH = Path.home() / ".agentdash" / "config.yaml"

API_BASE_ENV = "AGENTDASH_API_BASE"
DEFAULT_API_BASE = "http://localhost:3000"
DEFAULT_TIMEOUT = 10.0
DEFAULT_DETAIL_MODE = DetailMode.USER_ONLY
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_config() -> dict:
    """Load configuration from config file.

    Returns an empty dict if the file is absent, invalid, or not a mapping.
    """
    if not CONFIG_PATH.exists():
        return {}

    try:
        with open(CONFIG_PATH) as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, IOError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: dict) -> None:
    """Write configuration to the config file, creating parent dirs."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_PATH, "w") as f:
        yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)


def get_api_base() -> str:
    """Base URL of the backend API.

    The AGENTDASH_API_BASE environment variable wins over the config file.
    """
    env_value = os.environ.get(API_BASE_ENV, "").strip()
    if env_value:
        return env_value
    value = load_config().get("api_base")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_API_BASE


def get_api_key() -> Optional[str]:
    """API key sent as X-API-Key, or None when unset or empty."""
    value = load_config().get("api_key")
    if isinstance(value, str) and value:
        return value
    return None


def get_timeout() -> float:
    """HTTP socket timeout in seconds. Non-positive or non-numeric values use the default."""
    value = load_config().get("timeout")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return DEFAULT_TIMEOUT
    return float(value)


def get_detail_mode() -> DetailMode:
    """Preferred transcript mode for the detail view."""
    value = load_config().get("detail_mode")
    try:
        return DetailMode(value)
    except ValueError:
        return DEFAULT_DETAIL_MODE


def set_detail_mode(mode) -> DetailMode:
    """Persist the preferred transcript mode.

    Raises ValueError for an unknown mode. Other config keys are kept.
    """
    mode = DetailMode(mode)
    config = load_config()
    config["detail_mode"] = mode.value
    save_config(config)
    return mode


def get_log_level() -> str:
    """Console log level name; unknown names fall back to WARNING."""
    value = load_config().get("log_level")
    if isinstance(value, str) and value.strip().upper() in LOG_LEVELS:
        return value.strip().upper()
    return DEFAULT_LOG_LEVEL


def get_log_file() -> Optional[Path]:
    """Optional file that receives a copy of every log record."""
    value = load_config().get("log_file")
    if isinstance(value, str) and value.strip():
        return Path(value.strip()).expanduser()
    return None
