"""Config Loader - Loads client configuration from YAML.

Handles loading YAML config files with environment variable substitution
so credentials can stay out of the file:

    org_name: myorg
    endpoint: https://api.enterprise.apigee.com/v1
    user: ${EDGE_USER}
    password: ${EDGE_PASSWORD}
    http_options:
      timeout: 4
      connect_timeout: 4
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

from edge_mgmt.models import ClientConfig


class ConfigError(Exception):
    """Raised when configuration loading fails."""


# Keys that only make sense at runtime and cannot come from a YAML file.
RUNTIME_ONLY_KEYS = frozenset({"debug_callbacks", "event_hooks", "logger"})

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def load_client_config(config_path: Path, **overrides: Any) -> ClientConfig:
    """Load client configuration from YAML with ${ENV_VAR} substitution.

    Keyword overrides (including debug_callbacks, event_hooks and logger)
    replace values read from the file.
    """
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError("Config file must be a YAML mapping")

    runtime_keys = RUNTIME_ONLY_KEYS.intersection(raw_config)
    if runtime_keys:
        raise ConfigError(
            f"Config file cannot set runtime-only keys: {', '.join(sorted(runtime_keys))}"
        )

    # Substitute environment variables
    raw_config = _substitute_env_vars(raw_config)
    raw_config.update(overrides)

    try:
        return ClientConfig.model_validate(raw_config)
    except Exception as e:
        raise ConfigError(f"Invalid config structure: {e}") from e


def _substitute_env_vars(data: Any) -> Any:
    """Recursively substitute ${ENV_VAR} patterns in strings within data."""
    if isinstance(data, str):
        return _substitute_string(data)
    elif isinstance(data, dict):
        return {k: _substitute_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars(item) for item in data]
    return data


def _substitute_string(s: str) -> str:
    """Substitute ${ENV_VAR} patterns. Raises ConfigError if env var is not set."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable '{var_name}' is not set")
        return value

    return _ENV_VAR_PATTERN.sub(replacer, s)
