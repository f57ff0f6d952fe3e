"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- static defaults checked into the repo
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

``load_config`` reads the YAML file first, then deep-merges the values
derived from :class:`Settings` on top::

    base      = {"orchestrator": {"max_iterations": 10}}
    overrides = {"orchestrator": {"model": "gpt-4o"}}
    result    = {"orchestrator": {"max_iterations": 10, "model": "gpt-4o"}}
"""

from pathlib import Path

import yaml

from festifind.config.settings import Settings
from festifind.utils.errors import ConfigurationError


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.
    A missing file yields the environment values alone.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge; read from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the file is not valid YAML or not a mapping.
    """
    config_path = Path(path)
    if config_path.exists():
        try:
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(message=f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(message=f"{config_path} must contain a mapping at the top level")
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides: dict = {
        "app": {
            "env": settings.app_env,
        },
        "llm": {
            "provider": settings.llm_provider,
            "available_providers": settings.get_available_llm_providers(),
            "openai_base_url": settings.openai_base_url,
        },
        "tools": {
            "apify_enabled": bool(settings.apify_api_token),
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
