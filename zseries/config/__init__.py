"""
zseries Configuration Module

Provides centralized configuration loading for the zseries system.
"""

import os
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

from zseries.domain.errors import ConfigurationError


_config_cache: Optional[Dict[str, Any]] = None
CONFIG_DIR = Path(__file__).parent
DEFAULT_CONFIG = CONFIG_DIR / "zseries_config.yaml"


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"cannot read config {path}: {e}") from e
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"config {path} must be a mapping, got {type(loaded).__name__}")
    return loaded


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Override nested sections key by key; non-mapping values replace outright."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_zseries_config() -> Dict[str, Any]:
    """
    Load zseries configuration (cached).

    The packaged zseries_config.yaml holds every default. A file named by
    ZSERIES_CONFIG only needs the settings it changes.

    Returns:
        Dict containing all zseries configuration settings.

    Raises:
        ConfigurationError: A config file is missing, unparseable or not a mapping
    """
    global _config_cache
    if _config_cache is not None:
        return _config_cache

    config = _load_yaml(DEFAULT_CONFIG)
    override = os.getenv("ZSERIES_CONFIG")
    if override:
        config = merge_config(config, _load_yaml(Path(override)))

    _config_cache = config
    return _config_cache


def clear_config_cache() -> None:
    """Clear the config cache (useful for testing)."""
    global _config_cache
    _config_cache = None
