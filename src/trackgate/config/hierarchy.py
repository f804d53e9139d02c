"""Configuration hierarchy — merges sources in priority order.

Precedence (later overrides earlier):
  1. Package defaults
  2. Global config   (~/.trackgate/config.yaml)
  3. Project config   (./trackgate.yaml)
  4. Environment variables (REDIS_URL, ENABLE_*, TRACKGATE_*)
  5. Runtime arguments
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from trackgate.config.defaults import get_defaults

logger = logging.getLogger(__name__)

_GLOBAL_CONFIG_PATH = Path.home() / ".trackgate" / "config.yaml"
_PROJECT_CONFIG_NAME = "trackgate.yaml"

# Map of environment variables to config keys
_ENV_MAP: dict[str, str] = {
    "REDIS_URL": "redis_url",
    "ENABLE_REDIS_CACHE": "enable_redis_cache",
    "TRACKGATE_MEMORY_CACHE_SIZE": "memory_cache_size",
    "TRACKGATE_MEMORY_CACHE_TTL": "memory_cache_ttl",
    "TRACKGATE_SONG_CACHE_TTL": "song_cache_ttl",
    "TRACKGATE_SOURCE_CACHE_TTL": "source_cache_ttl",
    "TRACKGATE_REQUEST_TIMEOUT": "request_timeout_ms",
    "TRACKGATE_MUSIC_API_URL": "music_api_url",
    "TRACKGATE_USER_AGENT": "user_agent",
    "TRACKGATE_DEFAULT_SOURCES": "default_sources",
    "TRACKGATE_STATS_BACKEND": "stats_backend",
    "TRACKGATE_STATS_PATH": "stats_path",
    "TRACKGATE_LOG_LEVEL": "log_level",
}

# Per-source toggles: ENABLE_KUGOU=false disables "kugou"
_SOURCE_TOGGLE_PREFIX = "ENABLE_"
_NON_SOURCE_TOGGLES = {"ENABLE_REDIS_CACHE"}

# Keys that should be parsed as specific types
_TYPE_MAP: dict[str, type] = {
    "memory_cache_size": int,
    "memory_cache_ttl": int,
    "song_cache_ttl": int,
    "source_cache_ttl": int,
    "request_timeout_ms": int,
    "cleanup_interval": float,
    "stats_log_interval": float,
    "stats_flush_interval": float,
}

_LIST_KEYS = {"default_sources"}

# Boolean env var values
_TRUTHY = {"1", "true", "yes", "on"}


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Load and merge configuration from all sources.

    Returns a merged dict with the final resolved values.
    """
    config = get_defaults()

    # Layer 2: Global config
    global_cfg = _load_yaml_config(_GLOBAL_CONFIG_PATH)
    if global_cfg:
        config.update(global_cfg)

    # Layer 3: Project config (search from cwd upward)
    project_path = _find_project_config()
    if project_path:
        project_cfg = _load_yaml_config(project_path)
        if project_cfg:
            config.update(project_cfg)

    # Layer 4: Environment variables
    env_cfg = _load_env_vars()
    toggles = env_cfg.pop("enabled_sources", None)
    config.update(env_cfg)
    if toggles:
        merged = dict(config.get("enabled_sources") or {})
        merged.update(toggles)
        config["enabled_sources"] = merged

    # Layer 5: Runtime arguments (highest priority)
    # Filter out None values — only override when explicitly set
    for key, value in runtime_overrides.items():
        if value is not None:
            config[key] = value

    return config


def _load_yaml_config(path: Path) -> dict[str, Any] | None:
    """Load a YAML config file if it exists."""
    if not path.exists() or not path.is_file():
        return None
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if isinstance(data, dict):
            return data
        logger.warning("Config file %s is not a mapping, ignoring", path)
    except Exception as e:
        logger.warning("Failed to load config %s: %s", path, e)
    return None


def _find_project_config() -> Path | None:
    """Search for trackgate.yaml from cwd upward."""
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / _PROJECT_CONFIG_NAME
        if candidate.exists():
            return candidate
    return None


def _load_env_vars() -> dict[str, Any]:
    """Read REDIS_URL, TRACKGATE_* and ENABLE_<SOURCE> environment variables."""
    result: dict[str, Any] = {}
    for env_key, config_key in _ENV_MAP.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        result[config_key] = _coerce_env_value(config_key, value)

    toggles: dict[str, bool] = {}
    for env_key, value in os.environ.items():
        if not env_key.startswith(_SOURCE_TOGGLE_PREFIX) or env_key in _NON_SOURCE_TOGGLES:
            continue
        source = env_key[len(_SOURCE_TOGGLE_PREFIX):].lower()
        if source:
            toggles[source] = value.strip().lower() in _TRUTHY
    if toggles:
        result["enabled_sources"] = toggles
    return result


def _coerce_env_value(key: str, value: str) -> Any:
    """Coerce an environment variable string to the appropriate type."""
    if key.startswith("enable_"):
        return value.strip().lower() in _TRUTHY

    if key in _LIST_KEYS:
        return [item.strip() for item in value.split(",") if item.strip()]

    target_type = _TYPE_MAP.get(key)
    if target_type:
        try:
            return target_type(value)
        except (ValueError, TypeError):
            logger.warning(
                "Cannot convert env var for '%s' to %s: %s", key, target_type.__name__, value
            )
            return value

    return value
