import json
import os
from pathlib import Path
from functools import lru_cache
from typing import Dict, Any

from planning_shared.helpers import parse_int_safe

# Environment variable -> nested config path
ENV_OVERRIDES = {
    "PLANNING_STRICT_YEAR": ("strict_year",),
    "PLANNING_SAVE_WORKERS": ("save", "max_workers"),
    "PLANNING_DELAY_GRACE_MONTHS": ("status", "delay_grace_months"),
}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two dictionaries.
    Values in 'override' replace those in 'base'.
    """
    result = base.copy()
    for key, value in override.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def env_overrides() -> Dict[str, Any]:
    """Integer overrides read from the environment, shaped like the config file."""
    overrides: Dict[str, Any] = {}
    for env_name, path in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        value = parse_int_safe(raw, default=None)
        if value is None:
            raise RuntimeError(f"{env_name} must be an integer, got {raw!r}")
        node = overrides
        for key in path[:-1]:
            node = node.setdefault(key, {})
        node[path[-1]] = value
    return overrides


@lru_cache(maxsize=1)
def load_sync_config() -> Dict[str, Any]:
    """
    Load the sync configuration from JSON and apply environment overrides.

    Cached for the process lifetime; call ``load_sync_config.cache_clear()``
    after changing the environment.
    """
    try:
        config_path = Path(__file__).parent / "sync_config.json"
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except Exception as e:
        raise RuntimeError(f"Failed to load sync_config.json: {e}")
    return deep_merge(config, env_overrides())


def get_strict_year() -> int:
    """Year whose Planning and Monthly sheets require every result field."""
    return load_sync_config().get("strict_year", 2025)


def get_save_workers() -> int:
    """Thread pool size for batch saves."""
    return max(1, load_sync_config().get("save", {}).get("max_workers", 8))


def get_delay_grace_months() -> int:
    """Months added to a reference date before a row counts as delayed."""
    return max(0, load_sync_config().get("status", {}).get("delay_grace_months", 0))


def get_display_setting(key: str, default: Any = None) -> Any:
    return load_sync_config().get("display", {}).get(key, default)
