from __future__ import annotations

import math
from pathlib import Path
from typing import Any

import yaml

_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"
_CONFIG_CACHE: dict[str, dict[str, Any]] = {}


def load_config_file(name: str) -> dict[str, Any]:
    """Load a repo-level config/<name>.yaml file and cache it."""
    cached = _CONFIG_CACHE.get(name)
    if cached is not None:
        return cached

    path = _CONFIG_DIR / f"{name}.yaml"
    if not path.exists():
        raise RuntimeError(f"Config not found at '{path}'. Expected file: config/{name}.yaml")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"Failed to read config '{path}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in config '{path}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid config '{path}': expected a top-level mapping.")

    _CONFIG_CACHE[name] = parsed
    return parsed


def get_scoring_config() -> dict[str, Any]:
    return load_config_file("scoring")


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Get nested config value using dot path notation, e.g. 'resume.weights.experience'."""
    if not path:
        return default

    current: Any = get_scoring_config()
    for key in path.split("."):
        if not isinstance(current, dict):
            return default
        if key not in current:
            return default
        current = current[key]
    return current


def clear_config_cache() -> None:
    _CONFIG_CACHE.clear()


def round_half_up(value: float) -> int:
    """Integer rounding with .5 going up, so 52.5 -> 53 and -4.5 -> -4."""
    return int(math.floor(value + 0.5))
