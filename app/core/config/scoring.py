from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

DEFAULT_SCORING_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "scoring.yaml"

_SCORING_CONFIG_CACHE: dict[str, Any] | None = None


def scoring_config_path() -> Path:
    override = (os.getenv("SCORING_CONFIG_PATH") or "").strip()
    return Path(override) if override else DEFAULT_SCORING_CONFIG_PATH


def load_scoring_config(path: Path) -> dict[str, Any]:
    """Read and validate one scoring file. Raises RuntimeError on any problem."""
    if not path.exists():
        raise RuntimeError(f"Scoring config not found at '{path}'.")

    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuntimeError(f"Failed to read scoring config '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in scoring config '{path}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid scoring config '{path}': expected a top-level mapping.")
    if not isinstance(parsed.get("resume_validation", {}), dict):
        raise RuntimeError(f"Invalid scoring config '{path}': 'resume_validation' must be a mapping.")
    return parsed


def get_scoring_config() -> dict[str, Any]:
    global _SCORING_CONFIG_CACHE

    if _SCORING_CONFIG_CACHE is None:
        _SCORING_CONFIG_CACHE = load_scoring_config(scoring_config_path())
    return _SCORING_CONFIG_CACHE


def clear_scoring_config_cache() -> None:
    global _SCORING_CONFIG_CACHE
    _SCORING_CONFIG_CACHE = None


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Nested lookup by dot path, e.g. 'resume_validation.email.points'."""
    if not path:
        return default

    current: Any = get_scoring_config()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current
