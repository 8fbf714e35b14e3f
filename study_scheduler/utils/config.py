"""Configuration management."""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML or JSON file."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            data = yaml.safe_load(f)
        elif path.suffix.lower() == '.json':
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")
    return data


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        'profile_defaults': {
            'avg_pomodoro_minutes': 25,
            'target_daily_minutes': 240,
            'learning_velocity': 1.0,
        },
        'estimation': {
            'smoothing_factor': 0.2,
            'min_velocity': 0.25,
            'max_velocity': 4.0,
        },
        'allocation': {
            'policy': 'urgency',
            'urgency_horizon_hours': 24,
            'carry_over_overdue': True,
        },
        'concurrency': {
            'max_profile_retries': 3,
        },
        'store': {
            'path': 'data/study_store.yaml',
        },
    }


def merge_config(base: Mapping[str, Any], overrides: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Overlay loaded settings on a base config, section by section."""
    merged = copy.deepcopy(dict(base))
    for key, value in (overrides or {}).items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def resolve_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Load a config file over the defaults, or the defaults alone."""
    if not config_path:
        return get_default_config()
    return merge_config(get_default_config(), load_config(config_path))
