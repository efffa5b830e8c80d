"""
Configuration loader for the DynamoDB job store.
Loads ~/.dynamo-jobs/config.yaml (or $DYNAMO_JOBS_CONFIG) over built-in defaults.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from dynamo_jobs.configs.schema.validator import validate_store_config

CONFIG_DIR = Path.home() / ".dynamo-jobs"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
CONFIG_ENV_VAR = "DYNAMO_JOBS_CONFIG"

DEFAULT_SETTINGS = {
    "table_name": "jobs",
    "page_size": 100,
    "region": "ap-southeast-3",
    "profile": None,
    "endpoint_url": None,
    "max_attempts": 3,
    "connect_timeout": 5,
    "read_timeout": 30,
    "log_level": "WARNING",
}


@dataclass
class StoreConfig:
    table_name: str
    page_size: int
    region: Optional[str]
    profile: Optional[str]
    endpoint_url: Optional[str]
    max_attempts: int
    connect_timeout: float
    read_timeout: float
    log_level: str


def _resolve_path(path=None):
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return CONFIG_FILE


def load_raw_config(path=None):
    """Return defaults merged with the YAML file, if one exists."""
    settings = DEFAULT_SETTINGS.copy()
    config_path = _resolve_path(path)

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            external = yaml.safe_load(f) or {}
        if not isinstance(external, dict):
            raise ValueError(f"config file must contain a mapping: {config_path}")
        for key, value in external.items():
            if key in settings:
                settings[key] = value
    elif path:
        raise FileNotFoundError(f"config file not found: {config_path}")

    return settings


def load_store_config(path=None, **overrides) -> StoreConfig:
    """Load, apply non-None overrides, validate."""
    settings = load_raw_config(path)
    for key, value in overrides.items():
        if value is not None and key in settings:
            settings[key] = value
    validate_store_config(settings)
    return StoreConfig(**{f.name: settings[f.name] for f in fields(StoreConfig)})
