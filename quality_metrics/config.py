"""Configuration for the quality metrics service.

Loads from YAML config file with environment variable overrides.
Pattern: QM__{SECTION}__{KEY} overrides nested YAML keys.
Example: QM__SERVICE__DEFAULT_BRANCH=develop
DATABASE_URL, when set, always wins for the database URL.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from .database import DEFAULT_DB_URL

ENV_PREFIX = "QM"
DEFAULT_CONFIG_PATH = "config/quality-metrics.yml"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class DatabaseConfig(BaseModel):
    url: str = DEFAULT_DB_URL
    echo: bool = False


class ServiceSettings(BaseModel):
    default_branch: str = "main"
    trend_threshold: float = Field(default=2.0, ge=0, description="Percent change for up/down")
    history_limit: int = Field(default=30, ge=1)
    statistics_window: int = Field(default=10, ge=1)
    query_limit: int = Field(default=50, ge=1)
    missing_load_time_as_zero: bool = True


class GateThresholds(BaseModel):
    min_coverage: float = Field(default=10, ge=0, le=100, description="Unit coverage %")
    min_tests: int = Field(default=50, ge=0)
    min_performance: int = Field(default=60, ge=0, le=100)


class AppConfig(BaseModel):
    database: DatabaseConfig = DatabaseConfig()
    service: ServiceSettings = ServiceSettings()
    gate: GateThresholds = GateThresholds()
    log_level: str = "INFO"


def _apply_env_overrides(config_dict: dict, prefix: str = ENV_PREFIX) -> dict:
    """Apply environment variable overrides to config dict.

    Pattern: QM__SECTION__KEY=value maps to config[section][key] = value
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}__"):
            continue
        parts = key[len(prefix) + 2 :].lower().split("__")
        target = config_dict
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        # Type coercion for common cases, pydantic handles the rest
        if value.lower() in ("true", "false"):
            value = value.lower() == "true"
        elif value.isdigit():
            value = int(value)
        target[parts[-1]] = value
    return config_dict


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from YAML file with env overrides.

    Priority: env vars > YAML file > defaults
    """
    config_dict = {}

    # 1. Load YAML if exists
    if config_path is None:
        config_path = os.getenv("QUALITY_METRICS_CONFIG", DEFAULT_CONFIG_PATH)
    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            config_dict = yaml.safe_load(f) or {}

    # 2. Apply env overrides
    config_dict = _apply_env_overrides(config_dict)

    # 3. Database URL from dedicated env var (common pattern)
    if os.getenv("DATABASE_URL"):
        config_dict.setdefault("database", {})["url"] = os.environ["DATABASE_URL"]
    if os.getenv("LOG_LEVEL"):
        config_dict["log_level"] = os.environ["LOG_LEVEL"]

    return AppConfig(**config_dict)


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[str] = None) -> AppConfig:
    global _config
    _config = load_config(config_path)
    return _config


def configure_logging(config: AppConfig) -> None:
    """Root logging from config.log_level (YAML, QM__LOG_LEVEL or LOG_LEVEL)."""
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(config.log_level)
