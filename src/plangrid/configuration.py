# SPDX-License-Identifier: MIT

from copy import deepcopy
from pathlib import Path
from typing import Optional, TypedDict

from yaml import load

try:
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Loader  # type: ignore[assignment]
import platformdirs

APP_NAME = "plangrid"

CONFIG_PATH = platformdirs.user_config_path(APP_NAME)
APP_CONFIG_PATH = CONFIG_PATH / "config.yaml"

# These will be set dynamically by load_data_path_configuration()
DATA_PATH: Path = platformdirs.user_data_path(APP_NAME)
DATA_PLANS_PATH: Path = DATA_PATH / "plans.yaml"

GRID_INTERVALS = (15, 30, 60)


class Configuration(TypedDict):
    timezone: str
    cache_ttl_seconds: float
    query_cache_size: int
    view_cache_size: int
    computation_cache_size: int
    chunk_size: int
    min_duration_minutes: int
    max_duration_minutes: int
    grid_interval: int
    slow_computation_ms: float
    worker_timeout_seconds: float
    log_level: str
    data_path: Optional[str]


DEFAULT_CONFIGURATION: Configuration = {
    "timezone": "local",
    "cache_ttl_seconds": 300,
    "query_cache_size": 100,
    "view_cache_size": 100,
    "computation_cache_size": 200,
    "chunk_size": 1000,
    "min_duration_minutes": 15,
    "max_duration_minutes": 480,
    "grid_interval": 30,
    "slow_computation_ms": 16,
    "worker_timeout_seconds": 30,
    "log_level": "WARNING",
    "data_path": None,
}


def get_default_configuration() -> Configuration:
    return deepcopy(DEFAULT_CONFIGURATION)


def load_configuration(path: Optional[Path] = None) -> Configuration:
    """
    Read the YAML configuration file and backfill any missing keys.

    A missing or empty file yields the defaults. Unknown keys are dropped.
    """
    config_path = path or APP_CONFIG_PATH
    config = get_default_configuration()
    if not config_path.is_file():
        return config

    raw_config = load(config_path.read_text(), Loader=Loader)
    if raw_config is None:
        return config
    if not isinstance(raw_config, dict):
        raise ValueError(f"configuration file {config_path} must contain a mapping")

    for key in DEFAULT_CONFIGURATION:
        if key in raw_config and raw_config[key] is not None:
            config[key] = raw_config[key]  # type: ignore[literal-required]

    validate_configuration(config)
    return config


def validate_configuration(config: Configuration) -> None:
    if config["grid_interval"] not in GRID_INTERVALS:
        raise ValueError(
            f"grid_interval must be one of {GRID_INTERVALS}, got {config['grid_interval']}"
        )
    if config["min_duration_minutes"] > config["max_duration_minutes"]:
        raise ValueError("min_duration_minutes must not exceed max_duration_minutes")
    for key in (
        "query_cache_size",
        "view_cache_size",
        "computation_cache_size",
        "chunk_size",
    ):
        if config[key] <= 0:  # type: ignore[literal-required]
            raise ValueError(f"{key} must be positive")


def load_data_path_configuration(config: Configuration) -> None:
    """
    Point DATA_PATH and DATA_PLANS_PATH at the configured data directory.

    This must be called before the plan repository is used.
    """
    global DATA_PATH, DATA_PLANS_PATH

    data_path_setting = config.get("data_path")
    if data_path_setting is not None:
        DATA_PATH = Path(data_path_setting)
        DATA_PLANS_PATH = DATA_PATH / "plans.yaml"
