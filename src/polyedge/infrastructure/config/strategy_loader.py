"""
Strategy configuration file loader.

Config files hold either {"strategy": {...}} or a bare strategy object.
Keys present in the file override the defaults; everything else keeps
the default strategy's values.
"""

import json
import os
from pathlib import Path

from loguru import logger
from pydantic import ValidationError as SchemaValidationError

from polyedge.core.constants import CONFIG_PATH_ENV_VAR, DEFAULT_CONFIG_PATH
from polyedge.core.exceptions.backtest import ConfigurationError, ValidationError
from polyedge.core.models.strategy import DEFAULT_STRATEGY, StrategyConfig
from polyedge.infrastructure.schemas import StrategyConfigSchema


def resolve_config_path(path: str | Path | None = None) -> tuple[Path, bool]:
    """Pick the config path: argument, then environment variable, then config.json.

    Returns:
        (path, explicit) where explicit is False only for the default path
    """
    if path is not None:
        return Path(path), True
    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path), True
    return Path(DEFAULT_CONFIG_PATH), False


def load_strategy_config(
    path: str | Path | None = None, base: StrategyConfig = DEFAULT_STRATEGY
) -> StrategyConfig:
    """
    Load and validate a strategy config file merged over a base config.

    A missing default config.json yields a copy of the base config; a
    missing explicitly requested file is an error.

    Raises:
        ConfigurationError: If the file is missing, malformed or invalid
    """
    config_path, explicit = resolve_config_path(path)
    if not config_path.exists():
        if explicit:
            raise ConfigurationError(f"Config file not found: {config_path}")
        logger.debug(f"No {config_path} found, using default strategy")
        return base.clone()

    try:
        with config_path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to read config file {config_path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("strategy"), dict):
        data = data["strategy"]
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a JSON object")

    try:
        config = StrategyConfigSchema.model_validate(data).to_domain(base).validate()
    except (SchemaValidationError, ValidationError) as e:
        raise ConfigurationError(f"Invalid strategy config in {config_path}: {e}") from e

    logger.info(f"Loaded strategy config from {config_path}")
    return config
