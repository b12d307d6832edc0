"""Configuration Management with Pydantic.

This module implements the engine configuration model using Pydantic for
parsing and validation of YAML/JSON configuration files with environment
variable overrides.
"""

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field

# Initialize logger
logger = structlog.get_logger(__name__)

TRUE_VALUES = ("true", "1", "yes")


def read_yaml_file(path: str | Path) -> Any:
    """Read a YAML (or JSON) document from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the path is not a regular file or not valid YAML
    """
    file_path = Path(path)

    if not file_path.exists():
        msg = f"File not found: {file_path}"
        raise FileNotFoundError(msg)
    if not file_path.is_file():
        msg = f"Not a regular file: {file_path}"
        raise ValueError(msg)

    try:
        with file_path.open() as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.exception("yaml_parse_error", error=str(e), path=str(file_path))
        msg = f"Invalid YAML in {file_path}: {e}"
        raise ValueError(msg) from e


class EngineConfig(BaseModel):
    """Dependency engine configuration.

    Attributes:
        tree_max_depth: Default depth limit for dependency trees
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render logs as JSON instead of the console format
        warn_on_optional_missing: Warn about optional references to unregistered templates
    """

    tree_max_depth: int = Field(
        default=10,
        ge=0,
        description="Default dependency tree depth limit",
    )
    logging_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=True,
        description="Render logs as JSON",
    )
    warn_on_optional_missing: bool = Field(
        default=True,
        description="Warn on optional references to unregistered templates",
    )

    model_config = {"str_strip_whitespace": True}

    @classmethod
    def from_yaml(cls, path: str | Path) -> "EngineConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            Parsed and validated EngineConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration is invalid
        """
        logger.info("loading_configuration", path=str(path))

        config_data = read_yaml_file(path) or {}
        if not isinstance(config_data, dict):
            msg = f"Configuration file must contain a mapping: {path}"
            raise ValueError(msg)

        config = cls(**cls._apply_env_overrides(config_data))

        logger.info(
            "configuration_loaded",
            tree_max_depth=config.tree_max_depth,
            logging_level=config.logging_level,
        )
        return config

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a configuration from defaults plus environment overrides."""
        return cls(**cls._apply_env_overrides({}))

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: TEMPLATE_DEPS_<KEY>

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            "tree_max_depth": "TEMPLATE_DEPS_TREE_MAX_DEPTH",
            "logging_level": "TEMPLATE_DEPS_LOGGING_LEVEL",
            "json_logs": "TEMPLATE_DEPS_JSON_LOGS",
            "warn_on_optional_missing": "TEMPLATE_DEPS_WARN_OPTIONAL",
        }

        config_data = dict(config_data)
        for key, env_var in env_overrides.items():
            value = os.environ.get(env_var)
            if value is None:
                continue

            if key == "tree_max_depth":
                try:
                    value = int(value)
                except ValueError as e:
                    msg = f"{env_var} must be an integer, got {value!r}"
                    raise ValueError(msg) from e
            elif key in ("json_logs", "warn_on_optional_missing"):
                value = value.lower() in TRUE_VALUES
            else:
                value = value.upper()

            config_data[key] = value
            logger.debug("env_override_applied", env_var=env_var, config_key=key)

        return config_data
