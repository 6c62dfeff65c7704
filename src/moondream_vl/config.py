"""
Moondream Client Configuration
==============================

This module handles configuration loading for the vision-language client.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. moondream.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    MOONDREAM_API_KEY     -> client.api_key
    MOONDREAM_ENDPOINT    -> client.endpoint
    MOONDREAM_TIMEOUT     -> client.timeout_seconds
    MOONDREAM_LOG_LEVEL   -> logging.level
    MOONDREAM_LOG_FORMAT  -> logging.format

Example:
    from moondream_vl.config import load_config

    settings = load_config()
    print(settings.client.endpoint)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from moondream_vl.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


DEFAULT_ENDPOINT = "https://api.moondream.ai/v1"


# =============================================================================
# Configuration Models
# =============================================================================

class ClientConfig(BaseModel):
    """Connection settings for the hosted inference service."""

    api_key: Optional[str] = Field(
        default=None,
        description="Value sent in the X-Moondream-Auth header",
    )
    endpoint: str = Field(
        default=DEFAULT_ENDPOINT,
        description="Base URL of the inference service",
    )
    timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="HTTP timeout applied by the transport",
    )
    jpeg_quality: int = Field(
        default=95,
        ge=1,
        le=100,
        description="JPEG quality used when encoding raw images",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the Moondream client.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to moondream.yaml. If None, searches the working directory.

    Returns:
        Settings: Loaded configuration

    Raises:
        ConfigurationError: If the YAML file or an override is invalid
    """
    if config_path is None:
        for path in (Path("moondream.yaml"), Path("moondream.yml")):
            if path.exists():
                config_path = str(path)
                break
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}", e) from e
    else:
        logger.debug("No config file found, using defaults and environment variables")

    # Bad numeric env values and schema violations both surface as ValueError
    try:
        _apply_env_overrides(config_data)
        return Settings.model_validate(config_data)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}", e) from e


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    if env_key := os.environ.get("MOONDREAM_API_KEY"):
        config_data.setdefault("client", {})["api_key"] = env_key
    if env_endpoint := os.environ.get("MOONDREAM_ENDPOINT"):
        config_data.setdefault("client", {})["endpoint"] = env_endpoint
    if env_timeout := os.environ.get("MOONDREAM_TIMEOUT"):
        config_data.setdefault("client", {})["timeout_seconds"] = float(env_timeout)

    if env_log := os.environ.get("MOONDREAM_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_fmt := os.environ.get("MOONDREAM_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_fmt


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
