"""Configuration management for tabwindow.

Loads settings from a YAML configuration file with environment variable
overrides (``TABWINDOW_WINDOW__PORT=8080``). Supports .env files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/tabwindow.yaml")

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720


class WindowConfig(BaseModel):
    """Creation-time configuration of a window session.

    ``width`` and ``height`` left unset are inherited from a supplied
    drawing surface, falling back to 1280x720.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="Window", description="Browser tab title")
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    host: str = Field(
        default="127.0.0.1",
        description="Listen address; '::' listens on all interfaces (dual-stack)",
    )
    port: int = Field(default=0, ge=0, le=65535, description="0 lets the OS pick a port")
    launch_browser: bool = Field(
        default=True, description="Open a browser tab once the listener is bound"
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for tabwindow.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "TABWINDOW_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    window: WindowConfig = Field(default_factory=WindowConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: YAML file > env vars > .env file > defaults. Sections are
    merged key by key, so an env var can still set a field the YAML
    section leaves out.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
