"""Configuration management for tabwindow.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides.
"""

from tabwindow.config.settings import LoggingConfig, Settings, WindowConfig, load_settings

__all__ = ["LoggingConfig", "Settings", "WindowConfig", "load_settings"]
