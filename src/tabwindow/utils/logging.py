"""Logging setup utilities for tabwindow.

Configures the ``tabwindow`` logger hierarchy from the logging section of
the settings. uvicorn's own loggers are left alone; the session already
quiets them to warnings.
"""

from __future__ import annotations

import logging
import sys

from tabwindow.config.settings import LoggingConfig

_HANDLER_MARK = "_tabwindow_handler"


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure logging for the tabwindow package.

    Sets up the ``tabwindow`` logger with the configured level and format,
    a stderr handler and an optional file handler. Calling it again
    replaces the handlers it installed before instead of stacking them.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger("tabwindow")
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root_logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(config.format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARK, True)
        root_logger.addHandler(handler)

    root_logger.info("Logging initialized at %s level", config.level)
    return root_logger
