"""Logging helpers shared by every elm-compiler module."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

from elm_compiler.env import get_log_level

_ROOT_LOGGER_NAME = "elm_compiler"
_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under the ``elm_compiler`` logger.

    Parameters
    ----------
    name : str
        Short component name, e.g. "Invoker".

    Returns
    -------
    logging.Logger
        The logger ``elm_compiler.<name>``.
    """
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")


def configure_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Calling this more than once replaces the previously installed handler instead of
    stacking a second one.

    Parameters
    ----------
    level : int or str, optional
        Logging level. Defaults to the ``ELM_COMPILER_LOG_LEVEL`` environment variable.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    if level is None:
        level = get_log_level()
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_elm_compiler_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._elm_compiler_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger


def ensure_console_logging() -> logging.Logger:
    """Make sure INFO records of the package logger reach a console.

    Used by verbose mode. If neither the package logger nor the root logger has a handler,
    ``configure_logging(logging.INFO)`` is installed. If the application configured the root
    logger, records propagate there and only the package level is lowered to INFO.

    Returns
    -------
    logging.Logger
        The package logger.
    """
    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    if logger.handlers:
        return logger
    if not logging.getLogger().handlers:
        return configure_logging(logging.INFO)
    if logger.getEffectiveLevel() > logging.INFO:
        logger.setLevel(logging.INFO)
    return logger
