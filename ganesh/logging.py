"""Logging utilities for ganesh.

All loggers live under the ``ganesh.`` namespace and write to stderr. The
default level is taken from the ``GANESH_LOG_LEVEL`` environment variable
(``WARNING`` when unset).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

_LOG_LEVEL_ENV_VAR = "GANESH_LOG_LEVEL"
_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def _parse_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return int(level)


_DEFAULT_LEVEL = _parse_level(os.getenv(_LOG_LEVEL_ENV_VAR, "WARNING"))

# Loggers handed out so far, keyed by full name
_loggers: dict[str, logging.Logger] = {}


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create a logger for the given module name.

    Loggers are cached so that each one receives exactly one handler. Pass
    ``__name__`` from the calling module.

    Args:
        name: Logger name. Names outside the ``ganesh`` namespace are
            prefixed with ``ganesh.``. If None, returns the package logger.

    Returns:
        Configured logger instance.

    Example:
        >>> from ganesh.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Starting Nelder-Mead")
    """
    if name is None:
        name = "ganesh"
    logger_name = name if name == "ganesh" or name.startswith("ganesh.") else f"ganesh.{name}"

    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(_DEFAULT_LEVEL)
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the logging level for every ganesh logger.

    Args:
        level: Logging level (``logging.DEBUG``, ...) or its name
            (``"DEBUG"``, ``"INFO"``, ...).

    Example:
        >>> import logging
        >>> from ganesh.logging import set_log_level
        >>> set_log_level(logging.DEBUG)
    """
    global _DEFAULT_LEVEL
    level = _parse_level(level)
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
    _DEFAULT_LEVEL = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[object] = None,
) -> None:
    """Replace the handlers of every ganesh logger.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, uses
            ``[LEVEL] name: message``.
        stream: Output stream (default: ``sys.stderr``).
    """
    global _DEFAULT_LEVEL
    level = _parse_level(level)
    formatter = logging.Formatter(format_string or _DEFAULT_FORMAT)
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    _DEFAULT_LEVEL = level


__all__ = ["configure_logging", "get_logger", "set_log_level"]
