"""Process-wide logger for the command line tool."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Mapping

LOGGER_NAME = "n8n-cli"

_logger: logging.Logger | None = None


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "level": record.levelname.lower(),
                "ts": record.created,
                "logger": record.name,
                "caller": f"{record.filename}:{record.lineno}",
                "msg": record.getMessage(),
            }
        )


def init_logger(debug: bool = False, environ: Mapping[str, str] | None = None) -> logging.Logger:
    """Configure the global logger; debug mode also follows the DEBUG variable."""
    global _logger
    environ = os.environ if environ is None else environ
    is_debug = debug or environ.get("DEBUG") in ("1", "true")

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = False

    handler = logging.StreamHandler()
    if is_debug:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s\t%(levelname)s\t%(name)s\t%(filename)s:%(lineno)d\t%(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
        logger.setLevel(logging.DEBUG)
    else:
        handler.setFormatter(_JsonFormatter())
        logger.setLevel(logging.INFO)
    logger.addHandler(handler)

    _logger = logger
    if is_debug:
        logger.debug("Debug logging enabled")
    return logger


def debug(message: str, *args: Any) -> None:
    """Log a debug message once the logger is initialised."""
    if _logger is not None:
        _logger.debug(message, *args, stacklevel=2)


def info(message: str, *args: Any) -> None:
    """Log an info message once the logger is initialised."""
    if _logger is not None:
        _logger.info(message, *args, stacklevel=2)


def warn(message: str, *args: Any) -> None:
    """Log a warning once the logger is initialised."""
    if _logger is not None:
        _logger.warning(message, *args, stacklevel=2)


def error(message: str, *args: Any) -> None:
    """Log an error once the logger is initialised."""
    if _logger is not None:
        _logger.error(message, *args, stacklevel=2)