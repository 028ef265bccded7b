"""
Logging configuration for Edwin.

This module provides centralized logging setup with structured logging support
and consistent formatting across all components. Logs never go to stdout,
which is reserved for the MCP stdio transport.
"""

import logging
import logging.config
import sys
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

STANDARD_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
STRUCTURED_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    name: str | None = None,
    level: str | None = None,
    structured: bool = False,
    log_file: Path | None = None
) -> logging.Logger:
    """Setup a standalone logger.

    Args:
        name: Logger name (defaults to this module)
        level: Logging level (INFO, DEBUG, etc.)
        structured: Enable JSON structured logging
        log_file: Optional log file path

    Returns:
        Configured logger instance
    """
    if name is None:
        name = __name__

    if level is None:
        level = "INFO"

    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper()))

    if structured:
        formatter = JsonFormatter(fmt=STRUCTURED_FORMAT, datefmt=DATE_FORMAT)
    else:
        formatter = logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_root_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Path | None = None,
    console: bool = True
) -> None:
    """Configure logging for the whole application.

    Args:
        level: Root logging level
        structured: Enable JSON structured logging
        log_file: Optional log file path
        console: Emit to stderr; MCP mode may turn this off and log to file only
    """
    formatter = "structured" if structured else "standard"
    handlers: dict[str, dict] = {}

    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": formatter,
            "stream": "ext://sys.stderr"
        }

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "level": level,
            "formatter": formatter,
            "filename": str(log_file)
        }

    if not handlers:
        handlers["null"] = {"class": "logging.NullHandler"}

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": STANDARD_FORMAT, "datefmt": DATE_FORMAT},
            "structured": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": STRUCTURED_FORMAT,
                "datefmt": DATE_FORMAT
            }
        },
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
        "loggers": {
            "edwin": {"level": level, "handlers": list(handlers), "propagate": False},
            # web3 and aiohttp are chatty at DEBUG
            "web3": {"level": "WARNING"},
            "aiohttp": {"level": "WARNING"},
        }
    }

    logging.config.dictConfig(config)


SECRET_KEYS = ("privatekey", "private_key", "apikey", "api_key", "secret", "password", "mnemonic", "seed")


def redact(params: object, secret_keys: tuple[str, ...] = SECRET_KEYS) -> object:
    """Return a copy of ``params`` with secret-looking values masked for logging."""
    if isinstance(params, dict):
        masked = {}
        for key, value in params.items():
            lowered = str(key).lower()
            if any(s in lowered for s in secret_keys):
                masked[key] = "***"
            else:
                masked[key] = redact(value, secret_keys)
        return masked
    if isinstance(params, list):
        return [redact(item, secret_keys) for item in params]
    return params
