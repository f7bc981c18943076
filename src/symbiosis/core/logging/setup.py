from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .json_formatter import JSONFormatter

LOGGER_NAME = "symbiosis"
_MARKER = "_symbiosis_handler"


def _level(raw: str | None) -> int:
    return getattr(logging, (raw or "INFO").strip().upper(), logging.INFO)


def _owned(logger: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in logger.handlers if getattr(handler, _MARKER, False)]


def _attach(logger: logging.Logger, handler: logging.Handler) -> None:
    handler.setFormatter(JSONFormatter())
    setattr(handler, _MARKER, True)
    logger.addHandler(handler)


def _log_dir(log_dir: Path | None) -> Path | None:
    if log_dir is not None:
        return log_dir
    configured = os.getenv("SYMBIOSIS_LOG_DIR")
    return Path(configured).expanduser() if configured else None


def configure_logging(log_dir: Path | None = None, level: str | None = None) -> logging.Logger:
    """Route the ``symbiosis`` logger tree to JSON lines on stdout.

    A rotating ``symbiosis.log`` is added when a directory is given or
    ``SYMBIOSIS_LOG_DIR`` is set. Calling this again never duplicates handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_level(level or os.getenv("SYMBIOSIS_LOG_LEVEL")))
    logger.propagate = False

    owned = _owned(logger)
    if not any(type(handler) is logging.StreamHandler for handler in owned):
        _attach(logger, logging.StreamHandler(stream=sys.stdout))

    directory = _log_dir(log_dir)
    if directory is None:
        return logger

    directory.mkdir(parents=True, exist_ok=True)
    log_path = (directory / "symbiosis.log").resolve()
    if any(isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == log_path for handler in owned):
        return logger

    _attach(
        logger,
        RotatingFileHandler(
            filename=log_path,
            maxBytes=int(os.getenv("SYMBIOSIS_LOG_MAX_BYTES", "5000000")),
            backupCount=int(os.getenv("SYMBIOSIS_LOG_BACKUP_COUNT", "5")),
            encoding="utf-8",
        ),
    )
    return logger
