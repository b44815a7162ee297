"""Logging for Bifrost: console warnings plus a rotating log file."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path


_logger: logging.Logger | None = None


def setup_logging(
    log_level: str = "INFO",
    logs_dir: Path | None = None,
    log_file: str = "bifrost.log",
    max_bytes: int = 1024 * 1024,  # 1MB
    backup_count: int = 3,
) -> logging.Logger:
    """Configure the ``bifrost`` logger with an optional rotating file handler.

    Module loggers (``bifrost.core.walker`` and so on) propagate here.
    Returns the configured logger.
    """
    global _logger
    if _logger is not None:
        return _logger

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger = logging.getLogger("bifrost")
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler (WARNING and above only)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            logs_dir / log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _logger = logger
    return logger


def reset_logger() -> None:
    """Reset the global logger (for testing)."""
    global _logger
    if _logger is not None:
        for handler in _logger.handlers:
            handler.close()
        _logger.handlers.clear()
        _logger = None
