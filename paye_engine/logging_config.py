"""
Logging setup for the engine and CLI.

Format: [TIMESTAMP] [LEVEL] [MODULE:FUNCTION:LINE] MESSAGE
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


class StructuredFormatter(logging.Formatter):
    """Single-line formatter with source location."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime(
            "%Y-%m-%d %H:%M:%S.%f"
        )[:-3]
        location = f"{record.module}:{record.funcName}:{record.lineno}"
        message = f"[{timestamp}] [{record.levelname:8s}] [{location}] {record.getMessage()}"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"
        return message


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Set up a logger with structured formatting and optional file output.

    Args:
        name: Logger name (usually the package name)
        level: Log level name. Defaults to PAYE_LOG_LEVEL / LOG_LEVEL or WARNING
        log_file: Optional file path for logs

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if level is None:
        level = os.getenv("PAYE_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "WARNING"
    log_level = getattr(logging, level.upper(), logging.WARNING)
    logger.setLevel(log_level)

    # Avoid duplicate handlers on repeated setup
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(log_level)
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger
