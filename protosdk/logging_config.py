"""Logging configuration for protosdk."""

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict

# Output formats accepted by set_log_format (LOG_FORMAT / --log-format)
LOG_FORMATS = ["text", "json"]


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return StructuredFormatter()
    return logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "text" for human-readable lines, "json" for one JSON object per line

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("protosdk")

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper()))

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(_build_formatter(log_format))
    logger.addHandler(handler)

    return logger


def set_log_level(level: str) -> None:
    """Change the level of the package logger and its handlers."""
    numeric = getattr(logging, level.upper())
    logger.setLevel(numeric)
    for handler in logger.handlers:
        handler.setLevel(numeric)


def set_log_format(log_format: str) -> None:
    """
    Switch the package logger between text and JSON output.

    Raises:
        ValueError: If log_format is not one of LOG_FORMATS
    """
    log_format = log_format.lower()
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {log_format}")
    for handler in logger.handlers:
        handler.setFormatter(_build_formatter(log_format))


class StructuredFormatter(logging.Formatter):
    """JSON formatter for machine-readable CI logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line."""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


# Global logger instance
logger = setup_logging()
