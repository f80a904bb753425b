"""JSON logging for tempsweep runs."""

import json
import logging
import sys
from typing import Any, Dict, Optional


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        """Format LogRecord into JSON string."""
        log_obj: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_obj["error"] = self.formatException(record.exc_info)
            log_obj["error_type"] = record.exc_info[0].__name__ if record.exc_info[0] else None

        # Structured context attached through log_with_context()
        if hasattr(record, "extra_fields"):
            log_obj["extra_fields"] = record.extra_fields

        return json.dumps(log_obj, default=str)


def setup_logging(logger_name: str = "tempsweep", level: str = "INFO") -> logging.Logger:
    """
    Configure JSON logging on stdout.

    Library modules log through child loggers (``tempsweep.purge``,
    ``tempsweep.deletion``...), so configuring the package logger once is
    enough to capture everything.

    Args:
        logger_name: Name of the logger
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper()))

    # Avoid adding duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    return logger


def log_with_context(
    logger: logging.Logger, level: str, message: str, extra: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, etc.)
        message: Log message
        extra: Additional context fields to include in JSON output
    """
    if extra is None:
        extra = {}

    log_method = getattr(logger, level.lower())
    log_method(message, extra={"extra_fields": extra})


def log_ignored_error(logger: logging.Logger, message: str, path: str, error: BaseException) -> None:
    """
    Record a per-file failure that a best-effort pass chose to skip.

    These are expected during normal operation (files held open, removed by a
    concurrent cleaner...), so they go out at DEBUG level only.

    Args:
        logger: Logger instance
        message: What was being attempted
        path: File the failure relates to
        error: The exception that was ignored
    """
    log_with_context(
        logger,
        "debug",
        message,
        {"file": path, "error": str(error), "error_type": type(error).__name__},
    )
