# backend/portfolio_analytics/utils/logging.py
"""
Logging configuration for Portfolio Analytics.

Sets up the root logger once at startup:
- Level from LOG_LEVEL (DEBUG shows per-calculation detail)
- Text output for development, JSON output for log aggregation
- Every record carries the request's correlation ID and user ID
- Chatty third-party loggers held at WARNING

Usage:
    from portfolio_analytics.utils import setup_logging

    setup_logging()                                # from settings
    setup_logging(level="DEBUG", log_format="text")

What gets logged where:
    DEBUG   - analytics internals (lots partitioned, dates retained, skipped lots)
    INFO    - requests served, price refresh results
    WARNING - degraded inputs (malformed cache entries, missing FX rates)
    ERROR   - unexpected exceptions
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from portfolio_analytics.config import settings
from portfolio_analytics.utils.context import get_correlation_id, get_user_id

# =============================================================================
# CONSTANTS
# =============================================================================

# timestamp | level | correlation_id | user_id | logger_name | message
DEFAULT_TEXT_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(user_id)s | %(name)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"
NO_USER_ID = "-"

NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "uvicorn.access",
    "httpx",
    "httpcore",
    "asyncio",
]

# LogRecord attributes that are not "extra" fields
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "user_id", "message", "taskName",
}


# =============================================================================
# REQUEST CONTEXT FILTER
# =============================================================================

class RequestContextFilter(logging.Filter):
    """
    Stamp each record with ``correlation_id`` and ``user_id``.

    Attached to the handler by setup_logging(), so format strings may use
    %(correlation_id)s and %(user_id)s unconditionally.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        record.user_id = get_user_id() or NO_USER_ID
        return True


# =============================================================================
# JSON FORMATTER
# =============================================================================

class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    {
        "timestamp": "2024-01-15T10:30:00.123+00:00",
        "level": "INFO",
        "logger": "portfolio_analytics.services.pricing_service",
        "correlation_id": "abc-123-def",
        "user_id": "user-42",
        "message": "Refreshed prices for 12 lots",
        "extra": { ... }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "user_id": getattr(record, "user_id", NO_USER_ID),
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS:
                continue
            try:
                json.dumps(value)
                extra[key] = value
            except (TypeError, ValueError):
                extra[key] = str(value)

        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry)


# =============================================================================
# SETUP FUNCTION
# =============================================================================

def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
) -> None:
    """
    Configure application-wide logging.

    Call once at startup, before the FastAPI application is created. Calling
    it again replaces the handler rather than adding a second one.

    Args:
        level: Log level name. Defaults to settings.log_level.
        log_format: 'text' or 'json'. Defaults to settings.log_format.
        suppress_noisy_loggers: Hold third-party loggers at WARNING.
    """
    log_level_str = level or settings.log_level
    log_level = _get_log_level(log_level_str)
    format_type = (log_format or settings.log_format).lower()

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt=DEFAULT_TEXT_FORMAT,
            datefmt=DEFAULT_DATE_FORMAT,
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RequestContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if suppress_noisy_loggers:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={log_level_str}, format={format_type}",
        extra={"config": {"level": log_level_str, "format": format_type}},
    )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _get_log_level(level_str: str) -> int:
    """
    Convert a level name to its logging constant.

    Raises:
        ValueError: If level_str is not a known level name
    """
    level_str = level_str.upper().strip()

    level_mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    if level_str not in level_mapping:
        valid_levels = ", ".join(level_mapping.keys())
        raise ValueError(
            f"Invalid log level: '{level_str}'. "
            f"Valid levels are: {valid_levels}"
        )

    return level_mapping[level_str]
