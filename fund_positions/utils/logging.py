# fund_positions/utils/logging.py
"""
Logging configuration for the fund positions API.

Sets up the root logger once at startup with:
- Level from LOG_LEVEL
- Text or JSON output from LOG_FORMAT
- The request correlation ID stamped on every record
- Quieter third-party loggers

Usage:
    from fund_positions.utils import setup_logging

    # In main.py, before creating the FastAPI app
    setup_logging()

Log Levels:
    DEBUG   - Aggregation details, price lookups
    INFO    - Requests served, valuations computed, imports committed
    WARNING - Funds left out of a valuation, database not ready yet
    ERROR   - Store failures, rejected imports
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from fund_positions.config import settings
from fund_positions.utils.context import get_correlation_id

# =============================================================================
# CONSTANTS
# =============================================================================

# timestamp | level | correlation_id | logger_name | message
DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

# Set to WARNING by setup_logging()
NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "alembic.runtime.migration",
    "httpx",
    "httpcore",
    "asyncio",
]

# LogRecord attributes that are not user-supplied "extra" fields
_STANDARD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
})


# =============================================================================
# CORRELATION ID FILTER
# =============================================================================

class CorrelationIdFilter(logging.Filter):
    """
    Adds the current correlation ID to every record as 'correlation_id'.

    Installed on the handler by setup_logging(); usable in format
    strings as %(correlation_id)s.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


# =============================================================================
# JSON FORMATTER
# =============================================================================

class JsonFormatter(logging.Formatter):
    """
    One JSON object per line, for log aggregation.

    Output format:
    {
        "timestamp": "2024-06-01T10:30:00.123+00:00",
        "level": "WARNING",
        "logger": "fund_positions.services.valuation.service",
        "correlation_id": "abc-123-def",
        "message": "No reference price for fund 2 ...",
        "extra": { ... }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
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
    Configure application-wide logging with correlation ID support.

    Call once at startup, before creating the FastAPI application.
    Replaces any handlers already attached to the root logger.

    Args:
        level: Log level name (default: settings.log_level)
        log_format: 'text' or 'json' (default: settings.log_format)
        suppress_noisy_loggers: Set third-party loggers to WARNING

    Raises:
        ValueError: If the level name is unknown
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
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if suppress_noisy_loggers:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={logging.getLevelName(log_level)}, format={format_type}",
        extra={"config": {"level": log_level_str, "format": format_type}},
    )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _get_log_level(level_str: str) -> int:
    """
    Convert a level name (case-insensitive) to its logging constant.

    Raises:
        ValueError: If level_str is not a valid log level
    """
    key = level_str.upper().strip()
    if key not in _LEVELS:
        raise ValueError(
            f"Invalid log level: '{level_str}'. "
            f"Valid levels are: {', '.join(_LEVELS)}"
        )
    return _LEVELS[key]

