"""
CMS logging configuration.

JSON lines by default, coloured text with CMS_LOG_FORMAT=text. Keyword
arguments passed to a log call become fields of the record.
"""
import logging
import sys
import json
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from functools import wraps
import time
import os

LOG_LEVEL = os.environ.get("CMS_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("CMS_LOG_FORMAT", "json")  # json or text

# Fields never written to the text format
_TEXT_HIDDEN = ("traceback",)


# ============================================================
# FORMATTERS
# ============================================================

class StructuredFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "context", {}))
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Readable single-line records for local development"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[90m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        stamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S")
        line = f"{color}[{stamp}] [{record.levelname}] {record.name}{self.RESET} {record.getMessage()}"

        fields = {k: v for k, v in getattr(record, "context", {}).items() if k not in _TEXT_HIDDEN}
        if fields:
            line += f" {self.DIM}(" + " ".join(f"{k}={v}" for k, v in fields.items()) + f"){self.RESET}"
        return line


def _handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if LOG_FORMAT == "json" else TextFormatter())
    return handler


# ============================================================
# STRUCTURED LOGGER
# ============================================================

class StructuredLogger:
    """Wraps a stdlib logger; ``bind`` returns a copy that adds fixed fields."""

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        self.name = name
        self.context = dict(context or {})
        self.logger = logging.getLogger(name)
        if not self.logger.handlers:
            self.logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
            self.logger.addHandler(_handler())
            self.logger.propagate = False

    def bind(self, **context) -> "StructuredLogger":
        return StructuredLogger(self.name, {**self.context, **context})

    def _log(self, level: int, message: str, error: Optional[BaseException] = None, **context):
        if not self.logger.isEnabledFor(level):
            return
        fields = {**self.context, **context}
        if error is not None:
            fields["error_type"] = type(error).__name__
            fields["error_message"] = str(error)
            fields["traceback"] = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        self.logger.log(level, message, extra={"context": fields})

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, **context)

    def error(self, message: str, error: Optional[BaseException] = None, **context):
        self._log(logging.ERROR, message, error, **context)

    def critical(self, message: str, error: Optional[BaseException] = None, **context):
        self._log(logging.CRITICAL, message, error, **context)


# ============================================================
# TIMING
# ============================================================

def timed(logger: StructuredLogger, level: str = "debug"):
    """Log the duration of each call, and the error if it raises."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{func.__qualname__} failed",
                    error=e,
                    duration_ms=round((time.perf_counter() - start) * 1000, 2),
                )
                raise
            getattr(logger, level)(
                f"{func.__qualname__} completed",
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            return result

        return wrapper

    return decorator


# ============================================================
# LOGGER INSTANCES
# ============================================================

api_logger = StructuredLogger("cms.api")
db_logger = StructuredLogger("cms.db")
posts_logger = StructuredLogger("cms.posts")
registry_logger = StructuredLogger("cms.registry")


def get_logger(name: str) -> StructuredLogger:
    """Logger under the ``cms.`` namespace"""
    return StructuredLogger(f"cms.{name}")
