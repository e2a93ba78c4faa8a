"""
Structured Logging Configuration.

Supports two modes:
- text: Human-readable format for development
- json: Structured JSON format for production log shipping

Set LOG_FORMAT (environment or settings) to "json" for production.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional

from legate.core.tracing import TracingContext


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs JSON strings with tracing context.

    Includes correlation_id, estate_id and user_id from TracingContext so a
    single request can be followed across service and audit log lines.
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = TracingContext.get()

        log_record: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
            "correlation_id": ctx.get("correlation_id", ""),
            "estate_id": ctx.get("estate_id", ""),
            "user_id": ctx.get("user_id", ""),
        }

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record)


def setup_logging(log_format: Optional[str] = None) -> None:
    """
    Setup structured logging for the application.

    Args:
        log_format: "json" for structured output, anything else for text.
                    Defaults to settings.LOG_FORMAT.
    """
    root_logger = logging.getLogger()

    # Avoid adding multiple handlers
    if root_logger.handlers:
        return

    if log_format is None:
        from legate.config import settings

        log_format = settings.LOG_FORMAT

    root_logger.setLevel(logging.INFO)

    handler = logging.StreamHandler(sys.stdout)

    if log_format.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)

    root_logger.addHandler(handler)

    # Set lower level for noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
