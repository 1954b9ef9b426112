"""
Structured logging configuration.

- Development: human-readable colored format, with workshop/risk/treatment
  ids appended when a record carries them
- Production: one JSON object per line
- Log level: controlled via LOG_LEVEL env variable

Service code attaches entity ids through ``extra=``:

    logger.info("Risk %s added", risk_id, extra={"workshop_id": ws, "risk_id": risk_id})
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

# Keys copied from LogRecord attributes into the JSON payload
CONTEXT_KEYS = (
    "request_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
    "workshop_id",
    "risk_id",
    "treatment_id",
)
_ENTITY_KEYS = ("workshop_id", "risk_id", "treatment_id")


class RequestIdFilter(logging.Filter):
    """Stamp the current request id on every record emitted inside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None and has_request_context():
            record.request_id = getattr(g, "request_id", None)
        return True


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production / log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in CONTEXT_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Human-readable colored formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now().strftime("%H:%M:%S")
        msg = record.getMessage()

        tags = [f"{k}={getattr(record, k)}" for k in _ENTITY_KEYS if getattr(record, k, None)]
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            tags.append(f"{duration:.0f}ms")
        suffix = f" [{' '.join(tags)}]" if tags else ""

        base = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name}: {msg}{suffix}"
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def configure_logging(app):
    """
    Set up structured logging for the Flask app.

    Reads LOG_LEVEL from env (default: DEBUG in dev, INFO in prod).
    Development and testing → ReadableFormatter on stderr
    Production              → JSONFormatter on stderr
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG")
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())

    # Single root handler; create_app may run more than once per process in tests
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("urllib3", "werkzeug", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "JSON" if is_prod else "readable")
