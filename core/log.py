"""
core/log.py -- Logging setup for the auth service.

Standard library logging only. Every module logs through a named logger in the
"studytube.*" namespace; configure_logging() wires handlers onto that root so
the application never touches the global root logger's handlers.

Handlers:
  Console: human-readable lines in development, one JSON object per line in
      production (log shippers parse these without a grok pattern).
  Files (production, or LOG_TO_FILES=true): daily-rotating app.log for every
      level and error.log for ERROR and above.

Every record passes through RedactFilter (sensitive values masked) and
ContextFilter (service/env attributes stamped on).

Layer rule: core/ may not import from api/ or auth/.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from collections.abc import Mapping
from pathlib import Path

from core.config import Settings

ROOT_LOGGER = "studytube"

SENSITIVE_KEYS = frozenset(
    {"authorization", "password", "token", "access_token", "refresh_token", "api_key", "secret", "jwt"}
)
REDACTED = "***REDACTED***"

# Attributes every LogRecord has; anything else came from extra={...}.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def redact(value):
    """Return a copy of value with sensitive mapping keys masked (recursively)."""
    if isinstance(value, Mapping):
        return {k: REDACTED if str(k).lower() in SENSITIVE_KEYS else redact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(redact(v) for v in value)
    return value


class RedactFilter(logging.Filter):
    """Mask sensitive keys in record args and extra attributes."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, Mapping):
            record.args = redact(record.args)
        elif isinstance(record.args, tuple):
            record.args = tuple(redact(a) for a in record.args)
        for key in list(vars(record)):
            if key in _RESERVED_ATTRS:
                continue
            if key.lower() in SENSITIVE_KEYS:
                setattr(record, key, REDACTED)
            else:
                setattr(record, key, redact(getattr(record, key)))
        return True


class ContextFilter(logging.Filter):
    def __init__(self, service: str, env: str) -> None:
        super().__init__()
        self.service = service
        self.env = env

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        record.env = self.env
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and key not in payload:
                payload[key] = value
        if record.exc_info:
            payload["stack"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(settings: Settings) -> logging.Logger:
    """Install handlers on the "studytube" logger and return it.

    Idempotent: existing handlers are replaced, so calling this from every
    app factory invocation (tests build many apps) does not duplicate output.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(settings.effective_log_level)
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    filters = [RedactFilter(), ContextFilter(settings.service_name, settings.environment)]

    console = logging.StreamHandler()
    if settings.is_production:
        console.setFormatter(JsonFormatter())
    else:
        console.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-5s %(name)s %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    handlers: list[logging.Handler] = [console]

    if settings.is_production or settings.log_to_files:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        app_file = logging.handlers.TimedRotatingFileHandler(
            log_dir / "app.log", when="midnight", backupCount=14, encoding="utf-8"
        )
        error_file = logging.handlers.TimedRotatingFileHandler(
            log_dir / "error.log", when="midnight", backupCount=30, encoding="utf-8"
        )
        error_file.setLevel(logging.ERROR)
        for handler in (app_file, error_file):
            handler.setFormatter(JsonFormatter())
            handlers.append(handler)

    for handler in handlers:
        for f in filters:
            handler.addFilter(f)
        root.addHandler(handler)
    return root


def get_logger(label: str) -> logging.Logger:
    """Return a child of the service logger, e.g. get_logger("auth")."""
    return logging.getLogger(f"{ROOT_LOGGER}.{label}")
