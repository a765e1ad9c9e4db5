"""
core/normalizer.py -- Turn any failure into a stable client-facing error body.

Two modes, chosen by the deployment environment:

  production: store faults are rewritten into 400 operational errors with a
      fixed message shape; operational errors pass through unchanged; anything
      else becomes a generic 500. Internal details never reach the client.

  development: same classification, plus the formatted traceback ("stack")
      and a dump of the raw exception ("error"). Unknown errors keep their
      real message. Never enable this mode on a public deployment.

render() never raises. If building the body itself fails, a bare 500 body is
returned and the failure is logged.

Envelope: {"status": "fail"|"error", "statusCode": int, "message": str}
"""

from __future__ import annotations

import logging
import traceback

from core.errors import (
    AppError,
    DuplicateKeyFault,
    InternalError,
    InvalidIdentifierFault,
    SchemaValidationFault,
    ValidationError,
)

GENERIC_MESSAGE = "Something went wrong! Please try again later."


def classify(exc: BaseException) -> AppError | None:
    """Map a known fault onto an operational AppError, or None if unknown."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, InvalidIdentifierFault):
        return ValidationError(f"Invalid value for {exc.field}: {exc.value}!")
    if isinstance(exc, DuplicateKeyFault):
        return ValidationError(f'Duplicate value for "{exc.field}": {exc.value}. Please use another value.')
    if isinstance(exc, SchemaValidationFault):
        messages = ". ".join(exc.errors.values())
        return ValidationError(f"Invalid input data: {messages}.")
    return None


def _jsonable(value):
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    return repr(value)


def _describe(exc: BaseException) -> dict:
    """Raw exception dump for development responses."""
    detail = {"name": type(exc).__name__, "message": str(exc)}
    for key, value in vars(exc).items():
        if not key.startswith("_"):
            detail[key] = _jsonable(value)
    return detail


class ErrorNormalizer:
    """Converts exceptions into (status_code, body) pairs.

    Usage:
        normalizer = ErrorNormalizer("production", logger)
        status_code, body = normalizer.render(exc)
    """

    def __init__(self, environment: str, logger: logging.Logger) -> None:
        self.environment = environment
        self.logger = logger

    @property
    def development(self) -> bool:
        return self.environment == "development"

    def normalize(self, exc: BaseException) -> AppError:
        """Return the AppError a client will see for exc."""
        known = classify(exc)
        if known is not None:
            return known
        if self.development:
            return InternalError(str(exc) or type(exc).__name__)
        return InternalError(GENERIC_MESSAGE)

    def render(self, exc: BaseException) -> tuple[int, dict]:
        try:
            return self._render(exc)
        except Exception:
            self.logger.exception("Error normalizer failed while rendering %s", type(exc).__name__)
            return 500, {"status": "error", "statusCode": 500, "message": GENERIC_MESSAGE}

    def _render(self, exc: BaseException) -> tuple[int, dict]:
        error = self.normalize(exc)
        known = classify(exc) is not None

        if not known:
            self.logger.error("Unhandled %s: %s", type(exc).__name__, exc, exc_info=exc)
        elif error.status_code >= 500:
            self.logger.error("%s %d: %s", type(error).__name__, error.status_code, error.message)
        else:
            self.logger.debug("%s %d: %s", type(error).__name__, error.status_code, error.message)

        body = {
            "status": error.status,
            "statusCode": error.status_code,
            "message": error.message,
        }
        if self.development:
            body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            body["error"] = _describe(exc)
        return error.status_code, body
