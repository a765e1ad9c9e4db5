"""
core/errors.py -- Error taxonomy shared by the auth core and the HTTP layer.

Two families:

  AppError (operational): an expected fault with a status code and a message
      that is safe to show a client. The auth service returns these on its
      error channel; the HTTP layer renders them verbatim.

  StoreFault: the closed set of storage-layer faults the credential store
      raises instead of leaking driver exceptions. The error normalizer turns
      each variant into a 400 AppError with a stable message.

Layer rule: core/ may not import from api/ or auth/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class AppError(Exception):
    """Operational error with an HTTP status and a client-safe message."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.is_operational = True

    @property
    def status(self) -> str:
        """"fail" for client faults (4xx), "error" for everything else."""
        return "fail" if 400 <= self.status_code < 500 else "error"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class ValidationError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class InternalError(AppError):
    status_code = 500


# ---------------------------------------------------------------------------
# Storage faults
# ---------------------------------------------------------------------------


class StoreFault(Exception):
    """Base class for the storage faults the normalizer knows how to render."""


@dataclass(eq=False)
class InvalidIdentifierFault(StoreFault):
    """A lookup key had the wrong shape for its field (e.g. a malformed id)."""

    field: str
    value: object

    def __str__(self) -> str:
        return f"invalid identifier for {self.field}: {self.value!r}"


@dataclass(eq=False)
class DuplicateKeyFault(StoreFault):
    """A write hit a unique index."""

    field: str
    value: object

    def __str__(self) -> str:
        return f"duplicate key for {self.field}: {self.value!r}"


@dataclass(eq=False)
class SchemaValidationFault(StoreFault):
    """A record failed store-side validation; errors maps field -> message."""

    errors: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"schema validation failed: {self.errors!r}"
