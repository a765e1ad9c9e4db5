"""
API request and response models for the auth REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Request fields are Optional so that a missing field reaches the auth service,
which answers with a 400 and a specific message. Fields of the wrong type or
length fail schema validation instead (also 400, "Invalid input data: ...").

Sign-up passwords are capped at bcrypt's 72-byte window (the service checks the
byte length). Sign-in allows longer input so an over-long password gets the
same 401 as any other wrong password.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import PublicUser

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignUpRequest(BaseModel):
    """Request body for POST /api/v1/auth/sign-up."""

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=72)


class SignInRequest(BaseModel):
    """Request body for POST /api/v1/auth/sign-in."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user. Never carries the password or its hash."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    email: str
    is_admin: bool = Field(default=False, alias="isAdmin")

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email, is_admin=user.is_admin)


class ErrorResponse(BaseModel):
    """Error envelope shared by every non-2xx response.

    stack and error are only present in development mode.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: str
    status_code: int = Field(alias="statusCode")
    message: str
    stack: Optional[str] = None
    error: Optional[dict] = None


class MessageResponse(BaseModel):
    """Response body for GET /api/v1/auth/test."""

    message: str


class HealthResponse(BaseModel):
    """Response body for GET /api/v1/health."""

    status: str = "healthy"
    version: str
    components: dict[str, str]
