"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, almost no logic). Stores and the
auth service do the work; api/models.py owns the wire shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass


def normalize_email(email: str) -> str:
    """Trim and lowercase. Applied identically on every write and read path."""
    return str(email).strip().lower()


@dataclass
class User:
    """One registered account.

    password holds the bcrypt digest, never plaintext. It is None whenever the
    record was loaded without the password projection -- only the sign-in path
    asks for it.
    """

    name: str
    email: str
    id: str | None = None  # assigned by the store on create
    password: str | None = None
    is_admin: bool = False
    created_at: str | None = None

    def to_public(self) -> PublicUser:
        return PublicUser(id=self.id or "", name=self.name, email=self.email, is_admin=bool(self.is_admin))


@dataclass(frozen=True)
class PublicUser:
    """The subset of a User that is safe to return to clients."""

    id: str
    name: str
    email: str
    is_admin: bool = False
