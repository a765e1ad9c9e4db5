"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Service and route code never touch SQL directly.

The users table is treated as a document collection: the store assigns each
record a 24-char hex identifier and enforces email uniqueness with a UNIQUE
index. That index, not the service's pre-check, is the authority on duplicate
emails -- two concurrent sign-ups can both pass the pre-check.

Driver exceptions never leave this module. They are translated into the
StoreFault variants from core.errors:
  malformed id          -> InvalidIdentifierFault("_id", value)
  unique index hit      -> DuplicateKeyFault("email", value)
  missing/invalid field -> SchemaValidationFault({field: message})

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import re
import secrets
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from core.errors import DuplicateKeyFault, InvalidIdentifierFault, SchemaValidationFault

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(24), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False),  # bcrypt digest
    Column("is_admin", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
)

_ID_RE = re.compile(r"^[0-9a-f]{24}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Columns returned when the caller did not ask for the password projection.
_PUBLIC_COLUMNS = [c for c in _users.c if c.name != "password"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return secrets.token_hex(12)


def _validate(user: User) -> None:
    errors: dict[str, str] = {}
    if not (user.name or "").strip():
        errors["name"] = "Name is required"
    if not (user.email or "").strip():
        errors["email"] = "Email is required"
    elif not _EMAIL_RE.match(user.email):
        errors["email"] = "Please provide a valid email"
    if not user.password:
        errors["password"] = "Password is required"
    if errors:
        raise SchemaValidationFault(errors)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///auth.db")
        created = store.create_user(User(name="Ann", email="ann@x.com", password=digest))
        user = store.get_by_email("ann@x.com", include_password=True)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # Calls arrive from worker threads (anyio.to_thread).
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        _metadata.create_all(self.engine)

    def ping(self) -> None:
        """Round-trip a trivial query. Raises the driver error if unreachable."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> User:
        """Insert a new user and return it with its assigned id.

        Raises SchemaValidationFault for missing/invalid fields and
        DuplicateKeyFault if the email is already registered.
        """
        _validate(user)
        record = User(
            id=_new_id(),
            name=user.name.strip(),
            email=user.email,
            password=user.password,
            is_admin=bool(user.is_admin),
            created_at=_now_iso(),
        )
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=record.id,
                        name=record.name,
                        email=record.email,
                        password=record.password,
                        is_admin=1 if record.is_admin else 0,
                        created_at=record.created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            if "email" in str(exc.orig).lower():
                raise DuplicateKeyFault("email", record.email) from exc
            raise DuplicateKeyFault("_id", record.id) from exc
        return record

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_email(self, email: str, include_password: bool = False) -> User | None:
        """Look up a user by exact (already normalized) email. None if not found.

        The password digest is only loaded when include_password is True.
        """
        columns = list(_users.c) if include_password else _PUBLIC_COLUMNS
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().with_only_columns(*columns).where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by id, without the password. None if not found.

        Raises InvalidIdentifierFault if user_id is not a store identifier.
        """
        if not isinstance(user_id, str) or not _ID_RE.match(user_id):
            raise InvalidIdentifierFault("_id", user_id)
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().with_only_columns(*_PUBLIC_COLUMNS).where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    # password is absent from rows fetched without the projection.
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        password=getattr(row, "password", None),
        is_admin=bool(row.is_admin),
        created_at=row.created_at,
    )
