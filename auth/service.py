"""
auth/service.py -- Sign-up, sign-in, sign-out and current-user lookup.

Every operation is a coroutine that returns either a PublicUser or an AppError
(the error channel). The HTTP layer inspects the result and maps an AppError to
a response; the service never builds responses itself beyond asking the token
issuer to write the session cookie.

Store and hasher calls are blocking (SQLAlchemy, bcrypt), so they run on a
worker thread via anyio.to_thread.run_sync. Those awaits are the only
suspension points; nothing is shared between requests except the store.

Security:
  Sign-in returns the same UnauthorizedError for "no such email" and "wrong
  password", and runs bcrypt in both cases, so neither the body nor the
  response time reveals whether an email is registered. A password longer
  than bcrypt's 72-byte window never verifies, so it gets the same 401.

  Email is normalized (trim + lowercase) on both the write and read paths.
  The store's unique index is the authority on duplicates; the pre-check only
  saves a bcrypt round in the common case.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from typing import Union

import anyio.to_thread

from auth.models import PublicUser, User, normalize_email
from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.errors import (
    AppError,
    ConflictError,
    DuplicateKeyFault,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

AuthResult = Union[PublicUser, AppError]

USER_EXISTS = "User already exists"
BAD_CREDENTIALS = "Invalid email or password"
USER_NOT_FOUND = "User not found"
PASSWORD_TOO_LONG = f"Password must be at most {MAX_PASSWORD_BYTES} bytes"


def _blank(value) -> bool:
    return value is None or not str(value).strip()


class AuthService:
    """Orchestrates the credential store, password hasher and token issuer.

    Dependencies are passed in explicitly; there are no module-level
    singletons. The logger is any logging.Logger (normally a child of the
    "studytube" logger configured by core.log).
    """

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.logger = logger or logging.getLogger("studytube.auth")

    async def sign_up(self, response, name: str | None, email: str | None, password: str | None) -> AuthResult:
        """Create an account, set the session cookie and return the public view."""
        if _blank(name) or _blank(email) or _blank(password):
            return ValidationError("Name, email and password are required")
        if not self.hasher.accepts(password):
            return ValidationError(PASSWORD_TOO_LONG)
        email = normalize_email(email)

        existing = await anyio.to_thread.run_sync(self.store.get_by_email, email)
        if existing is not None:
            self.logger.info("Sign-up rejected, email already registered (user_id=%s)", existing.id)
            return ConflictError(USER_EXISTS)

        digest = await anyio.to_thread.run_sync(self.hasher.hash, password)
        candidate = User(name=str(name).strip(), email=email, password=digest)
        try:
            user = await anyio.to_thread.run_sync(self.store.create_user, candidate)
        except DuplicateKeyFault as exc:
            if exc.field != "email":
                raise
            # Lost the race against a concurrent sign-up for the same email.
            self.logger.info("Sign-up rejected by unique index on email")
            return ConflictError(USER_EXISTS)

        self.tokens.set_cookie(response, self.tokens.issue(user.id))
        self.logger.info("User signed up (user_id=%s)", user.id)
        return user.to_public()

    async def sign_in(self, response, email: str | None, password: str | None) -> AuthResult:
        """Verify credentials, set the session cookie and return the public view."""
        if _blank(email) or _blank(password):
            return ValidationError("Email and password are required")
        email = normalize_email(email)

        user = await anyio.to_thread.run_sync(lambda: self.store.get_by_email(email, include_password=True))
        if user is None or not user.password:
            await anyio.to_thread.run_sync(self.hasher.verify_dummy, password)
            self.logger.info("Sign-in failed")
            return UnauthorizedError(BAD_CREDENTIALS)
        if not await anyio.to_thread.run_sync(self.hasher.verify, password, user.password):
            self.logger.info("Sign-in failed")
            return UnauthorizedError(BAD_CREDENTIALS)

        self.tokens.set_cookie(response, self.tokens.issue(user.id))
        self.logger.info("User signed in (user_id=%s)", user.id)
        return user.to_public()

    def sign_out(self, response) -> None:
        """Expire the session cookie. No store access; cannot fail."""
        self.tokens.revoke(response)

    async def get_current_user(self, identity: str) -> AuthResult:
        """Return the public view of an already-authenticated identity."""
        user = await anyio.to_thread.run_sync(self.store.get_by_id, identity)
        if user is None:
            return NotFoundError(USER_NOT_FOUND)
        return user.to_public()
