"""
auth/tokens.py -- Session token issuance and the session cookie contract.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry the
       user id ("sub"), issue time and expiry. Nothing is stored server-side;
       validity is signature + expiry. decode() returns None on any failure --
       the dependency layer turns that into a 401.

  Cookie: httpOnly (scripts cannot read it), samesite="lax" (not sent on
       cross-site POST), secure everywhere except development, max_age equal
       to the token lifetime so both expire together.

  Revocation: the cookie is overwritten with an empty value, the same
       attributes, max_age=0 and an epoch-zero expiry, so the browser purges it
       whatever it held before.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from core.config import Settings

logger = logging.getLogger("studytube.auth.tokens")

_ALGORITHM = "HS256"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TokenIssuer:
    """Mints, verifies and delivers session tokens.

    Usage:
        tokens = TokenIssuer(settings)
        tokens.set_cookie(response, tokens.issue(user.id))
        user_id = tokens.decode(request.cookies[tokens.cookie_name])
        tokens.revoke(response)
    """

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.secret_key
        self.cookie_name = settings.cookie_name
        self.expire_seconds = settings.token_expire_seconds
        self.secure = settings.secure_cookies

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def decode(self, token: str) -> str | None:
        """Verify a token and return its user id, or None if invalid or expired."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except JWTError as exc:
            logger.debug("Rejected session token: %s", exc)
            return None
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        return subject

    def set_cookie(self, response, token: str) -> None:
        """Attach token to a FastAPI/Starlette response as the session cookie."""
        response.set_cookie(
            self.cookie_name,
            value=token,
            httponly=True,
            samesite="lax",
            secure=self.secure,
            max_age=self.expire_seconds,
            path="/",
        )

    def revoke(self, response) -> None:
        """Overwrite the session cookie with an empty, already-expired value."""
        response.set_cookie(
            self.cookie_name,
            value="",
            httponly=True,
            samesite="lax",
            secure=self.secure,
            max_age=0,
            expires=_EPOCH,
            path="/",
        )
