"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two token sources are checked in priority order:
  1. Session cookie (name from Settings.cookie_name) -- set by sign-up/sign-in.
  2. Authorization: Bearer <token> header -- non-browser API clients.

Both resolve to a user id only; loading the user record is the auth service's
job (GET /auth/me), so a deleted account surfaces as 404 there rather than 401
here.

Layer rule: auth/dependencies.py may import from fastapi because it is part of
the FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

from fastapi import Request

from auth.service import AuthService
from auth.tokens import TokenIssuer
from core.errors import UnauthorizedError


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.auth_service.tokens


def _extract_token(request: Request, cookie_name: str) -> str | None:
    token = request.cookies.get(cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def get_current_identity(request: Request) -> str:
    """Require a valid session token and return the user id it carries.

    Raises UnauthorizedError (rendered as 401 by the error normalizer).

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(identity: str = Depends(get_current_identity)): ...
    """
    tokens = get_token_issuer(request)
    token = _extract_token(request, tokens.cookie_name)
    if token is None:
        raise UnauthorizedError("Not authorized, no token")
    identity = tokens.decode(token)
    if identity is None:
        raise UnauthorizedError("Not authorized, token failed")
    return identity
