"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes (mounted under /api/v1):
  POST /auth/sign-up   -- create account; sets session cookie; 201
  POST /auth/sign-in   -- password sign-in; sets session cookie; 200
  GET  /auth/sign-out  -- expires session cookie; 204, empty body
  GET  /auth/me        -- current user (requires a valid session token)
  GET  /auth/test      -- liveness probe for the auth router

Each handler calls one AuthService operation and unwraps its result: a
PublicUser becomes the response body, an AppError is raised and rendered by the
error normalizer registered in api/main.py.

Security:
  Sign-in returns one generic 401 for unknown email and wrong password.
  Cache-Control: no-store on sign-up and sign-in responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from api.models import ErrorResponse, MessageResponse, SignInRequest, SignUpRequest, UserResponse
from auth.dependencies import get_auth_service, get_current_identity
from auth.service import AuthResult, AuthService
from core.errors import AppError

# Auth policy:
# - POST /api/v1/auth/sign-up:   public
# - POST /api/v1/auth/sign-in:   public
# - GET  /api/v1/auth/sign-out:  public -- clearing a cookie needs no prior auth
# - GET  /api/v1/auth/me:        requires auth (get_current_identity)
# - GET  /api/v1/auth/test:      public
router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _unwrap(result: AuthResult) -> UserResponse:
    if isinstance(result, AppError):
        raise result
    return UserResponse.from_public(result)


@router.post("/auth/sign-up", response_model=UserResponse, status_code=201, responses=_ERRORS)
async def sign_up(
    body: SignUpRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Create an account and start a session."""
    result = await service.sign_up(response, body.name, body.email, body.password)
    user = _unwrap(result)
    response.headers["Cache-Control"] = "no-store"
    return user


@router.post("/auth/sign-in", response_model=UserResponse, responses=_ERRORS)
async def sign_in(
    body: SignInRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Authenticate with email and password and start a session."""
    result = await service.sign_in(response, body.email, body.password)
    user = _unwrap(result)
    response.headers["Cache-Control"] = "no-store"
    return user


@router.get("/auth/sign-out", status_code=204, response_class=Response)
async def sign_out(service: AuthService = Depends(get_auth_service)) -> Response:
    """Expire the session cookie. Works whether or not the caller is signed in."""
    resp = Response(status_code=204)
    service.sign_out(resp)
    return resp


@router.get("/auth/me", response_model=UserResponse, responses=_ERRORS)
async def me(
    identity: str = Depends(get_current_identity),
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Return the currently authenticated user."""
    return _unwrap(await service.get_current_user(identity))


@router.get("/auth/test", response_model=MessageResponse)
async def test() -> MessageResponse:
    return MessageResponse(message="Auth route is working!")
