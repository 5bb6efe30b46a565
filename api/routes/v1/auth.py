"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  GET  /api/auth   -- current user's account, password hash excluded (requires auth)
  POST /api/auth   -- email/password login; returns a bearer token
  POST /api/users  -- register a new account; returns a bearer token

Security:
  POST /auth and POST /users are rate-limited per IP (Settings.login_rate_limit).
  profiles.service.login() goes through authenticate_user(), which equalizes
  timing between "unknown email" and "wrong password". Do NOT inline the
  lookup + verify here.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from auth.dependencies import get_current_user_id
from auth.store import UserStore
from core.config import get_settings
from profiles import service

_settings = get_settings()

# Auth policy:
# - GET  /api/auth:   requires auth (get_current_user_id)
# - POST /api/auth:   public -- login endpoint must be unauthenticated
# - POST /api/users:  public -- registration
router = APIRouter()


def _token_response(token: str) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=TokenResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth", response_model=UserResponse)
def current_user(request: Request, owner: str = Depends(get_current_user_id)) -> UserResponse:
    """Return the authenticated user's account."""
    user_store: UserStore = request.app.state.user_store
    return UserResponse.from_domain(service.get_current_user(user_store, owner))


@limiter.limit(_settings.login_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth", response_model=TokenResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Wrong email and wrong password produce the same 400 body.
    """
    user_store: UserStore = request.app.state.user_store
    return _token_response(service.login(user_store, body.email, body.password))


@limiter.limit(_settings.login_rate_limit)
@router.post("/users", response_model=TokenResponse)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and log it in."""
    user_store: UserStore = request.app.state.user_store
    return _token_response(service.register_user(user_store, body.name, body.email, body.password))
