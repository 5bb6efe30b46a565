"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two token locations are checked in priority order:
  1. x-auth-token header -- what the DevConnect client sends.
  2. Authorization: Bearer <token> header -- generic API clients.

get_current_user_id() resolves to exactly one of: the authenticated user id,
or an Unauthorized error whose kind says whether a token was presented at all.
Handlers that depend on it receive the id only on success and trust it as the
caller's identity without re-checking.

Layer rule: no imports from api/ or profiles/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.tokens import decode_access_token
from core.errors import AuthFailure, Unauthorized

TOKEN_HEADER = "x-auth-token"


def get_request_token(request: Request) -> str | None:
    """Return the bearer token carried by the request, or None if absent."""
    token = request.headers.get(TOKEN_HEADER, "").strip()
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def get_current_user_id(request: Request) -> str:
    """Require a valid token. Raises Unauthorized (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/profile/me")
        async def route(owner: str = Depends(get_current_user_id)): ...
    """
    token = get_request_token(request)
    if token is None:
        raise Unauthorized(AuthFailure.NO_TOKEN)
    user_id = decode_access_token(token)
    if user_id is None:
        raise Unauthorized(AuthFailure.INVALID_TOKEN)
    return user_id
