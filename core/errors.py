"""
core/errors.py -- Error taxonomy shared by every layer.

Each error carries the HTTP status it maps to so the exception handlers in
api/main.py stay a thin rendering step. Services raise these; routes never
build error responses by hand.

  ValidationError     400  malformed or missing input, list of field messages
  InvalidCredentials  400  login failure, cause deliberately hidden
  NotFound            400  missing user / profile / identifier
  Unauthorized        401  missing or invalid bearer token
  StoreError          500  persistence failure, detail logged, never returned

Layer rule: core/ is the kernel. No project imports.
"""

from __future__ import annotations

from enum import Enum


class DevConnectError(Exception):
    """Base class for errors that end a request with a structured response."""

    status_code: int = 400

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DevConnectError):
    """Input failed validation.

    errors is a list of {"msg": ..., "param": ...} dicts, one per failing
    field. "param" is omitted for errors not tied to a single field.
    """

    def __init__(self, errors: list[dict]) -> None:
        super().__init__("; ".join(e.get("msg", "") for e in errors))
        self.errors = errors


class InvalidCredentials(DevConnectError):
    """Unknown email and wrong password both raise this, with the same message."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class NotFound(DevConnectError):
    pass


class AuthFailure(str, Enum):
    NO_TOKEN = "no_token"
    INVALID_TOKEN = "invalid_token"


_AUTH_MESSAGES = {
    AuthFailure.NO_TOKEN: "No token, authorization denied",
    AuthFailure.INVALID_TOKEN: "Token is not valid",
}


class Unauthorized(DevConnectError):
    status_code = 401

    def __init__(self, kind: AuthFailure) -> None:
        super().__init__(_AUTH_MESSAGES[kind])
        self.kind = kind


class StoreError(DevConnectError):
    """The database could not be reached or refused the operation."""

    status_code = 500
