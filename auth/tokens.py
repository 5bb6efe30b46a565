"""
auth/tokens.py -- JWT and password hashing utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       only {"user": {"id": ...}} plus the expiry claim. Verification returns
       None on any failure (bad signature, tampered payload, expiry) -- the
       guard turns that into a 401 without saying which check failed.

       There is no revocation list. A token stays valid until it expires,
       so the expiry horizon (Settings.token_expire_seconds) is the only
       lifetime bound.

  Passwords: bcrypt with a fresh salt per hash. The _DUMMY_HASH constant
       enables timing equalization in authenticate_user() so response time
       does not reveal whether an email is registered.

Layer rule: no imports from api/ or profiles/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("devconnect.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

# bcrypt rejects longer input.
BCRYPT_MAX_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Two calls with the same plaintext return different hashes (distinct
    salts); verify_password() accepts either. Raises ValueError for input
    longer than BCRYPT_MAX_BYTES.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A mismatch returns False, and so does a plaintext longer than
    BCRYPT_MAX_BYTES, which no stored hash can match. A malformed hash raises
    ValueError from bcrypt: stored hashes are produced by hash_password(), so
    a bad one is a data corruption bug, not a login failure.
    """
    password = plain.encode("utf-8")
    if len(password) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(password, hashed.encode("utf-8"))


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("devconnect_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT for the given user id.

    Args:
        user_id:        Store-assigned user identifier.
        expire_seconds: Lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    expire = datetime.now(timezone.utc) + timedelta(seconds=duration)
    payload = {
        "user": {"id": user_id},
        "exp": expire,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> str | None:
    """Verify a JWT and return the embedded user id, or None on any failure."""
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    user = payload.get("user")
    if not isinstance(user, dict) or not isinstance(user.get("id"), str):
        return None
    return user["id"]


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the email is registered:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
