"""
auth/models.py -- Domain dataclass for the User entity.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work.

Layer rule: no imports from api/ or profiles/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    hashed_password is a bcrypt hash and never leaves the service layer: the
    API response models have no field for it.

    id is None before the record is written to the database.
    """

    name: str
    email: str
    hashed_password: str
    avatar: str = ""
    id: str | None = None
    created_at: str | None = None
