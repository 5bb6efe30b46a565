"""
core/ids.py -- Opaque record identifiers.

Users, profiles and profile sub-records all use 24 lowercase hex characters
(96 bits from the OS CSPRNG). Identifiers arriving from URLs are checked with
is_valid_id() before they reach a query so a malformed id reads as "not found".
"""

import re
import secrets

_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


def new_id() -> str:
    return secrets.token_hex(12)


def is_valid_id(value: object) -> bool:
    return isinstance(value, str) and bool(_ID_PATTERN.match(value))
