"""
auth/store.py -- SQLAlchemy Core persistence layer for the User entity.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  email is UNIQUE at the database level; create_user() lets IntegrityError
  propagate so the caller can tell a duplicate registration apart from an
  infrastructure failure.

The users table lives on the shared `metadata` so profiles/store.py can
declare the profiles table against it and join on users.id.

Layer rule: no imports from api/ or profiles/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import OperationalError

from auth.models import User
from core.config import get_settings
from core.errors import StoreError
from core.ids import new_id

logger = logging.getLogger("devconnect.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", String(24), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("avatar", Text),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Engine helpers (shared with profiles/store.py)
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def build_engine(db_url: str) -> Engine:
    """Create an engine and make sure every table on `metadata` exists."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    metadata.create_all(engine)
    return engine


@contextmanager
def connect(engine: Engine) -> Iterator[Connection]:
    """Open a connection, translating infrastructure failures into StoreError.

    Only OperationalError (unreachable DB, locked file, missing table) is
    translated. IntegrityError propagates unchanged -- it is a domain signal
    (duplicate email, second profile for a user), not an outage.
    """
    try:
        with engine.connect() as conn:
            yield conn
    except OperationalError as exc:
        logger.error("Database operation failed: %s", exc)
        raise StoreError("Database unavailable") from exc


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        uid = store.create_user(User(name="Ada", email="ada@example.com", hashed_password=hash_password("s3cret")))
        user = store.get_by_email("ada@example.com")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = build_engine(db_url or get_settings().database_url)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with connect(self.engine) as conn:
                conn.execute(text("SELECT 1"))
        except StoreError:
            return False
        return True

    def create_user(self, user: User) -> str:
        """Insert a new user and return its assigned id.

        Raises sqlalchemy.exc.IntegrityError if the email is already registered.
        """
        user_id = new_id()
        with connect(self.engine) as conn:
            conn.execute(
                users.insert().values(
                    id=user_id,
                    name=user.name,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    avatar=user.avatar,
                    created_at=now_iso(),
                )
            )
            conn.commit()
        return user_id

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with connect(self.engine) as conn:
            row = conn.execute(users.select().where(users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        with connect(self.engine) as conn:
            row = conn.execute(users.select().where(users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def delete_user(self, user_id: str) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        The caller removes the user's profile first (profiles/service.py
        delete_account); this method does not cascade.
        """
        with connect(self.engine) as conn:
            result = conn.execute(users.delete().where(users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        avatar=row.avatar or "",
        created_at=row.created_at,
    )
