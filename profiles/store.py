"""
profiles/store.py -- SQLAlchemy Core persistence layer for profiles.

Pattern: Repository + Data Mapper (same as auth/store.py). ProfileStore is the
repository; _row_to_profile and the _*_from_dict helpers are the mappers.

A profile is stored as one row: scalar fields are columns, while skills,
social, experience and education are JSON serialized into TEXT columns, so a
profile is read and written as a whole document. Writes are read-modify-write
from the service layer and are not atomic across concurrent requests for the
same owner; the last save wins.

UNIQUE(user_id) enforces one profile per user at the database level.

Reads join users.name and users.avatar onto the profile (outer join, so a
profile whose user row is gone still reads).

Layer rule: imports from core/ and auth/ only.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict

from sqlalchemy import Column, String, Table, Text, select
from sqlalchemy.engine import Engine

from auth.store import build_engine, connect, metadata, now_iso, users
from core.config import get_settings
from core.ids import new_id
from profiles.models import Education, Experience, Profile

logger = logging.getLogger("devconnect.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

profiles = Table(
    "profiles",
    metadata,
    Column("id", String(24), primary_key=True),
    Column("user_id", String(24), nullable=False, unique=True),
    Column("company", Text),
    Column("website", Text),
    Column("location", Text),
    Column("bio", Text),
    Column("status", Text),
    Column("githubusername", String(100)),
    Column("skills", Text),  # JSON array of strings
    Column("social", Text),  # JSON object, keys from SOCIAL_NETWORKS
    Column("experience", Text),  # JSON array, newest first
    Column("education", Text),  # JSON array, newest first
    Column("created_at", String(32), nullable=False),
)

_joined = profiles.outerjoin(users, profiles.c.user_id == users.c.id)
_joined_select = select(profiles, users.c.name.label("user_name"), users.c.avatar.label("user_avatar")).select_from(
    _joined
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ProfileStore:
    """Repository for Profile documents.

    Usage:
        store = ProfileStore()
        store.create_profile(Profile(user_id=uid, status="Developer", skills=["python"]))
        profile = store.get_by_user(uid)
        profile.experience.insert(0, Experience(title="Dev", company="Acme", from_date="2020-01-01"))
        store.save_profile(profile)
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = build_engine(db_url or get_settings().database_url)

    def get_by_user(self, user_id: str) -> Profile | None:
        """Return the profile owned by user_id with name/avatar joined, or None."""
        with connect(self.engine) as conn:
            row = conn.execute(_joined_select.where(profiles.c.user_id == user_id)).fetchone()
        return _row_to_profile(row) if row is not None else None

    def list_profiles(self) -> list[Profile]:
        """Return every profile, oldest first, with name/avatar joined."""
        with connect(self.engine) as conn:
            rows = conn.execute(_joined_select.order_by(profiles.c.created_at, profiles.c.id)).fetchall()
        return [_row_to_profile(r) for r in rows]

    def create_profile(self, profile: Profile) -> str:
        """Insert a new profile and return its id.

        Sub-records without an id get one. Fills profile.id and
        profile.created_at in place.

        Raises sqlalchemy.exc.IntegrityError if the user already has a profile.
        """
        _assign_subrecord_ids(profile)
        profile_id = new_id()
        created_at = now_iso()
        with connect(self.engine) as conn:
            conn.execute(
                profiles.insert().values(
                    id=profile_id,
                    user_id=profile.user_id,
                    created_at=created_at,
                    **_document_values(profile),
                )
            )
            conn.commit()
        profile.id = profile_id
        profile.created_at = created_at
        return profile_id

    def save_profile(self, profile: Profile) -> bool:
        """Overwrite the stored document for profile.user_id.

        user_id and created_at are never rewritten. Sub-records without an id
        get one, in place. Returns False if no profile exists for the user.
        """
        _assign_subrecord_ids(profile)
        with connect(self.engine) as conn:
            result = conn.execute(
                profiles.update().where(profiles.c.user_id == profile.user_id).values(**_document_values(profile))
            )
            conn.commit()
        return result.rowcount > 0

    def delete_by_user(self, user_id: str) -> bool:
        """Delete the profile owned by user_id. Returns True if a row was removed."""
        with connect(self.engine) as conn:
            result = conn.execute(profiles.delete().where(profiles.c.user_id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _assign_subrecord_ids(profile: Profile) -> None:
    for record in (*profile.experience, *profile.education):
        if record.id is None:
            record.id = new_id()


def _document_values(profile: Profile) -> dict:
    return {
        "company": profile.company,
        "website": profile.website,
        "location": profile.location,
        "bio": profile.bio,
        "status": profile.status,
        "githubusername": profile.githubusername,
        "skills": json.dumps(profile.skills),
        "social": json.dumps(profile.social),
        "experience": json.dumps([asdict(e) for e in profile.experience]),
        "education": json.dumps([asdict(e) for e in profile.education]),
    }


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _experience_from_dict(data: dict) -> Experience:
    return Experience(
        id=data.get("id"),
        title=data["title"],
        company=data["company"],
        location=data.get("location"),
        from_date=data["from_date"],
        to_date=data.get("to_date"),
        current=bool(data.get("current", False)),
        description=data.get("description"),
    )


def _education_from_dict(data: dict) -> Education:
    return Education(
        id=data.get("id"),
        school=data["school"],
        degree=data["degree"],
        fieldofstudy=data["fieldofstudy"],
        from_date=data["from_date"],
        to_date=data.get("to_date"),
        current=bool(data.get("current", False)),
        description=data.get("description"),
    )


def _row_to_profile(row) -> Profile:
    return Profile(
        id=row.id,
        user_id=row.user_id,
        company=row.company,
        website=row.website,
        location=row.location,
        bio=row.bio,
        status=row.status,
        githubusername=row.githubusername,
        skills=json.loads(row.skills) if row.skills else [],
        social=json.loads(row.social) if row.social else {},
        experience=[_experience_from_dict(d) for d in json.loads(row.experience or "[]")],
        education=[_education_from_dict(d) for d in json.loads(row.education or "[]")],
        created_at=row.created_at,
        user_name=row.user_name,
        user_avatar=row.user_avatar,
    )
