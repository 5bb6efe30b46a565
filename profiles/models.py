"""
profiles/models.py -- Domain dataclasses for profiles.

Pure data containers with zero logic. The merge rules live in
profiles/service.py; persistence lives in profiles/store.py.

Dates are ISO 8601 strings ("YYYY-MM-DD") at this layer. The API models parse
and validate them; the store keeps them as text inside the JSON columns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

SOCIAL_NETWORKS: tuple[str, ...] = ("youtube", "twitter", "facebook", "linkedin", "instagram")

# Scalar profile fields a client may set. `user_id` is deliberately absent:
# it always comes from the authenticated owner.
PROFILE_SCALAR_FIELDS: tuple[str, ...] = ("company", "website", "location", "bio", "status", "githubusername")


@dataclass
class Experience:
    title: str
    company: str
    from_date: str
    location: Optional[str] = None
    to_date: Optional[str] = None
    current: bool = False
    description: Optional[str] = None
    id: Optional[str] = None  # assigned by the store on first write


@dataclass
class Education:
    school: str
    degree: str
    fieldofstudy: str
    from_date: str
    to_date: Optional[str] = None
    current: bool = False
    description: Optional[str] = None
    id: Optional[str] = None  # assigned by the store on first write


@dataclass
class Profile:
    """One developer profile. Exactly one per user (UNIQUE user_id).

    experience and education are most-recently-added first.
    user_name / user_avatar are read-only joins from the users table,
    filled by ProfileStore reads and ignored on write.
    """

    user_id: str
    id: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    status: Optional[str] = None
    githubusername: Optional[str] = None
    skills: list[str] = field(default_factory=list)
    social: dict[str, str] = field(default_factory=dict)
    experience: list[Experience] = field(default_factory=list)
    education: list[Education] = field(default_factory=list)
    created_at: str = ""
    user_name: Optional[str] = None
    user_avatar: Optional[str] = None


@dataclass
class ProfileUpdate:
    """Partial update submitted by the profile owner.

    None means "not supplied"; the merge leaves the stored value alone.
    skills is the raw comma-separated string as typed by the user.
    """

    company: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    status: Optional[str] = None
    githubusername: Optional[str] = None
    skills: Optional[str] = None
    youtube: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    linkedin: Optional[str] = None
    instagram: Optional[str] = None
