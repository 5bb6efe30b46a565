"""
profiles/service.py -- Login, registration, and profile mutation operations.

Every operation takes the stores it needs as arguments and raises errors from
core/errors.py. Route handlers in api/routes/v1/ are thin wrappers that pull
the stores off app.state and the owner id off the auth guard.

Owner: the user id established by auth.dependencies.get_current_user_id() for
the current request. It is the only source of Profile.user_id; client input
never sets it.

The pure helpers (parse_skills, sparse_fields, merge_profile,
find_removal_index) carry the merge and removal rules and touch no storage.

Sub-record removal:
  The historical implementation located the sub-record with indexOf() and
  only removed it when the index was strictly positive, so the newest entry
  (index 0) could never be deleted and "not found" was silently ignored.
  By default removal here is by identity: a match anywhere is removed, a miss
  leaves the collection unchanged. Settings.legacy_subrecord_removal=True
  restores the positional check for clients that depend on it.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import replace
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token, hash_password
from core.config import get_settings
from core.errors import InvalidCredentials, NotFound, ValidationError
from core.ids import is_valid_id
from profiles.models import (
    PROFILE_SCALAR_FIELDS,
    SOCIAL_NETWORKS,
    Education,
    Experience,
    Profile,
    ProfileUpdate,
)
from profiles.store import ProfileStore

logger = logging.getLogger("devconnect.profiles")

NO_PROFILE_MSG = "There is no profile for this user"
PROFILE_NOT_FOUND_MSG = "Profile not found"

SubRecord = Union[Experience, Education]

# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def parse_skills(raw: str, strict: bool = False) -> list[str]:
    """Split a comma-separated skills string and trim each element.

    "node, express,  mongo" -> ["node", "express", "mongo"]

    Lenient (default): empty elements are kept, so "a,b," -> ["a", "b", ""].
    Strict: empty elements are dropped.
    """
    skills = [s.strip() for s in raw.split(",")]
    if strict:
        return [s for s in skills if s]
    return skills


def _supplied(value: Optional[str]) -> bool:
    return value is not None and value != ""


def sparse_fields(update: ProfileUpdate, strict_skills: bool = False) -> dict:
    """Return only the fields the client actually supplied.

    None and "" both count as "not supplied". Social links are gathered into a
    nested "social" mapping (present only if at least one link was supplied).
    """
    fields: dict = {}
    for name in PROFILE_SCALAR_FIELDS:
        value = getattr(update, name)
        if _supplied(value):
            fields[name] = value
    if _supplied(update.skills):
        fields["skills"] = parse_skills(update.skills, strict=strict_skills)
    social = {net: getattr(update, net) for net in SOCIAL_NETWORKS if _supplied(getattr(update, net))}
    if social:
        fields["social"] = social
    return fields


def merge_profile(profile: Profile, fields: dict) -> Profile:
    """Return a copy of profile with the sparse fields applied.

    Scalars and skills are overwritten; social merges key by key so links that
    were not resubmitted survive. user_id, sub-collections and ids are never
    touched.
    """
    changes = {k: v for k, v in fields.items() if k != "social"}
    if "social" in fields:
        changes["social"] = {**profile.social, **fields["social"]}
    return replace(profile, **changes)


def find_removal_index(records: list[SubRecord], sub_id: str, legacy: bool = False) -> int | None:
    """Return the index to remove for sub_id, or None to leave records as-is.

    legacy=True keeps the historical rule: only strictly positive indexes are
    removable, so a match at 0 behaves like a miss.
    """
    ids = [r.id for r in records]
    index = ids.index(sub_id) if sub_id in ids else -1
    if legacy:
        return index if index > 0 else None
    return index if index >= 0 else None


def gravatar_url(email: str) -> str:
    """Return the Gravatar URL for an email (200px, PG rating, mystery-man fallback)."""
    digest = hashlib.md5(email.strip().lower().encode("utf-8"), usedforsecurity=False).hexdigest()
    return f"//www.gravatar.com/avatar/{digest}?s=200&r=pg&d=mm"


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def login(user_store: UserStore, email: str, password: str) -> str:
    """Return a token for valid credentials.

    Unknown email and wrong password raise the same InvalidCredentials so a
    caller cannot enumerate registered addresses.
    """
    user = authenticate_user(user_store, email, password)
    if user is None:
        logger.info("Failed login attempt")
        raise InvalidCredentials()
    return create_access_token(user.id)


def register_user(user_store: UserStore, name: str, email: str, password: str) -> str:
    """Create an account and return a token for it."""
    if user_store.get_by_email(email) is not None:
        raise ValidationError([{"msg": "User already exists"}])
    user = User(
        name=name,
        email=email,
        hashed_password=hash_password(password),
        avatar=gravatar_url(email),
    )
    try:
        user_id = user_store.create_user(user)
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email.
        raise ValidationError([{"msg": "User already exists"}]) from exc
    logger.info("Registered user %s", user_id)
    return create_access_token(user_id)


def get_current_user(user_store: UserStore, owner: str) -> User:
    user = user_store.get_by_id(owner)
    if user is None:
        raise NotFound("User not found")
    return user


def delete_account(user_store: UserStore, profile_store: ProfileStore, owner: str) -> None:
    """Delete the owner's profile (if any) and user record.

    Irreversible. Content the user authored elsewhere is not removed.
    """
    if not is_valid_id(owner):
        raise NotFound(PROFILE_NOT_FOUND_MSG)
    profile_store.delete_by_user(owner)
    user_store.delete_user(owner)
    logger.info("Deleted account %s", owner)


# ---------------------------------------------------------------------------
# Profile reads
# ---------------------------------------------------------------------------


def get_current_profile(profile_store: ProfileStore, owner: str) -> Profile:
    profile = profile_store.get_by_user(owner)
    if profile is None:
        raise NotFound(NO_PROFILE_MSG)
    return profile


def get_profile_by_user(profile_store: ProfileStore, user_id: str) -> Profile:
    """Public lookup. A malformed id reads the same as an unknown one."""
    if not is_valid_id(user_id):
        raise NotFound(PROFILE_NOT_FOUND_MSG)
    profile = profile_store.get_by_user(user_id)
    if profile is None:
        raise NotFound(PROFILE_NOT_FOUND_MSG)
    return profile


def list_profiles(profile_store: ProfileStore) -> list[Profile]:
    return profile_store.list_profiles()


# ---------------------------------------------------------------------------
# Profile mutations
# ---------------------------------------------------------------------------


def upsert_profile(
    profile_store: ProfileStore,
    owner: str,
    update: ProfileUpdate,
    strict_skills: bool | None = None,
) -> Profile:
    """Create the owner's profile, or merge the supplied fields into it.

    Applying the same update twice leaves the same stored profile as applying
    it once.
    """
    if strict_skills is None:
        strict_skills = get_settings().strict_skills
    fields = sparse_fields(update, strict_skills=strict_skills)

    existing = profile_store.get_by_user(owner)
    if existing is None:
        try:
            profile_store.create_profile(merge_profile(Profile(user_id=owner), fields))
        except IntegrityError:
            # A concurrent request created it first; merge into that one.
            logger.info("Profile for %s created concurrently, merging", owner)
            existing = get_current_profile(profile_store, owner)
        else:
            logger.info("Created profile for %s", owner)
            return get_current_profile(profile_store, owner)

    profile_store.save_profile(merge_profile(existing, fields))
    return get_current_profile(profile_store, owner)


def add_experience(profile_store: ProfileStore, owner: str, record: Experience) -> Profile:
    """Prepend an experience entry. Does not create a missing profile."""
    profile = get_current_profile(profile_store, owner)
    profile.experience.insert(0, replace(record, id=None))
    profile_store.save_profile(profile)
    return profile


def add_education(profile_store: ProfileStore, owner: str, record: Education) -> Profile:
    """Prepend an education entry. Does not create a missing profile."""
    profile = get_current_profile(profile_store, owner)
    profile.education.insert(0, replace(record, id=None))
    profile_store.save_profile(profile)
    return profile


def _remove_subrecord(
    profile_store: ProfileStore,
    owner: str,
    collection: str,
    sub_id: str,
    legacy_removal: bool | None,
) -> Profile:
    if legacy_removal is None:
        legacy_removal = get_settings().legacy_subrecord_removal
    profile = profile_store.get_by_user(owner)
    if profile is None:
        raise NotFound(PROFILE_NOT_FOUND_MSG)

    records: list[SubRecord] = getattr(profile, collection)
    index = find_removal_index(records, sub_id, legacy=legacy_removal)
    if index is None:
        logger.warning("Not removing %s %s for %s: no removable match", collection, sub_id, owner)
        return profile

    del records[index]
    profile_store.save_profile(profile)
    logger.info("Removed %s %s (index %d) for %s", collection, sub_id, index, owner)
    return profile


def remove_experience(
    profile_store: ProfileStore, owner: str, exp_id: str, legacy_removal: bool | None = None
) -> Profile:
    return _remove_subrecord(profile_store, owner, "experience", exp_id, legacy_removal)


def remove_education(
    profile_store: ProfileStore, owner: str, edu_id: str, legacy_removal: bool | None = None
) -> Profile:
    return _remove_subrecord(profile_store, owner, "education", edu_id, legacy_removal)
