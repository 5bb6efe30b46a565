"""
api/routes/v1/profile.py -- Profile REST endpoints.

Routes:
  GET    /api/profile                       -- all profiles (public)
  GET    /api/profile/me                    -- caller's profile (requires auth)
  GET    /api/profile/user/{user_id}        -- one user's profile (public)
  POST   /api/profile                       -- create or merge-update caller's profile (requires auth)
  DELETE /api/profile                       -- delete caller's profile and account (requires auth)
  PUT    /api/profile/experience            -- prepend an experience entry (requires auth)
  DELETE /api/profile/experience/{exp_id}   -- remove an experience entry (requires auth)
  PUT    /api/profile/education             -- prepend an education entry (requires auth)
  DELETE /api/profile/education/{edu_id}    -- remove an education entry (requires auth)

Ownership: every private route acts on the profile whose user_id equals the
token's user id. There is no way to address another user's profile for
writing, so no per-route IDOR check is needed.

Route registration order matters: GET /profile/me must be registered before
anything that could capture "me" as a path parameter.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import (
    EducationCreate,
    ExperienceCreate,
    MessageResponse,
    ProfileResponse,
    ProfileUpsertRequest,
)
from auth.dependencies import get_current_user_id
from profiles import service

router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.get("/profile", response_model=list[ProfileResponse])
def list_profiles(request: Request) -> list[ProfileResponse]:
    profiles = service.list_profiles(request.app.state.profile_store)
    return [ProfileResponse.from_domain(p) for p in profiles]


@router.get("/profile/me", response_model=ProfileResponse)
def my_profile(request: Request, owner: str = Depends(get_current_user_id)) -> ProfileResponse:
    profile = service.get_current_profile(request.app.state.profile_store, owner)
    return ProfileResponse.from_domain(profile)


@router.get("/profile/user/{user_id}", response_model=ProfileResponse)
def profile_by_user(request: Request, user_id: str) -> ProfileResponse:
    profile = service.get_profile_by_user(request.app.state.profile_store, user_id)
    return ProfileResponse.from_domain(profile)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/profile", response_model=ProfileResponse)
def upsert_profile(
    request: Request,
    body: ProfileUpsertRequest,
    owner: str = Depends(get_current_user_id),
) -> ProfileResponse:
    """Create the caller's profile, or merge the non-empty fields into it."""
    profile = service.upsert_profile(request.app.state.profile_store, owner, body.to_domain())
    return ProfileResponse.from_domain(profile)


@router.delete("/profile", response_model=MessageResponse)
def delete_account(request: Request, owner: str = Depends(get_current_user_id)) -> MessageResponse:
    """Delete the caller's profile and user record. Irreversible."""
    service.delete_account(request.app.state.user_store, request.app.state.profile_store, owner)
    return MessageResponse(msg="User deleted")


@router.put("/profile/experience", response_model=ProfileResponse)
def add_experience(
    request: Request,
    body: ExperienceCreate,
    owner: str = Depends(get_current_user_id),
) -> ProfileResponse:
    profile = service.add_experience(request.app.state.profile_store, owner, body.to_domain())
    return ProfileResponse.from_domain(profile)


@router.delete("/profile/experience/{exp_id}", response_model=ProfileResponse)
def remove_experience(
    request: Request,
    exp_id: str,
    owner: str = Depends(get_current_user_id),
) -> ProfileResponse:
    profile = service.remove_experience(request.app.state.profile_store, owner, exp_id)
    return ProfileResponse.from_domain(profile)


@router.put("/profile/education", response_model=ProfileResponse)
def add_education(
    request: Request,
    body: EducationCreate,
    owner: str = Depends(get_current_user_id),
) -> ProfileResponse:
    profile = service.add_education(request.app.state.profile_store, owner, body.to_domain())
    return ProfileResponse.from_domain(profile)


@router.delete("/profile/education/{edu_id}", response_model=ProfileResponse)
def remove_education(
    request: Request,
    edu_id: str,
    owner: str = Depends(get_current_user_id),
) -> ProfileResponse:
    profile = service.remove_education(request.app.state.profile_store, owner, edu_id)
    return ProfileResponse.from_domain(profile)
