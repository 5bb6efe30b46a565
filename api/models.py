"""
API request and response models for DevConnect REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
profiles/models.py, which own the internal domain representation. Route
handlers map between the two with the from_domain()/to_domain() helpers
colocated here.

Request models double as the validation collaborator: a request that reaches
a service function has already passed every required-field check below.
FIELD_MESSAGES supplies the client-facing message for each field; the
RequestValidationError handler in api/main.py uses it to build the
{"errors": [{"msg", "param"}]} body.

Separation of concerns: domain dataclasses = domain truth; api/ models = API contract.
"""

from datetime import date
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic_core import PydanticCustomError

from auth.models import User
from auth.tokens import BCRYPT_MAX_BYTES
from profiles.models import Education, Experience, Profile, ProfileUpdate

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# Passwords are taken byte for byte; every other credential field is trimmed.
_Email = Annotated[str, StringConstraints(strip_whitespace=True, pattern=EMAIL_PATTERN, max_length=255)]

MIN_PASSWORD_LENGTH = 6

# Error type used by validators whose message is already client-facing.
CUSTOM_ERROR_TYPE = "devconnect"

FIELD_MESSAGES: dict[str, str] = {
    "name": "Name is required",
    "email": "Please include a valid email",
    "password": "Password is required",
    "status": "Status is required",
    "skills": "Skills is required",
    "title": "Title required",
    "company": "Company required",
    "school": "School required",
    "degree": "Degree required",
    "fieldofstudy": "Field of study required",
    "from": "From date required",
    "to": "To date must be a valid date",
}


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/auth."""

    email: _Email
    password: str = Field(min_length=1, max_length=255)


class RegisterRequest(BaseModel):
    """Request body for POST /api/users."""

    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    email: _Email
    password: str = Field(max_length=255)

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise PydanticCustomError(
                CUSTOM_ERROR_TYPE,
                f"Please enter a password with {MIN_PASSWORD_LENGTH} or more characters",
            )
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise PydanticCustomError(
                CUSTOM_ERROR_TYPE,
                f"Please enter a password of at most {BCRYPT_MAX_BYTES} bytes",
            )
        return value


class ProfileUpsertRequest(BaseModel):
    """Request body for POST /api/profile.

    status and skills are required on every submission; everything else is
    optional and only overwrites the stored value when non-empty.
    skills is the raw comma-separated string ("python, fastapi, sql").
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    status: str = Field(min_length=1, max_length=255)
    skills: str = Field(min_length=1, max_length=2000)
    company: Optional[str] = Field(default=None, max_length=255)
    website: Optional[str] = Field(default=None, max_length=2048)
    location: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=5000)
    githubusername: Optional[str] = Field(default=None, max_length=100)
    youtube: Optional[str] = Field(default=None, max_length=2048)
    twitter: Optional[str] = Field(default=None, max_length=2048)
    facebook: Optional[str] = Field(default=None, max_length=2048)
    linkedin: Optional[str] = Field(default=None, max_length=2048)
    instagram: Optional[str] = Field(default=None, max_length=2048)

    def to_domain(self) -> ProfileUpdate:
        return ProfileUpdate(**self.model_dump())


class ExperienceCreate(BaseModel):
    """Request body for PUT /api/profile/experience."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    title: str = Field(min_length=1, max_length=255)
    company: str = Field(min_length=1, max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    from_date: date = Field(alias="from")
    to_date: Optional[date] = Field(default=None, alias="to")
    current: bool = False
    description: Optional[str] = Field(default=None, max_length=5000)

    def to_domain(self) -> Experience:
        return Experience(
            title=self.title,
            company=self.company,
            location=self.location,
            from_date=self.from_date.isoformat(),
            to_date=self.to_date.isoformat() if self.to_date else None,
            current=self.current,
            description=self.description,
        )


class EducationCreate(BaseModel):
    """Request body for PUT /api/profile/education."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    school: str = Field(min_length=1, max_length=255)
    degree: str = Field(min_length=1, max_length=255)
    fieldofstudy: str = Field(min_length=1, max_length=255)
    from_date: date = Field(alias="from")
    to_date: Optional[date] = Field(default=None, alias="to")
    current: bool = False
    description: Optional[str] = Field(default=None, max_length=5000)

    def to_domain(self) -> Education:
        return Education(
            school=self.school,
            degree=self.degree,
            fieldofstudy=self.fieldofstudy,
            from_date=self.from_date.isoformat(),
            to_date=self.to_date.isoformat() if self.to_date else None,
            current=self.current,
            description=self.description,
        )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    msg: str


class UserResponse(BaseModel):
    """The caller's own account. There is no password field by construction."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    avatar: str
    date: str

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            avatar=user.avatar,
            date=user.created_at or "",
        )


class ProfileUserRef(BaseModel):
    """The public slice of the owning user joined onto every profile."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    avatar: Optional[str] = None


class ExperienceResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    company: str
    location: Optional[str] = None
    from_date: str = Field(alias="from")
    to_date: Optional[str] = Field(default=None, alias="to")
    current: bool = False
    description: Optional[str] = None

    @classmethod
    def from_domain(cls, exp: Experience) -> "ExperienceResponse":
        return cls(
            id=exp.id,
            title=exp.title,
            company=exp.company,
            location=exp.location,
            from_date=exp.from_date,
            to_date=exp.to_date,
            current=exp.current,
            description=exp.description,
        )


class EducationResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    school: str
    degree: str
    fieldofstudy: str
    from_date: str = Field(alias="from")
    to_date: Optional[str] = Field(default=None, alias="to")
    current: bool = False
    description: Optional[str] = None

    @classmethod
    def from_domain(cls, edu: Education) -> "EducationResponse":
        return cls(
            id=edu.id,
            school=edu.school,
            degree=edu.degree,
            fieldofstudy=edu.fieldofstudy,
            from_date=edu.from_date,
            to_date=edu.to_date,
            current=edu.current,
            description=edu.description,
        )


class ProfileResponse(BaseModel):
    """Full profile document with the owner's name and avatar joined in."""

    model_config = ConfigDict(frozen=True)

    id: str
    user: ProfileUserRef
    company: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    status: Optional[str] = None
    githubusername: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    social: dict[str, str] = Field(default_factory=dict)
    experience: list[ExperienceResponse] = Field(default_factory=list)
    education: list[EducationResponse] = Field(default_factory=list)
    date: str

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            id=profile.id,
            user=ProfileUserRef(id=profile.user_id, name=profile.user_name, avatar=profile.user_avatar),
            company=profile.company,
            website=profile.website,
            location=profile.location,
            bio=profile.bio,
            status=profile.status,
            githubusername=profile.githubusername,
            skills=list(profile.skills),
            social=dict(profile.social),
            experience=[ExperienceResponse.from_domain(e) for e in profile.experience],
            education=[EducationResponse.from_domain(e) for e in profile.education],
            date=profile.created_at,
        )


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
