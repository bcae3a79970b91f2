"""User data models for profilehub."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from profilehub.errors import ValidationError

M = TypeVar("M", bound=BaseModel)


class Gender(str, Enum):
    """Gender enumeration."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


def _parse_timestamp(value: Any) -> Any:
    """Accept ISO dates ("2000-01-31") and timestamps, including a trailing Z."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return value
    return value


def _clean_hobbies(value: Any) -> Any:
    if value is None:
        return value
    if isinstance(value, str):
        value = [value]
    if isinstance(value, (list, tuple)):
        return [h.strip() for h in value if isinstance(h, str) and h.strip()]
    return value


class User(BaseModel):
    """Stored user record. Carries the password hash; never serialize it to clients."""

    id: str = Field(..., description="Unique user identifier (UUID v4)")
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    email: str = Field(..., description="Lower-cased, unique email address")
    password_hash: str = Field(..., description="Salted password hash")
    dob: datetime = Field(..., description="Date of birth")
    gender: Gender = Field(..., description="Gender")
    hobbies: List[str] = Field(default_factory=list, description="Free-text hobby tags")
    photo: str = Field(..., description="Blob store locator of the profile photo")
    is_email_verified: bool = Field(False, description="Whether the email address was verified")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")

    @property
    def display_name(self) -> str:
        return self.first_name

    def to_public(self, photo_url: Optional[str]) -> "PublicUser":
        """Build the external representation with a signed photo URL in place of the locator."""
        return PublicUser(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            dob=self.dob,
            gender=self.gender,
            hobbies=list(self.hobbies),
            photo=photo_url,
            is_email_verified=self.is_email_verified,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class PublicUser(BaseModel):
    """User as returned by the API (camelCase keys, no password)."""

    id: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: str
    dob: datetime
    gender: Gender
    hobbies: List[str] = Field(default_factory=list)
    photo: Optional[str] = Field(None, description="Time-limited signed URL, or null")
    is_email_verified: bool = Field(False, alias="isEmailVerified")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    class Config:
        populate_by_name = True


class RegistrationForm(BaseModel):
    """Fields submitted on registration, before the photo is uploaded."""

    first_name: str = Field(..., alias="firstName", min_length=1)
    last_name: str = Field(..., alias="lastName", min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=255)
    dob: datetime
    gender: Gender
    hobbies: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()

    @field_validator("dob", mode="before")
    @classmethod
    def _parse_dob(cls, v):
        return _parse_timestamp(v)

    @field_validator("hobbies", mode="before")
    @classmethod
    def _parse_hobbies(cls, v):
        return _clean_hobbies(v) or []


class UserCreate(RegistrationForm):
    """Complete set of fields needed to persist a new user."""

    photo: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    """Partial update; only fields that are set are applied."""

    first_name: Optional[str] = Field(None, alias="firstName", min_length=1)
    last_name: Optional[str] = Field(None, alias="lastName", min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=255)
    dob: Optional[datetime] = None
    gender: Optional[Gender] = None
    hobbies: Optional[List[str]] = None

    class Config:
        populate_by_name = True

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower() if v is not None else v

    @field_validator("dob", mode="before")
    @classmethod
    def _parse_dob(cls, v):
        return _parse_timestamp(v)

    @field_validator("hobbies", mode="before")
    @classmethod
    def _parse_hobbies(cls, v):
        return _clean_hobbies(v)

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly provided, keyed by attribute name."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


REGISTRATION_MESSAGES = {
    "firstName": "First name is required",
    "lastName": "Last name is required",
    "email": "Invalid email format",
    "password": "Password must be at least 6 characters",
    "dob": "Date of birth is required",
    "gender": "Invalid gender",
    "hobbies": "Hobbies must be a list of text values",
    "photo": "Photo is required",
}

UPDATE_MESSAGES = {
    **REGISTRATION_MESSAGES,
    "firstName": "First name cannot be empty",
    "lastName": "Last name cannot be empty",
    "dob": "Invalid date of birth",
}


def field_errors(exc: PydanticValidationError, messages: Dict[str, str]) -> List[Dict[str, str]]:
    """Flatten pydantic errors into one ``{field, message}`` entry per field."""
    errors: List[Dict[str, str]] = []
    seen = set()
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "__root__"
        if field in seen:
            continue
        seen.add(field)
        errors.append({"field": field, "message": messages.get(field, err["msg"])})
    return errors


def parse_fields(model_cls: Type[M], data: Dict[str, Any], messages: Dict[str, str] = REGISTRATION_MESSAGES) -> M:
    """Validate raw input into ``model_cls``.

    Raises:
        ValidationError: with the structured per-field error list
    """
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(field_errors(exc, messages)) from exc
