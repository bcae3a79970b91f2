"""Data models for profilehub."""

from profilehub.models.user import (
    Gender,
    PublicUser,
    RegistrationForm,
    User,
    UserCreate,
    UserUpdate,
)

__all__ = [
    "Gender",
    "PublicUser",
    "RegistrationForm",
    "User",
    "UserCreate",
    "UserUpdate",
]
