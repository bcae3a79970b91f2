"""Request/response models for the HTTP API."""

from typing import List

from pydantic import BaseModel, EmailStr, Field

from profilehub.models.user import PublicUser


class LoginRequest(BaseModel):
    """Request model for password login."""
    email: EmailStr = Field(..., description="Registered email address")
    password: str = Field(..., min_length=1, description="Account password")


class AuthResponse(BaseModel):
    """Response model for registration and login."""
    message: str
    token: str
    user: PublicUser


class UserResponse(BaseModel):
    message: str
    user: PublicUser


class UsersResponse(BaseModel):
    message: str
    count: int
    users: List[PublicUser]


class DeleteResponse(BaseModel):
    message: str
    user_id: str = Field(..., alias="userId")

    class Config:
        populate_by_name = True
