"""Pydantic schemas for registration, login, and user profiles.

Learn: Password length is deliberately NOT a Field constraint here. The
rule lives in AuthService so the failure carries its exact message
("Password must be at least 6 characters") instead of a generic
request-validation error.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=1, max_length=255)
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UserPublic(BaseModel):
    """The only user fields that ever leave the server."""
    id: int
    username: str
    email: str

    model_config = {"from_attributes": True}


class UserProfile(UserPublic):
    created_at: datetime


class AuthResponse(BaseModel):
    token: str
    user: UserPublic


class ProfileResponse(BaseModel):
    user: UserProfile
