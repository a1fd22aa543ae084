"""Authentication and user profile schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import UUID4, EmailStr, Field

from .common import CamelModel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=2, max_length=200)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserRead(CamelModel):
    """Public view of a user. Never carries the password hash."""
    id: UUID4
    email: str
    name: str
    created_at: datetime


class AuthResponse(CamelModel):
    access_token: str
    user: UserRead
