"""
Authentication endpoints.

- Email/Password registration & login, both returning a bearer access token
- Current-user lookup
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_current_user
from app.core.database import get_session
from app.services.users import authenticate_user, issue_token, register_user
from taskapp_shared.schemas.users import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserRead,
)

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
):
    """Register a new user with email/password."""
    user = await register_user(session, body)
    return issue_token(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive an access token."""
    user = await authenticate_user(session, body)
    return issue_token(user)


@router.get("/me", response_model=UserRead)
async def me(auth: AuthenticatedUser = Depends(get_current_user)):
    return UserRead.model_validate(auth.user, from_attributes=True)
