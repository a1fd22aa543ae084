"""
User service: registration and credential checks.
"""

from __future__ import annotations

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import create_jwt, hash_password, verify_password
from app.models.user import User
from taskapp_shared.schemas.users import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserRead,
)

log = structlog.get_logger()


async def register_user(session: AsyncSession, req: RegisterRequest) -> User:
    """Create a user. Emails are compared case-insensitively."""
    email = req.email.lower()
    result = await session.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=email,
        name=req.name,
        password_hash=hash_password(req.password),
    )
    session.add(user)
    await session.flush()

    log.info("user.registered", user_id=str(user.id), email=email)
    return user


async def authenticate_user(session: AsyncSession, req: LoginRequest) -> User:
    email = req.email.lower()
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user:
        log.warning("auth.login_failure", email=email, reason="unknown_email")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(req.password, user.password_hash):
        log.warning("auth.login_failure", email=email, reason="bad_password")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    log.info("auth.login_success", user_id=str(user.id), email=email)
    return user


def issue_token(user: User) -> AuthResponse:
    token, _jti = create_jwt(user_id=user.id, email=user.email)
    return AuthResponse(
        access_token=token,
        user=UserRead.model_validate(user, from_attributes=True),
    )
