"""
User profile endpoints.
"""

from fastapi import APIRouter, Depends

from app.core.auth import AuthenticatedUser, get_current_user
from taskapp_shared.schemas.users import UserRead

router = APIRouter()


@router.get("/profile", response_model=UserRead)
async def get_profile(auth: AuthenticatedUser = Depends(get_current_user)):
    """Profile of the authenticated user."""
    return UserRead.model_validate(auth.user, from_attributes=True)
