"""
API v1 Router

Mounted under /api. Task and user routes require a bearer token.
"""

from fastapi import APIRouter
from . import auth, tasks, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(users.router, prefix="/users", tags=["Users"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/auth/register",
            "/auth/login",
            "/auth/me",
            "/users/profile",
            "/tasks",
            "/tasks/stats",
        ],
    }
