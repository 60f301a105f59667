"""API route modules."""

from fastapi import APIRouter

from taskflow.entrypoints.api.routes.auth import router as auth_router
from taskflow.entrypoints.api.routes.invites import router as invites_router
from taskflow.entrypoints.api.routes.users import router as users_router

# Create main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(auth_router)
api_router.include_router(invites_router)
api_router.include_router(users_router)

__all__ = ["api_router"]
