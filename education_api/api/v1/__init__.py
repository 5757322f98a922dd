"""API v1 routes."""

from fastapi import APIRouter

from education_api.api.v1 import auth, users

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
