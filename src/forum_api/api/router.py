"""Main API router aggregation."""

from fastapi import APIRouter

from forum_api.api.auth import router as auth_router
from forum_api.api.posts import router as posts_router
from forum_api.api.topics import router as topics_router
from forum_api.api.users import router as users_router

# Main API router
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(posts_router)
api_router.include_router(topics_router)
api_router.include_router(users_router)
