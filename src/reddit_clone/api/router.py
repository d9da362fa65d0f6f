"""Main API router aggregation."""

from fastapi import APIRouter

from reddit_clone.api.auth import router as auth_router
from reddit_clone.api.posts import router as posts_router

# Main API router
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(posts_router)
