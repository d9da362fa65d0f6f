"""HTTP API routes."""

from reddit_clone.api.router import api_router

__all__ = ["api_router"]
