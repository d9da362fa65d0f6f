"""Pydantic schemas for request/response validation."""

from reddit_clone.schemas.post import (
    PaginatedPosts,
    PostCreate,
    PostCreator,
    PostResponse,
    PostUpdate,
    VoteCreate,
)
from reddit_clone.schemas.user import (
    AuthResponse,
    ChangePassword,
    FieldError,
    ForgotPassword,
    UserCreate,
    UserLogin,
    UserResponse,
)

__all__ = [
    # Post schemas
    "PostCreate",
    "PostUpdate",
    "PostCreator",
    "PostResponse",
    "PaginatedPosts",
    "VoteCreate",
    # User schemas
    "FieldError",
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "ForgotPassword",
    "ChangePassword",
    "AuthResponse",
]
