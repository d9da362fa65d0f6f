"""SQLAlchemy ORM models."""

from reddit_clone.models.password_reset import PasswordResetToken
from reddit_clone.models.post import Post
from reddit_clone.models.user import User
from reddit_clone.models.vote import Upvote

__all__ = [
    "PasswordResetToken",
    "Post",
    "Upvote",
    "User",
]
