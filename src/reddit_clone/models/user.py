"""User ORM model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reddit_clone.database import Base, utcnow

if TYPE_CHECKING:
    from reddit_clone.models.post import Post
    from reddit_clone.models.vote import Upvote


class User(Base):
    """User account model for authentication and ownership."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    # Relationships
    posts: Mapped[list[Post]] = relationship(
        back_populates="creator", cascade="all, delete-orphan", passive_deletes=True
    )
    votes: Mapped[list[Upvote]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
