"""Post ORM model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reddit_clone.database import Base, utcnow

if TYPE_CHECKING:
    from reddit_clone.models.user import User
    from reddit_clone.models.vote import Upvote


class Post(Base):
    """A user-submitted post with a denormalized vote score."""

    __tablename__ = "posts"
    __table_args__ = (Index("ix_posts_created_at_id", "created_at", "id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(300))
    text: Mapped[str] = mapped_column(Text)
    points: Mapped[int] = mapped_column(default=0)  # Sum of all vote values
    creator_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    # Relationships
    creator: Mapped[User] = relationship(back_populates="posts")
    votes: Mapped[list[Upvote]] = relationship(
        back_populates="post", cascade="all, delete-orphan", passive_deletes=True
    )
