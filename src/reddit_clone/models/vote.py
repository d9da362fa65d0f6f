"""Vote ledger ORM model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reddit_clone.database import Base, utcnow

if TYPE_CHECKING:
    from reddit_clone.models.post import Post
    from reddit_clone.models.user import User


class Upvote(Base):
    """A single user's vote on a post (one row per user/post pair)."""

    __tablename__ = "upvotes"
    __table_args__ = (CheckConstraint("value IN (1, -1)", name="ck_upvote_value_valid"),)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    value: Mapped[int] = mapped_column()  # +1 or -1
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    # Relationships
    user: Mapped[User] = relationship(back_populates="votes")
    post: Mapped[Post] = relationship(back_populates="votes")
