"""Newest-first post feed with keyset (cursor) pagination.

A cursor marks the last post a client has seen. It normally carries both the
post's creation time and its id, so posts sharing a timestamp are never
skipped or repeated. A bare integer is also accepted and read as a
millisecond epoch timestamp. Rows are stamped at millisecond precision, so
such a cursor resumes exactly after its post except when another post shares
that very timestamp: time-only cursors cannot order ties, and those posts
are skipped. Clients should prefer the returned ``next_cursor``.
"""

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from reddit_clone.config import get_settings
from reddit_clone.models.post import Post
from reddit_clone.services.errors import InvalidCursorError

_SEPARATOR = "|"
_EPOCH = datetime(1970, 1, 1)


@dataclass(frozen=True)
class FeedCursor:
    """Decoded position in the feed."""

    created_at: datetime
    post_id: int | None = None


@dataclass
class FeedPage:
    """One page of the feed."""

    posts: list[Post]
    has_more: bool
    next_cursor: str | None = None


def encode_cursor(post: Post) -> str:
    """Build the opaque cursor that resumes the feed just after ``post``."""
    raw = f"{post.created_at.isoformat()}{_SEPARATOR}{post.id}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> FeedCursor:
    """Parse a cursor produced by ``encode_cursor`` or a millisecond timestamp.

    Raises:
        InvalidCursorError: If the cursor is in neither form.
    """
    cursor = cursor.strip()
    if cursor.isdigit():
        try:
            created_at = _EPOCH + timedelta(milliseconds=int(cursor))
        except (OverflowError, ValueError) as e:
            raise InvalidCursorError(f"Cursor timestamp out of range: {cursor}") from e
        return FeedCursor(created_at=created_at)

    try:
        raw = base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
        timestamp, post_id = raw.split(_SEPARATOR)
        return FeedCursor(created_at=datetime.fromisoformat(timestamp), post_id=int(post_id))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidCursorError() from e


def clamp_limit(limit: int) -> int:
    """Bound a requested page size to [1, feed_max_limit]."""
    return max(1, min(limit, get_settings().feed_max_limit))


async def list_posts(db: AsyncSession, limit: int, cursor: str | None = None) -> FeedPage:
    """Fetch one page of posts, newest first, strictly older than ``cursor``.

    One extra row is requested to learn whether another page exists without
    a separate count query.
    """
    real_limit = clamp_limit(limit)

    query = (
        select(Post)
        .options(selectinload(Post.creator))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(real_limit + 1)
    )

    if cursor:
        position = decode_cursor(cursor)
        if position.post_id is None:
            query = query.where(Post.created_at < position.created_at)
        else:
            query = query.where(
                or_(
                    Post.created_at < position.created_at,
                    and_(
                        Post.created_at == position.created_at,
                        Post.id < position.post_id,
                    ),
                )
            )

    result = await db.execute(query)
    rows = list(result.scalars().all())

    has_more = len(rows) == real_limit + 1
    posts = rows[:real_limit]
    next_cursor = encode_cursor(posts[-1]) if has_more else None

    return FeedPage(posts=posts, has_more=has_more, next_cursor=next_cursor)
