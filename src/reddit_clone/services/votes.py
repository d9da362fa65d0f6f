"""Vote ledger: records per-user votes and keeps post scores in sync."""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reddit_clone.models.post import Post
from reddit_clone.models.vote import Upvote

logger = logging.getLogger(__name__)


def normalize_vote_value(raw_value: int) -> int:
    """Map any input onto a vote direction: negative is -1, everything else +1."""
    return -1 if raw_value < 0 else 1


async def _apply_delta(db: AsyncSession, post_id: int, delta: int) -> None:
    """Shift a post's score by ``delta`` in SQL so concurrent writers don't clobber it."""
    await db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(points=Post.points + delta)
    )


async def cast_vote(db: AsyncSession, post_id: int, user_id: int, raw_value: int) -> bool:
    """Record ``user_id``'s vote on ``post_id`` and adjust the post's points.

    The ledger write and the score update share one savepoint, so either both
    land or neither does. The score moves by the difference between the new
    vote and whatever the user had before:

    - no previous vote: the full value
    - same value again: nothing
    - opposite value: twice the new value

    Returns:
        True if the vote was recorded, False if the post does not exist or the
        transaction had to be rolled back.
    """
    value = normalize_vote_value(raw_value)

    try:
        async with db.begin_nested():
            # Locking the post row serializes every vote on this post
            post_query = select(Post.id).where(Post.id == post_id).with_for_update()
            post_result = await db.execute(post_query)
            if post_result.scalar_one_or_none() is None:
                return False

            vote_query = (
                select(Upvote)
                .where(Upvote.user_id == user_id, Upvote.post_id == post_id)
                .with_for_update()
            )
            vote_result = await db.execute(vote_query)
            existing = vote_result.scalar_one_or_none()

            if existing is None:
                db.add(Upvote(user_id=user_id, post_id=post_id, value=value))
                delta = value
            elif existing.value == value:
                delta = 0
            else:
                delta = value - existing.value
                existing.value = value
            await db.flush()

            if delta:
                await _apply_delta(db, post_id, delta)
    except SQLAlchemyError:
        logger.exception(
            "Vote by user %s on post %s rolled back", user_id, post_id
        )
        return False

    logger.debug("User %s voted %+d on post %s", user_id, value, post_id)
    return True
