"""Post, feed and voting API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from reddit_clone.config import get_settings
from reddit_clone.database import get_db, utcnow
from reddit_clone.models.post import Post
from reddit_clone.models.user import User
from reddit_clone.schemas.post import (
    PaginatedPosts,
    PostCreate,
    PostCreator,
    PostResponse,
    PostUpdate,
    VoteCreate,
)
from reddit_clone.services.feed import list_posts
from reddit_clone.services.votes import cast_vote
from reddit_clone.utils.security import CurrentUser, OptionalUser

router = APIRouter(prefix="/posts", tags=["posts"])


def text_snippet(text: str) -> str:
    """Leading excerpt of a post body shown in the feed."""
    return text[: get_settings().text_snippet_length]


def post_to_response(post: Post, viewer: User | None) -> PostResponse:
    """Convert a Post model to PostResponse schema.

    Requires post.creator to be loaded. The creator's email is only filled
    in when the viewer is the creator.
    """
    creator = post.creator
    is_creator = viewer is not None and viewer.id == creator.id

    return PostResponse(
        id=post.id,
        title=post.title,
        text=post.text,
        text_snippet=text_snippet(post.text),
        points=post.points,
        creator_id=post.creator_id,
        creator=PostCreator(
            id=creator.id,
            username=creator.username,
            email=creator.email if is_creator else "",
        ),
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


async def get_post_with_creator(db: AsyncSession, post_id: int) -> Post | None:
    query = select(Post).where(Post.id == post_id).options(selectinload(Post.creator))
    result = await db.execute(query)
    return result.scalar_one_or_none()


@router.get("", response_model=PaginatedPosts)
async def get_posts(
    viewer: OptionalUser,
    limit: int = Query(10, ge=1, description="Page size (capped server-side)"),
    cursor: str | None = Query(None, description="Cursor from a previous page"),
    db: AsyncSession = Depends(get_db),
) -> PaginatedPosts:
    """List posts, newest first.

    Pass ``next_cursor`` from one page as ``cursor`` to get the next.
    """
    page = await list_posts(db, limit=limit, cursor=cursor)
    return PaginatedPosts(
        posts=[post_to_response(post, viewer) for post in page.posts],
        has_more=page.has_more,
        next_cursor=page.next_cursor,
    )


@router.get("/{post_id}", response_model=PostResponse | None)
async def get_post(
    post_id: int,
    viewer: OptionalUser,
    db: AsyncSession = Depends(get_db),
) -> PostResponse | None:
    """Get a single post, or null if it doesn't exist."""
    post = await get_post_with_creator(db, post_id)
    if post is None:
        return None
    return post_to_response(post, viewer)


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    current_user: CurrentUser,
    post_data: PostCreate,
    db: AsyncSession = Depends(get_db),
) -> PostResponse:
    """Create a new post owned by the current user.

    Requires authentication.
    """
    new_post = Post(
        title=post_data.title,
        text=post_data.text,
        points=0,
        creator_id=current_user.id,
    )
    db.add(new_post)
    await db.flush()
    await db.refresh(new_post)

    # Load creator for response
    new_post.creator = current_user

    return post_to_response(new_post, current_user)


@router.patch("/{post_id}", response_model=PostResponse | None)
async def update_post(
    post_id: int,
    current_user: CurrentUser,
    post_data: PostUpdate,
    db: AsyncSession = Depends(get_db),
) -> PostResponse | None:
    """Update a post's title.

    Returns null, changing nothing, if the post doesn't exist or belongs to
    someone else. Requires authentication.
    """
    post = await get_post_with_creator(db, post_id)
    if post is None or post.creator_id != current_user.id:
        return None

    if post_data.title is not None:
        post.title = post_data.title
        post.updated_at = utcnow()
        await db.flush()

    return post_to_response(post, current_user)


@router.delete("/{post_id}", response_model=bool)
async def delete_post(
    post_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> bool:
    """Delete a post and its votes.

    Returns false if the post doesn't exist or belongs to someone else.
    Requires authentication.
    """
    query = select(Post).where(Post.id == post_id)
    result = await db.execute(query)
    post = result.scalar_one_or_none()

    if post is None or post.creator_id != current_user.id:
        return False

    await db.delete(post)
    await db.flush()
    return True


@router.post("/{post_id}/vote", response_model=bool)
async def vote(
    post_id: int,
    current_user: CurrentUser,
    vote_data: VoteCreate,
    db: AsyncSession = Depends(get_db),
) -> bool:
    """Up-vote (1) or down-vote (-1) a post.

    Voting the same way twice changes nothing; switching direction moves the
    score by two. Returns false if the post doesn't exist or the vote could
    not be saved. Requires authentication.
    """
    return await cast_vote(db, post_id=post_id, user_id=current_user.id, raw_value=vote_data.value)
