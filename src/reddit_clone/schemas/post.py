"""Pydantic schemas for post, feed and vote API endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostCreator(BaseModel):
    """Public identity of a post's creator.

    ``email`` is empty unless the viewer is the creator.
    """

    id: int = Field(description="User ID")
    username: str = Field(description="Username")
    email: str = Field(default="", description="Email address, visible to its owner only")


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    title: str = Field(min_length=1, max_length=300, description="Post title")
    text: str = Field(min_length=1, description="Post body")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject titles made only of whitespace."""
        if not v.strip():
            msg = "Title cannot be blank"
            raise ValueError(msg)
        return v.strip()


class PostUpdate(BaseModel):
    """Schema for updating a post. Omitted fields are left unchanged."""

    title: str | None = Field(
        default=None, min_length=1, max_length=300, description="New post title"
    )


class PostResponse(BaseModel):
    """Response schema for a post."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Post ID")
    title: str = Field(description="Post title")
    text: str = Field(description="Full post body")
    text_snippet: str = Field(description="Leading excerpt of the post body")
    points: int = Field(description="Sum of all votes on the post")
    creator_id: int = Field(description="ID of the user who created the post")
    creator: PostCreator = Field(description="Creator of the post")
    created_at: datetime = Field(description="When the post was created")
    updated_at: datetime = Field(description="When the post was last updated")


class PaginatedPosts(BaseModel):
    """A page of the newest-first post feed."""

    posts: list[PostResponse] = Field(description="Posts, newest first")
    has_more: bool = Field(description="Whether older posts remain")
    next_cursor: str | None = Field(
        default=None, description="Cursor for the next page, if there is one"
    )


class VoteCreate(BaseModel):
    """Schema for casting a vote."""

    value: Literal[1, -1] = Field(description="1 for an up-vote, -1 for a down-vote")
