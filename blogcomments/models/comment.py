"""
Comment model definitions.

A comment belongs to a post and optionally replies to another comment of the
same post. Records are kept flat; nesting is derived by the tree builder.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from blogcomments.utils.datetime_utils import ensure_utc


class CommentCreate(BaseModel):
    """Schema for creating a comment."""

    post_id: str
    body: str = Field(..., min_length=1, max_length=1000, description="Comment content")
    parent_id: Optional[str] = None


class CommentUpdate(BaseModel):
    """Schema for editing a comment."""

    body: str = Field(..., min_length=1, max_length=1000, description="Comment content")


class Comment(BaseModel):
    """Complete comment record (canonical shape after normalization)."""

    id: str
    post_id: str
    parent_id: Optional[str] = None
    author_id: str
    author_display_name: Optional[str] = None
    author_username: Optional[str] = None
    author_avatar: Optional[str] = None
    body: str
    liked_by: frozenset[str] = Field(default_factory=frozenset)
    # Likes reported only as a count, without the liking user ids
    unattributed_likes: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime
    is_local: bool = False
    correlation_token: Optional[str] = None

    class Config:
        from_attributes = True
        coerce_numbers_to_str = True

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None


class CommentNode(Comment):
    """Comment with its nested replies."""

    replies: list["CommentNode"] = Field(default_factory=list)
    depth: int = 1


class CommentPage(BaseModel):
    """Comments of one post as returned by the persistence API."""

    post_id: str
    comments: list[Comment]
    total: int


class AuthorDisplay(BaseModel):
    """Author fields after applying the display fallbacks."""

    id: str
    name: str
    username: str
    avatar: str


class CommentView(BaseModel):
    """Viewer-relative projection of a comment. Never stored."""

    id: str
    post_id: str
    parent_id: Optional[str] = None
    body: str
    author: AuthorDisplay
    likes_count: int
    is_liked: bool
    can_edit: bool
    is_local: bool
    created_at: datetime
    updated_at: datetime


class CommentViewNode(CommentView):
    """Projected comment with its projected replies."""

    replies: list["CommentViewNode"] = Field(default_factory=list)
    depth: int = 1
