"""
Change events published by the comment store.
"""

from typing import Optional

from pydantic import BaseModel

from blogcomments.models.enums import CommentEventType


class CommentEvent(BaseModel):
    """A single change to the store."""

    type: CommentEventType
    post_id: Optional[str] = None
    comment_id: Optional[str] = None
    version: int = 0

    class Config:
        frozen = True
