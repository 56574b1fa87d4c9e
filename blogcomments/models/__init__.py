"""Pydantic models (schemas) for the comment engine."""

from blogcomments.models.enums import (
    CommentEventType,
    FetchStatus,
    ReplyOrder,
    UserRole,
)
from blogcomments.models.comment import (
    AuthorDisplay,
    Comment,
    CommentCreate,
    CommentNode,
    CommentPage,
    CommentUpdate,
    CommentView,
    CommentViewNode,
)
from blogcomments.models.events import CommentEvent
from blogcomments.models.user import Viewer

__all__ = [
    # Enums
    "CommentEventType",
    "FetchStatus",
    "ReplyOrder",
    "UserRole",
    # Comment models
    "AuthorDisplay",
    "Comment",
    "CommentCreate",
    "CommentNode",
    "CommentPage",
    "CommentUpdate",
    "CommentView",
    "CommentViewNode",
    # Events
    "CommentEvent",
    # Users
    "Viewer",
]
