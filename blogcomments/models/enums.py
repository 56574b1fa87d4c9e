"""
Enum definitions for the comment engine.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role exposed by the authentication service."""

    USER = "user"
    ADMIN = "admin"


class ReplyOrder(str, Enum):
    """Ordering of siblings in a built comment tree."""

    NEWEST_FIRST = "newest"
    OLDEST_FIRST = "oldest"


class FetchStatus(str, Enum):
    """Load status of a post's comments."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CommentEventType(str, Enum):
    """Kind of change published by the comment store."""

    UPSERTED = "upserted"
    EDITED = "edited"
    REMOVED = "removed"
    LIKED = "liked"
    UNLIKED = "unliked"
    POST_REPLACED = "post_replaced"
    POST_CLEARED = "post_cleared"
    RESET = "reset"
