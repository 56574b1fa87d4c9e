"""
Comment store interface.

Defines the contract for the client-side, authoritative-per-session store of
flat comment lists. Store operations are synchronous: they run on the client's
single event loop and never await.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Iterable, Optional

from blogcomments.models.comment import Comment
from blogcomments.models.events import CommentEvent
from blogcomments.models.user import Viewer

StoreListener = Callable[[CommentEvent], None]


class ICommentStore(ABC):
    """Abstract interface for the comment store."""

    @abstractmethod
    def upsert(self, comment: Comment, counted: bool = True) -> Comment:
        """
        Insert a comment, or replace the record with the same id.

        Confirmed records follow last-write-wins by updated_at; a stale record
        is ignored and the current one returned. A confirmed record of a comment
        deleted in this session is returned as given but not stored.

        Args:
            comment: Record to store
            counted: False leaves the post's comment counter untouched

        Returns:
            The record held by the store after the call
        """
        pass

    @abstractmethod
    def restore(self, comment: Comment) -> Comment:
        """Put a previously captured record back unconditionally (rollback).

        Also forgets a delete of the same id recorded by remove().
        """
        pass

    @abstractmethod
    def get(self, comment_id: str) -> Optional[Comment]:
        """Get a comment by id, or None."""
        pass

    @abstractmethod
    def remove(self, post_id: str, comment_id: str, actor: Viewer) -> Comment:
        """
        Delete a comment. Replies are left in place.

        The id is remembered as deleted, so listings fetched before the delete
        cannot bring the record back.

        Args:
            post_id: Owning post
            comment_id: Comment to delete
            actor: Must be the author or an admin

        Returns:
            The removed record
        """
        pass

    @abstractmethod
    def discard_local(self, comment_id: str) -> Comment:
        """
        Drop an optimistic record that has no server counterpart.

        Raises:
            NotFoundError: If the id is unknown
            ConflictError: If the record is a confirmed comment
        """
        pass

    @abstractmethod
    def edit(
        self,
        post_id: str,
        comment_id: str,
        body: str,
        actor: Viewer,
        at: Optional[datetime] = None,
    ) -> Comment:
        """Change a comment body (author or admin only)."""
        pass

    @abstractmethod
    def like(self, comment_id: str, user_id: str) -> Comment:
        """Add user_id to likedBy. Raises AlreadyLikedError when present."""
        pass

    @abstractmethod
    def unlike(self, comment_id: str, user_id: str) -> Comment:
        """Remove user_id from likedBy. Raises NotLikedError when absent."""
        pass

    @abstractmethod
    def toggle_like(self, comment_id: str, user_id: str, like: bool) -> Comment:
        """Like (like=True) or unlike (like=False) a comment."""
        pass

    @abstractmethod
    def list_by_post(self, post_id: str) -> list[Comment]:
        """Flat comment list of a post, in no particular order."""
        pass

    @abstractmethod
    def list_by_author(self, author_id: str) -> list[Comment]:
        """All comments written by a user, across posts."""
        pass

    @abstractmethod
    def replace_post(
        self, post_id: str, comments: Iterable[Comment], total: Optional[int] = None
    ) -> list[Comment]:
        """Replace a post's confirmed comments with a fresh server listing."""
        pass

    @abstractmethod
    def clear_post(self, post_id: str) -> int:
        """Drop every comment of a post. Returns count dropped."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Drop everything."""
        pass

    @abstractmethod
    def comment_count(self, post_id: str) -> int:
        """Owning post's comment counter."""
        pass

    @abstractmethod
    def version(self, post_id: str) -> int:
        """Monotonic change counter of a post's comments."""
        pass

    @abstractmethod
    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        pass
