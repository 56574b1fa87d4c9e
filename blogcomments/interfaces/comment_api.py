"""
Comment persistence API interface.

Defines the contract for the remote post/comment API. Implementations return
canonical models; payload shape guessing stays inside the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from blogcomments.models.comment import Comment, CommentCreate, CommentPage


class ICommentApi(ABC):
    """Abstract interface for the comment persistence API."""

    @abstractmethod
    async def list_comments(self, post_id: str) -> CommentPage:
        """
        List all comments of a post.

        Args:
            post_id: Post ID

        Returns:
            Flat page of comments for the post
        """
        pass

    @abstractmethod
    async def list_user_comments(self, user_id: str) -> list[Comment]:
        """List every comment written by a user."""
        pass

    @abstractmethod
    async def create_comment(
        self, comment: CommentCreate, correlation_token: Optional[str] = None
    ) -> Comment:
        """
        Create a comment.

        Args:
            comment: Creation data
            correlation_token: Client token the server echoes back

        Returns:
            Server-confirmed comment
        """
        pass

    @abstractmethod
    async def update_comment(self, post_id: str, comment_id: str, body: str) -> Comment:
        """Edit a comment body. Returns the server record."""
        pass

    @abstractmethod
    async def delete_comment(self, post_id: str, comment_id: str) -> None:
        """Delete a comment."""
        pass

    @abstractmethod
    async def like_comment(self, post_id: str, comment_id: str) -> Comment:
        """Like a comment as the authenticated user."""
        pass

    @abstractmethod
    async def unlike_comment(self, post_id: str, comment_id: str) -> Comment:
        """Remove the authenticated user's like."""
        pass
