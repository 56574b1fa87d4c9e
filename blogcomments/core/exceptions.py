"""
Custom exceptions for the comment engine.
"""

from typing import Any, Optional


class CommentEngineError(Exception):
    """Base exception for blogcomments."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(CommentEngineError):
    """Comment or post not found."""

    pass


class ValidationError(CommentEngineError):
    """Comment body failed validation (empty or over-length)."""

    pass


class AuthenticationError(CommentEngineError):
    """Bearer token missing or invalid."""

    pass


class AuthorizationError(CommentEngineError):
    """Authorization failed."""

    pass


class UnauthorizedError(AuthorizationError):
    """Mutation attempted by someone who is neither the author nor an admin."""

    pass


class BusinessLogicError(CommentEngineError):
    """Business logic constraint violation."""

    pass


class LikeStateError(BusinessLogicError):
    """Like/unlike requested against the wrong like state."""

    def __init__(self, message: str, comment_id: str, user_id: str):
        super().__init__(message, details={"comment_id": comment_id, "user_id": user_id})
        self.comment_id = comment_id
        self.user_id = user_id


class AlreadyLikedError(LikeStateError):
    """User already likes the comment."""

    pass


class NotLikedError(LikeStateError):
    """User does not like the comment."""

    pass


class ConflictError(BusinessLogicError):
    """Data-integrity fault (cyclic or cross-post parent, id moved between posts)."""

    pass


class InfrastructureError(CommentEngineError):
    """Infrastructure-related error (transport, external services, etc.)."""

    pass


class NetworkFailureError(InfrastructureError):
    """Transport-level failure talking to the persistence API."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message, details=details)
        self.status_code = status_code


class PayloadError(InfrastructureError):
    """Server payload could not be normalized into a comment."""

    pass
