"""Abstract interfaces for infrastructure abstraction."""

from blogcomments.interfaces.auth_provider import IAuthProvider
from blogcomments.interfaces.comment_api import ICommentApi
from blogcomments.interfaces.comment_store import ICommentStore

__all__ = [
    "IAuthProvider",
    "ICommentApi",
    "ICommentStore",
]
