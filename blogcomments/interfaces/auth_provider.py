"""
Authentication provider interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from blogcomments.models.user import Viewer


class IAuthProvider(ABC):
    """Abstract interface for bearer token validation."""

    @abstractmethod
    async def verify_token(self, token: str) -> Viewer:
        """
        Validate a bearer token.

        Args:
            token: Bearer token (without the "Bearer " prefix)

        Returns:
            The viewer the token was issued to

        Raises:
            AuthenticationError: If the token is invalid
        """
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """Check if authentication is enforced."""
        pass
