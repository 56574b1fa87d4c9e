"""
Mock authentication provider for local development.
"""

from blogcomments.interfaces.auth_provider import IAuthProvider
from blogcomments.models.enums import UserRole
from blogcomments.models.user import Viewer


class MockAuthProvider(IAuthProvider):
    """Mock auth provider: the token is the user id."""

    def __init__(self, enabled: bool = False):
        """
        Initialize mock auth provider.

        Args:
            enabled: Whether authentication is required
        """
        self._enabled = enabled
        self._mock_users = {
            "dev_user": Viewer(id="dev_user", username="dev", display_name="Developer"),
            "test_user": Viewer(id="test_user", username="tester", display_name="Test User"),
            "admin": Viewer(id="admin", role=UserRole.ADMIN, username="admin", display_name="Admin"),
        }

    async def verify_token(self, token: str) -> Viewer:
        """
        Verify token - in mock mode, token is treated as user_id.

        Tokens starting with "admin" yield an admin viewer.
        """
        if token in self._mock_users:
            return self._mock_users[token]
        role = UserRole.ADMIN if token.startswith("admin") else UserRole.USER
        return Viewer(id=token, role=role, username=token)

    def is_enabled(self) -> bool:
        """Check if authentication is enabled."""
        return self._enabled
