"""
Bearer token authentication provider (HMAC JWT).
"""

from __future__ import annotations

from typing import Any

from jose import JWTError, jwt

from blogcomments.core.config import Settings
from blogcomments.core.exceptions import AuthenticationError
from blogcomments.interfaces.auth_provider import IAuthProvider
from blogcomments.models.enums import UserRole
from blogcomments.models.user import Viewer


class JwtAuthProvider(IAuthProvider):
    """Validates tokens issued by the blog backend and reads identity + role."""

    def __init__(self, settings: Settings):
        if not settings.JWT_SECRET:
            raise ValueError("JWT_SECRET must be set for jwt auth")
        self._settings = settings

    def _decode_token(self, token: str) -> dict[str, Any]:
        options = {"verify_iss": bool(self._settings.JWT_ISSUER)}
        return jwt.decode(
            token,
            self._settings.JWT_SECRET,
            algorithms=[self._settings.JWT_ALGORITHM],
            issuer=self._settings.JWT_ISSUER or None,
            options=options,
        )

    async def verify_token(self, token: str) -> Viewer:
        try:
            claims = self._decode_token(token)
        except JWTError as exc:
            raise AuthenticationError("Invalid or expired token") from exc

        # The blog backend signs {id, role}; standard issuers use sub
        subject = claims.get("sub") or claims.get("id")
        if not subject:
            raise AuthenticationError("Token has no subject")

        raw_role = str(claims.get(self._settings.JWT_ROLE_CLAIM) or UserRole.USER.value).lower()
        try:
            role = UserRole(raw_role)
        except ValueError:
            role = UserRole.USER

        return Viewer(
            id=str(subject),
            role=role,
            username=claims.get("username"),
            display_name=claims.get("name"),
            avatar=claims.get("avatar"),
        )

    def is_enabled(self) -> bool:
        return True
