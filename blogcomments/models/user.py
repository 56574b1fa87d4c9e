"""
Viewer identity model.

The current user as reported by the authentication service.
"""

from typing import Optional

from pydantic import BaseModel

from blogcomments.models.enums import UserRole


class Viewer(BaseModel):
    """Authenticated user looking at (and acting on) a comment thread."""

    id: str
    role: UserRole = UserRole.USER
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
