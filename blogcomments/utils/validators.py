"""
Comment input validation.
"""

from typing import Optional

from blogcomments.core.config import Settings, get_settings
from blogcomments.core.exceptions import ValidationError


def normalize_body(body: Optional[str], settings: Optional[Settings] = None) -> str:
    """
    Trim and validate a comment body.

    Args:
        body: Raw body as typed by the user
        settings: Settings carrying the length bounds

    Returns:
        The trimmed body

    Raises:
        ValidationError: If the body is empty or longer than allowed
    """
    settings = settings or get_settings()
    if body is None or not isinstance(body, str):
        raise ValidationError("Comment content is required")

    trimmed = body.strip()
    if len(trimmed) < settings.COMMENT_MIN_LENGTH:
        raise ValidationError(
            "Comment cannot be empty",
            details={"min_length": settings.COMMENT_MIN_LENGTH},
        )
    if len(trimmed) > settings.COMMENT_MAX_LENGTH:
        raise ValidationError(
            f"Comment must be at most {settings.COMMENT_MAX_LENGTH} characters",
            details={"max_length": settings.COMMENT_MAX_LENGTH, "length": len(trimmed)},
        )
    return trimmed
