"""
Shared pytest fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest

from blogcomments.core.config import Settings
from blogcomments.infrastructure.local.comment_store import InMemoryCommentStore
from blogcomments.models.comment import Comment
from blogcomments.models.enums import UserRole
from blogcomments.models.user import Viewer

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """Timestamp `minutes` after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


def make_comment(
    comment_id: str,
    post_id: str = "post-1",
    parent_id: str | None = None,
    author_id: str = "alice",
    body: str | None = None,
    minute: int = 0,
    updated_minute: int | None = None,
    liked_by: set[str] | None = None,
    **extra,
) -> Comment:
    return Comment(
        id=comment_id,
        post_id=post_id,
        parent_id=parent_id,
        author_id=author_id,
        body=body if body is not None else f"comment {comment_id}",
        liked_by=frozenset(liked_by or set()),
        created_at=at(minute),
        updated_at=at(updated_minute if updated_minute is not None else minute),
        **extra,
    )


@pytest.fixture
def settings():
    """Settings with defaults, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def store(settings):
    return InMemoryCommentStore(settings=settings)


@pytest.fixture
def alice():
    return Viewer(id="alice", username="alice", display_name="Alice")


@pytest.fixture
def bob():
    return Viewer(id="bob", username="bob")


@pytest.fixture
def admin():
    return Viewer(id="root", role=UserRole.ADMIN, username="root")
