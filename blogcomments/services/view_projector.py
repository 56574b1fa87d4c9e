"""
Viewer-relative projection of comments.

Projections are computed on every read and never written back into the store,
so like counts and "liked by me" flags cannot go stale or double count.
"""

from __future__ import annotations

from typing import Iterable, Optional

from blogcomments.core.config import Settings, get_settings
from blogcomments.models.comment import (
    AuthorDisplay,
    Comment,
    CommentNode,
    CommentView,
    CommentViewNode,
)
from blogcomments.models.user import Viewer
from blogcomments.services.comment_permissions import can_modify


def _first_present(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value and value.strip():
            return value
    return None


def is_liked_by_viewer(comment: Comment, viewer_id: Optional[str]) -> bool:
    return viewer_id is not None and viewer_id in comment.liked_by


def likes_count(comment: Comment) -> int:
    return len(comment.liked_by) + comment.unattributed_likes


def display_author(comment: Comment, settings: Optional[Settings] = None) -> AuthorDisplay:
    """Author fields with fallbacks: name -> username -> "Unknown", avatar -> placeholder."""
    settings = settings or get_settings()
    name = _first_present(comment.author_display_name, comment.author_username)
    username = _first_present(comment.author_username, comment.author_display_name)
    return AuthorDisplay(
        id=comment.author_id,
        name=name or settings.UNKNOWN_AUTHOR_NAME,
        username=username or settings.UNKNOWN_AUTHOR_USERNAME,
        avatar=_first_present(comment.author_avatar) or settings.DEFAULT_AVATAR,
    )


def project_comment(
    comment: Comment, viewer: Optional[Viewer], settings: Optional[Settings] = None
) -> CommentView:
    viewer_id = viewer.id if viewer else None
    return CommentView(
        id=comment.id,
        post_id=comment.post_id,
        parent_id=comment.parent_id,
        body=comment.body,
        author=display_author(comment, settings),
        likes_count=likes_count(comment),
        is_liked=is_liked_by_viewer(comment, viewer_id),
        can_edit=can_modify(comment, viewer),
        is_local=comment.is_local,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def project_tree(
    forest: Iterable[CommentNode],
    viewer: Optional[Viewer],
    settings: Optional[Settings] = None,
) -> list[CommentViewNode]:
    """Project a built forest for one viewer, keeping its shape."""
    settings = settings or get_settings()
    projected: list[CommentViewNode] = []
    for node in forest:
        view = project_comment(node, viewer, settings)
        projected.append(
            CommentViewNode(
                **view.model_dump(),
                replies=project_tree(node.replies, viewer, settings),
                depth=node.depth,
            )
        )
    return projected
