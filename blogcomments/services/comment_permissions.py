from __future__ import annotations

from enum import Enum
from typing import Optional

from blogcomments.core.exceptions import UnauthorizedError
from blogcomments.models.comment import Comment
from blogcomments.models.enums import UserRole
from blogcomments.models.user import Viewer


class CommentAction(str, Enum):
    COMMENT_CREATE = "comment.create"
    COMMENT_EDIT = "comment.edit"
    COMMENT_DELETE = "comment.delete"
    COMMENT_LIKE = "comment.like"


ALL_ROLES = {UserRole.USER, UserRole.ADMIN}

# Roles that may act on comments written by someone else
ROLE_MATRIX: dict[CommentAction, set[UserRole]] = {
    CommentAction.COMMENT_CREATE: ALL_ROLES,
    CommentAction.COMMENT_EDIT: {UserRole.ADMIN},
    CommentAction.COMMENT_DELETE: {UserRole.ADMIN},
    CommentAction.COMMENT_LIKE: ALL_ROLES,
}


def roles_for_action(action: CommentAction) -> set[UserRole]:
    return set(ROLE_MATRIX.get(action, set()))


def is_author(comment: Comment, viewer: Optional[Viewer]) -> bool:
    return viewer is not None and comment.author_id == viewer.id


def can_perform(comment: Comment, viewer: Optional[Viewer], action: CommentAction) -> bool:
    if viewer is None:
        return False
    if is_author(comment, viewer):
        return True
    return viewer.role in roles_for_action(action)


def can_modify(comment: Comment, viewer: Optional[Viewer]) -> bool:
    """Edit/delete is reserved to the comment's author or an admin."""
    return can_perform(comment, viewer, CommentAction.COMMENT_EDIT)


def ensure_comment_action(
    comment: Comment, viewer: Optional[Viewer], action: CommentAction
) -> Comment:
    if not can_perform(comment, viewer, action):
        verb = action.value.split(".", 1)[1]
        raise UnauthorizedError(
            f"You are not authorized to {verb} this comment",
            details={"comment_id": comment.id, "user_id": viewer.id if viewer else None},
        )
    return comment
