"""
In-memory implementation of the comment store.

One store lives per client session. It is the read-through cache of the
server's comment collection plus the optimistic overlay of local changes that
have not been confirmed yet.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Optional

from blogcomments.core.config import Settings, get_settings
from blogcomments.core.exceptions import (
    AlreadyLikedError,
    ConflictError,
    NotFoundError,
    NotLikedError,
)
from blogcomments.core.logger import setup_logger
from blogcomments.interfaces.comment_store import ICommentStore, StoreListener
from blogcomments.models.comment import Comment
from blogcomments.models.enums import CommentEventType
from blogcomments.models.events import CommentEvent
from blogcomments.models.user import Viewer
from blogcomments.services.comment_permissions import CommentAction, ensure_comment_action
from blogcomments.services.event_bus import CommentEventBus
from blogcomments.utils.datetime_utils import now_utc
from blogcomments.utils.validators import normalize_body

logger = setup_logger(__name__)


class InMemoryCommentStore(ICommentStore):
    """Process-local comment store keyed by post id."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        event_bus: Optional[CommentEventBus] = None,
    ):
        self._settings = settings or get_settings()
        self._bus = event_bus or CommentEventBus()
        self._posts: dict[str, dict[str, Comment]] = {}
        self._post_of: dict[str, str] = {}
        # Ids whose record carries a local edit/like the server has not confirmed
        self._overlay: set[str] = set()
        # Ids deleted in this session, per post, until a listing no longer has them
        self._deleted: dict[str, set[str]] = {}
        self._counts: dict[str, int] = {}
        self._versions: dict[str, int] = {}

    @property
    def event_bus(self) -> CommentEventBus:
        return self._bus

    # ===========================================
    # Internal helpers
    # ===========================================

    def _touch(self, event_type: CommentEventType, post_id: Optional[str], comment_id: Optional[str] = None) -> None:
        version = 0
        if post_id is not None:
            version = self._versions.get(post_id, 0) + 1
            self._versions[post_id] = version
        self._bus.publish(
            CommentEvent(type=event_type, post_id=post_id, comment_id=comment_id, version=version)
        )

    def _require(self, comment_id: str) -> Comment:
        post_id = self._post_of.get(comment_id)
        record = self._posts.get(post_id, {}).get(comment_id) if post_id else None
        if record is None:
            raise NotFoundError(f"Comment {comment_id} not found")
        return record

    def _require_in_post(self, post_id: str, comment_id: str) -> Comment:
        record = self._posts.get(post_id, {}).get(comment_id)
        if record is None:
            raise NotFoundError(f"Comment {comment_id} not found in post {post_id}")
        return record

    def _put(self, comment: Comment, counted: bool = True) -> bool:
        """Store a record. Returns True when the id was new."""
        comments = self._posts.setdefault(comment.post_id, {})
        is_new = comment.id not in comments
        comments[comment.id] = comment
        self._post_of[comment.id] = comment.post_id
        if is_new and counted:
            self._counts[comment.post_id] = self._counts.get(comment.post_id, 0) + 1
        return is_new

    def _drop(self, comment: Comment) -> None:
        comments = self._posts.get(comment.post_id, {})
        comments.pop(comment.id, None)
        self._post_of.pop(comment.id, None)
        self._overlay.discard(comment.id)
        self._counts[comment.post_id] = max(self._counts.get(comment.post_id, 0) - 1, 0)

    def _check_post(self, comment: Comment) -> None:
        known_post = self._post_of.get(comment.id)
        if known_post is not None and known_post != comment.post_id:
            raise ConflictError(
                f"Comment {comment.id} belongs to post {known_post}, not {comment.post_id}",
                details={"comment_id": comment.id, "post_id": comment.post_id},
            )

    def _is_deleted(self, comment: Comment) -> bool:
        return not comment.is_local and comment.id in self._deleted.get(comment.post_id, ())

    def _is_stale(self, incoming: Comment, existing: Comment) -> bool:
        if incoming.is_local or existing.is_local or existing.id in self._overlay:
            return False
        return incoming.updated_at < existing.updated_at

    # ===========================================
    # Writes
    # ===========================================

    def upsert(self, comment: Comment, counted: bool = True) -> Comment:
        self._check_post(comment)
        if self._is_deleted(comment):
            logger.debug("Ignoring record of deleted comment %s", comment.id)
            return comment
        existing = self._posts.get(comment.post_id, {}).get(comment.id)
        if existing is not None and self._is_stale(comment, existing):
            logger.debug(
                "Ignoring stale record for comment %s (%s < %s)",
                comment.id,
                comment.updated_at.isoformat(),
                existing.updated_at.isoformat(),
            )
            return existing

        self._put(comment, counted)
        if not comment.is_local:
            self._overlay.discard(comment.id)
        self._touch(CommentEventType.UPSERTED, comment.post_id, comment.id)
        return comment

    def restore(self, comment: Comment) -> Comment:
        self._check_post(comment)
        self._deleted.get(comment.post_id, set()).discard(comment.id)
        self._put(comment)
        self._overlay.discard(comment.id)
        self._touch(CommentEventType.UPSERTED, comment.post_id, comment.id)
        return comment

    def remove(self, post_id: str, comment_id: str, actor: Viewer) -> Comment:
        record = self._require_in_post(post_id, comment_id)
        ensure_comment_action(record, actor, CommentAction.COMMENT_DELETE)
        self._drop(record)
        if not record.is_local:
            self._deleted.setdefault(post_id, set()).add(comment_id)
        self._touch(CommentEventType.REMOVED, post_id, comment_id)
        return record

    def discard_local(self, comment_id: str) -> Comment:
        record = self._require(comment_id)
        if not record.is_local:
            raise ConflictError(
                f"Comment {comment_id} is saved and cannot be discarded",
                details={"comment_id": comment_id, "post_id": record.post_id},
            )
        self._drop(record)
        self._touch(CommentEventType.REMOVED, record.post_id, comment_id)
        return record

    def edit(
        self,
        post_id: str,
        comment_id: str,
        body: str,
        actor: Viewer,
        at: Optional[datetime] = None,
    ) -> Comment:
        record = self._require_in_post(post_id, comment_id)
        ensure_comment_action(record, actor, CommentAction.COMMENT_EDIT)
        trimmed = normalize_body(body, self._settings)
        updated = record.model_copy(update={"body": trimmed, "updated_at": at or now_utc()})
        self._put(updated)
        if not updated.is_local:
            self._overlay.add(comment_id)
        self._touch(CommentEventType.EDITED, post_id, comment_id)
        return updated

    def like(self, comment_id: str, user_id: str) -> Comment:
        record = self._require(comment_id)
        if user_id in record.liked_by:
            raise AlreadyLikedError(
                "You have already liked this comment", comment_id=comment_id, user_id=user_id
            )
        updated = record.model_copy(
            update={"liked_by": record.liked_by | {user_id}, "updated_at": now_utc()}
        )
        self._put(updated)
        if not updated.is_local:
            self._overlay.add(comment_id)
        self._touch(CommentEventType.LIKED, updated.post_id, comment_id)
        return updated

    def unlike(self, comment_id: str, user_id: str) -> Comment:
        record = self._require(comment_id)
        if user_id not in record.liked_by:
            raise NotLikedError(
                "You have not liked this comment yet", comment_id=comment_id, user_id=user_id
            )
        updated = record.model_copy(
            update={"liked_by": record.liked_by - {user_id}, "updated_at": now_utc()}
        )
        self._put(updated)
        if not updated.is_local:
            self._overlay.add(comment_id)
        self._touch(CommentEventType.UNLIKED, updated.post_id, comment_id)
        return updated

    def toggle_like(self, comment_id: str, user_id: str, like: bool) -> Comment:
        if like:
            return self.like(comment_id, user_id)
        return self.unlike(comment_id, user_id)

    def replace_post(
        self, post_id: str, comments: Iterable[Comment], total: Optional[int] = None
    ) -> list[Comment]:
        current = self._posts.get(post_id, {})
        deleted = self._deleted.get(post_id, set())
        merged: dict[str, Comment] = {}
        listed: set[str] = set()
        skipped_deleted = 0

        for incoming in comments:
            if incoming.post_id != post_id:
                logger.warning(
                    "Skipping comment %s: listed under post %s but belongs to %s",
                    incoming.id,
                    post_id,
                    incoming.post_id,
                )
                continue
            known_post = self._post_of.get(incoming.id)
            if known_post is not None and known_post != post_id:
                logger.warning(
                    "Skipping comment %s: already held under post %s", incoming.id, known_post
                )
                continue
            listed.add(incoming.id)
            if self._is_deleted(incoming):
                # Listing was fetched before the delete went through
                logger.info("Skipping deleted comment %s in listing of post %s", incoming.id, post_id)
                skipped_deleted += 1
                continue
            existing = current.get(incoming.id)
            if existing is not None and (
                incoming.id in self._overlay or self._is_stale(incoming, existing)
            ):
                merged[incoming.id] = existing
            else:
                merged[incoming.id] = incoming

        # Optimistic records the listing cannot know about yet
        pending_local = 0
        for comment_id, existing in current.items():
            if comment_id in merged:
                continue
            if existing.is_local or comment_id in self._overlay:
                merged[comment_id] = existing
                if existing.is_local:
                    pending_local += 1

        for comment_id in current:
            if comment_id not in merged:
                self._post_of.pop(comment_id, None)
                self._overlay.discard(comment_id)
        for comment_id in merged:
            self._post_of[comment_id] = post_id

        # A delete stays remembered only while listings still report the id
        if deleted:
            deleted &= listed
            if not deleted:
                self._deleted.pop(post_id, None)

        self._posts[post_id] = merged
        if total is not None:
            self._counts[post_id] = max(total - skipped_deleted, 0) + pending_local
        else:
            self._counts[post_id] = len(merged)
        self._touch(CommentEventType.POST_REPLACED, post_id)
        return list(merged.values())

    def clear_post(self, post_id: str) -> int:
        comments = self._posts.pop(post_id, {})
        for comment_id in comments:
            self._post_of.pop(comment_id, None)
            self._overlay.discard(comment_id)
        self._counts.pop(post_id, None)
        self._deleted.pop(post_id, None)
        if comments:
            self._touch(CommentEventType.POST_CLEARED, post_id)
        return len(comments)

    def reset(self) -> None:
        self._posts.clear()
        self._post_of.clear()
        self._overlay.clear()
        self._deleted.clear()
        self._counts.clear()
        # Versions keep counting so memoized trees never see an old version again
        for post_id in list(self._versions):
            self._versions[post_id] += 1
        self._touch(CommentEventType.RESET, None)

    # ===========================================
    # Reads
    # ===========================================

    def get(self, comment_id: str) -> Optional[Comment]:
        post_id = self._post_of.get(comment_id)
        if post_id is None:
            return None
        return self._posts.get(post_id, {}).get(comment_id)

    def list_by_post(self, post_id: str) -> list[Comment]:
        return list(self._posts.get(post_id, {}).values())

    def list_by_author(self, author_id: str) -> list[Comment]:
        return [
            comment
            for comments in self._posts.values()
            for comment in comments.values()
            if comment.author_id == author_id
        ]

    def comment_count(self, post_id: str) -> int:
        return self._counts.get(post_id, 0)

    def version(self, post_id: str) -> int:
        return self._versions.get(post_id, 0)

    def has_pending_changes(self, comment_id: str) -> bool:
        """True while a local edit/like on a confirmed comment awaits the server."""
        return comment_id in self._overlay

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        return self._bus.subscribe(listener)
