"""
Comment sync service.

Bridges optimistic local mutations and the persistence API:

- every mutation is applied to the store first, then sent to the server;
- server answers are merged by comment id (or correlation token while a new
  comment is still local), never by position, so completions may arrive in
  any order;
- a rejected request rolls its optimistic change back and re-raises the typed
  error for the caller to show;
- a listing that has been superseded by a newer request for the same post is
  discarded on arrival.
"""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from blogcomments.core.config import Settings, get_settings
from blogcomments.core.exceptions import (
    AuthenticationError,
    CommentEngineError,
    ConflictError,
    LikeStateError,
    NotFoundError,
)
from blogcomments.core.logger import setup_logger
from blogcomments.interfaces.comment_api import ICommentApi
from blogcomments.interfaces.comment_store import ICommentStore
from blogcomments.models.comment import Comment, CommentCreate, CommentNode, CommentViewNode
from blogcomments.models.enums import FetchStatus
from blogcomments.models.user import Viewer
from blogcomments.services.tree_builder import CommentTreeCache
from blogcomments.services.view_projector import project_tree
from blogcomments.utils.datetime_utils import now_utc
from blogcomments.utils.validators import normalize_body

logger = setup_logger(__name__)


class CommentSyncService:
    """Optimistic comment operations for one client session."""

    def __init__(
        self,
        store: ICommentStore,
        api: ICommentApi,
        viewer: Optional[Viewer] = None,
        settings: Optional[Settings] = None,
        tree_cache: Optional[CommentTreeCache] = None,
    ):
        self._store = store
        self._api = api
        self._viewer = viewer
        self._settings = settings or get_settings()
        self._tree_cache = tree_cache or CommentTreeCache(
            self._settings.MAX_REPLY_DEPTH, self._settings.REPLY_ORDER
        )
        self._fetch_tokens: dict[str, str] = {}
        # Posts whose comment counter has been seeded by a listing
        self._listed_posts: set[str] = set()
        self._status: dict[str, FetchStatus] = {}
        self._errors: dict[str, CommentEngineError] = {}

    @property
    def store(self) -> ICommentStore:
        return self._store

    @property
    def viewer(self) -> Optional[Viewer]:
        return self._viewer

    def _require_viewer(self, action: str) -> Viewer:
        if self._viewer is None:
            raise AuthenticationError(f"Please log in to {action}")
        return self._viewer

    def _record_error(self, post_id: str, exc: Exception) -> None:
        if isinstance(exc, CommentEngineError):
            self._errors[post_id] = exc

    # ===========================================
    # Loading
    # ===========================================

    async def load_post(self, post_id: str) -> Optional[list[Comment]]:
        """
        Fetch a post's comments and merge them into the store.

        Returns:
            The post's flat comment list, or None when this response was
            superseded by a newer load (or cancelled) and therefore discarded
        """
        request_token = uuid4().hex
        self._fetch_tokens[post_id] = request_token
        self._status[post_id] = FetchStatus.LOADING
        self._errors.pop(post_id, None)

        try:
            page = await self._api.list_comments(post_id)
        except Exception as exc:
            if self._fetch_tokens.get(post_id) != request_token:
                logger.info("Ignoring failure of superseded comment load for post %s", post_id)
                return None
            self._fetch_tokens.pop(post_id, None)
            self._status[post_id] = FetchStatus.FAILED
            self._record_error(post_id, exc)
            raise

        if self._fetch_tokens.get(post_id) != request_token:
            logger.info("Discarding stale comment listing for post %s", post_id)
            return None
        self._fetch_tokens.pop(post_id, None)

        comments = self._store.replace_post(post_id, page.comments, total=page.total)
        self._listed_posts.add(post_id)
        self._status[post_id] = FetchStatus.SUCCEEDED
        return comments

    def cancel_load(self, post_id: str) -> None:
        """Stop caring about an in-flight load; its response will be discarded."""
        if self._fetch_tokens.pop(post_id, None) is not None:
            self._status[post_id] = FetchStatus.IDLE

    async def load_user_comments(self, user_id: Optional[str] = None) -> list[Comment]:
        """
        Fetch every comment of a user (the viewer by default) into the store.

        Counters of posts that have not been listed yet are left alone: a
        user's own comments say nothing about a post's total.
        """
        if user_id is None:
            user_id = self._require_viewer("see your comments").id
        comments = await self._api.list_user_comments(user_id)
        merged: list[Comment] = []
        for comment in comments:
            try:
                merged.append(
                    self._store.upsert(comment, counted=comment.post_id in self._listed_posts)
                )
            except ConflictError as exc:
                logger.warning("Skipping user comment %s: %s", comment.id, exc.message)
        return merged

    # ===========================================
    # Create
    # ===========================================

    async def add_comment(
        self, post_id: str, body: str, parent_id: Optional[str] = None
    ) -> Comment:
        """Post a comment or a reply. Shows up immediately as a local comment."""
        viewer = self._require_viewer("post comments")
        text = normalize_body(body, self._settings)

        if parent_id is not None:
            parent = self._store.get(parent_id)
            if parent is None:
                raise NotFoundError("Parent comment not found")
            if parent.post_id != post_id:
                raise ConflictError(
                    "Cannot reply to a comment of another post",
                    details={"post_id": post_id, "parent_id": parent_id},
                )
            if parent.is_local:
                raise ConflictError("Cannot reply to a comment that has not been saved yet")

        token = uuid4().hex
        now = now_utc()
        local = Comment(
            id=f"{self._settings.LOCAL_ID_PREFIX}{token}",
            post_id=post_id,
            parent_id=parent_id,
            author_id=viewer.id,
            author_display_name=viewer.display_name,
            author_username=viewer.username,
            author_avatar=viewer.avatar,
            body=text,
            created_at=now,
            updated_at=now,
            is_local=True,
            correlation_token=token,
        )
        self._store.upsert(local)

        try:
            created = await self._api.create_comment(
                CommentCreate(post_id=post_id, body=text, parent_id=parent_id),
                correlation_token=token,
            )
        except Exception as exc:
            self.reject_local(local.id)
            self._record_error(post_id, exc)
            raise

        return self.confirm_created(created, correlation_token=token)

    def _find_local_by_token(self, post_id: str, token: str) -> Optional[Comment]:
        for comment in self._store.list_by_post(post_id):
            if comment.is_local and comment.correlation_token == token:
                return comment
        return None

    def _find_local_by_content(self, confirmed: Comment) -> Optional[Comment]:
        candidates = [
            comment
            for comment in self._store.list_by_post(confirmed.post_id)
            if comment.is_local
            and comment.author_id == confirmed.author_id
            and comment.body.strip() == confirmed.body.strip()
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda c: c.created_at)

    def confirm_created(
        self, confirmed: Comment, correlation_token: Optional[str] = None
    ) -> Comment:
        """
        Replace the optimistic record of a created comment with the server's.

        The local record is found by correlation token. Without a token, and
        when enabled, the oldest local comment with the same post, author and
        body is taken instead (best effort: two identical quick submissions
        are indistinguishable).
        """
        token = correlation_token or confirmed.correlation_token
        local: Optional[Comment] = None
        if token:
            local = self._find_local_by_token(confirmed.post_id, token)
        elif self._settings.ALLOW_HEURISTIC_RECONCILE:
            local = self._find_local_by_content(confirmed)
            if local is not None:
                logger.info(
                    "Matched server comment %s to local %s by author and content",
                    confirmed.id,
                    local.id,
                )

        if local is not None:
            self._store.discard_local(local.id)

        return self._store.upsert(
            confirmed.model_copy(update={"is_local": False, "correlation_token": None})
        )

    def reject_local(self, local_id: str) -> Optional[Comment]:
        """Drop an optimistic comment the server refused."""
        record = self._store.get(local_id)
        if record is None or not record.is_local:
            return None
        logger.warning("Rolling back local comment %s on post %s", local_id, record.post_id)
        return self._store.discard_local(local_id)

    # ===========================================
    # Edit / delete
    # ===========================================

    def _require_saved(self, comment_id: str) -> Comment:
        record = self._store.get(comment_id)
        if record is None:
            raise NotFoundError(f"Comment {comment_id} not found")
        if record.is_local:
            raise ConflictError("Comment has not been saved yet")
        return record

    async def edit_comment(self, post_id: str, comment_id: str, body: str) -> Comment:
        viewer = self._require_viewer("edit comments")
        previous = self._require_saved(comment_id)
        edited = self._store.edit(post_id, comment_id, body, viewer)

        try:
            confirmed = await self._api.update_comment(post_id, comment_id, edited.body)
        except Exception as exc:
            current = self._store.get(comment_id)
            # Roll back only if nothing newer landed meanwhile
            if current is not None and current.body == edited.body and current.updated_at == edited.updated_at:
                logger.warning("Rolling back edit of comment %s", comment_id)
                self._store.restore(previous)
            self._record_error(post_id, exc)
            raise

        return self._store.upsert(confirmed)

    async def delete_comment(self, post_id: str, comment_id: str) -> Comment:
        """Delete a comment. Its replies stay and are shown at top level."""
        viewer = self._require_viewer("delete comments")
        self._require_saved(comment_id)
        removed = self._store.remove(post_id, comment_id, actor=viewer)

        try:
            await self._api.delete_comment(post_id, comment_id)
        except NotFoundError:
            logger.info("Comment %s was already deleted on the server", comment_id)
            return removed
        except Exception as exc:
            if self._store.get(comment_id) is None:
                logger.warning("Rolling back delete of comment %s", comment_id)
                self._store.restore(removed)
            self._record_error(post_id, exc)
            raise
        return removed

    # ===========================================
    # Likes
    # ===========================================

    async def like_comment(self, comment_id: str) -> Comment:
        return await self._apply_like(comment_id, like=True)

    async def unlike_comment(self, comment_id: str) -> Comment:
        return await self._apply_like(comment_id, like=False)

    async def toggle_like(self, comment_id: str, like: Optional[bool] = None) -> Comment:
        """Like or unlike; with like=None, flips the viewer's current like state."""
        if like is None:
            viewer = self._require_viewer("like comments")
            record = self._require_saved(comment_id)
            like = viewer.id not in record.liked_by
        return await self._apply_like(comment_id, like=like)

    async def _apply_like(self, comment_id: str, like: bool) -> Comment:
        viewer = self._require_viewer("like comments")
        record = self._require_saved(comment_id)
        self._store.toggle_like(comment_id, viewer.id, like)

        try:
            if like:
                confirmed = await self._api.like_comment(record.post_id, comment_id)
            else:
                confirmed = await self._api.unlike_comment(record.post_id, comment_id)
        except LikeStateError as exc:
            # Server already in the requested state: the local change stands
            self._record_error(record.post_id, exc)
            raise
        except Exception as exc:
            self._revert_like(comment_id, viewer.id, like)
            self._record_error(record.post_id, exc)
            raise

        return self._store.upsert(confirmed)

    def _revert_like(self, comment_id: str, user_id: str, liked: bool) -> None:
        try:
            self._store.toggle_like(comment_id, user_id, not liked)
        except (LikeStateError, NotFoundError) as exc:
            logger.warning("Could not roll back like on comment %s: %s", comment_id, exc.message)

    # ===========================================
    # Reads
    # ===========================================

    def get_forest(self, post_id: str) -> list[CommentNode]:
        return self._tree_cache.get(self._store, post_id)

    def get_thread(self, post_id: str) -> list[CommentViewNode]:
        """Nested comments of a post, projected for the current viewer."""
        return project_tree(self.get_forest(post_id), self._viewer, self._settings)

    def comment_count(self, post_id: str) -> int:
        return self._store.comment_count(post_id)

    def status(self, post_id: str) -> FetchStatus:
        return self._status.get(post_id, FetchStatus.IDLE)

    def last_error(self, post_id: str) -> Optional[CommentEngineError]:
        return self._errors.get(post_id)

    def clear_error(self, post_id: str) -> None:
        self._errors.pop(post_id, None)

    def reset(self) -> None:
        self._store.reset()
        self._tree_cache.invalidate()
        self._fetch_tokens.clear()
        self._listed_posts.clear()
        self._status.clear()
        self._errors.clear()
