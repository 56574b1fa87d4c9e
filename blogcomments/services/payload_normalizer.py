"""
Normalization boundary for persistence API payloads.

The blog backend answers in several shapes: bare arrays, {data: [...]},
{data: {comments: [...], total}}, nested data.data wrappers, comments nested
under `replies`, Mongo-style `_id` keys and populated user references. Every
payload goes through this module right after it is received; nothing
downstream ever looks at a raw payload.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional

from blogcomments.core.exceptions import PayloadError
from blogcomments.core.logger import setup_logger
from blogcomments.models.comment import Comment, CommentPage
from blogcomments.utils.datetime_utils import coerce_utc, now_utc

logger = setup_logger(__name__)

# Wrapper keys tried, in order, when digging for the comment list
LIST_KEYS = ("comments", "data", "items", "results")
SINGLE_KEYS = ("comment", "data")
# Bounded unwrapping of data.data.data... payloads
MAX_UNWRAP = 5


def _pick(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _as_id(value: Any) -> Optional[str]:
    """Read an identifier from a plain value or a populated reference."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dict):
        return _as_id(_pick(value, "_id", "id", "$oid"))
    text = str(value).strip()
    return text or None


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _author_fields(raw: dict[str, Any]) -> dict[str, Optional[str]]:
    refs = [ref for ref in (raw.get("author"), raw.get("userId"), raw.get("user")) if isinstance(ref, dict)]
    author_id = _as_id(_pick(raw, "authorId", "author_id"))
    if author_id is None:
        for ref in refs:
            author_id = _as_id(ref)
            if author_id:
                break
    if author_id is None:
        author_id = _as_id(_pick(raw, "userId", "user_id"))

    def from_refs(*keys: str) -> Optional[str]:
        for ref in refs:
            for key in keys:
                value = _as_text(ref.get(key))
                if value:
                    return value
        return None

    return {
        "author_id": author_id,
        "author_display_name": _as_text(_pick(raw, "authorDisplayName", "author_display_name"))
        or from_refs("name", "displayName", "display_name"),
        "author_username": _as_text(_pick(raw, "authorUsername", "author_username"))
        or from_refs("username"),
        "author_avatar": _as_text(_pick(raw, "authorAvatar", "author_avatar"))
        or from_refs("avatar", "avatarUrl", "avatar_url"),
    }


def _liked_by(raw: dict[str, Any]) -> set[str]:
    entries = _pick(raw, "likedBy", "liked_by")
    if entries is None:
        entries = raw.get("likes")
    if not isinstance(entries, list):
        return set()
    liked: set[str] = set()
    for entry in entries:
        if isinstance(entry, dict) and ("userId" in entry or "user_id" in entry):
            user_id = _as_id(_pick(entry, "userId", "user_id"))
        else:
            user_id = _as_id(entry)
        if user_id:
            liked.add(user_id)
    return liked


def normalize_comment(
    raw: Any,
    post_id: Optional[str] = None,
    viewer_id: Optional[str] = None,
    parent_id: Optional[str] = None,
) -> Comment:
    """
    Convert one raw comment record into the canonical Comment.

    Args:
        raw: Record as received
        post_id: Post the record was fetched for (used when the record omits it)
        viewer_id: User the server evaluated `isLiked` for
        parent_id: Enclosing comment when the record came nested under `replies`

    Raises:
        PayloadError: If the record lacks an id, post, author or body
    """
    if not isinstance(raw, dict):
        raise PayloadError("Comment record must be an object", details={"record": raw})

    comment_id = _as_id(_pick(raw, "_id", "id"))
    if comment_id is None:
        raise PayloadError("Comment record has no id", details={"record": raw})

    record_post_id = _as_id(_pick(raw, "postId", "post_id", "blogId")) or post_id
    if record_post_id is None:
        raise PayloadError(f"Comment {comment_id} has no post id")

    author = _author_fields(raw)
    if author["author_id"] is None:
        raise PayloadError(f"Comment {comment_id} has no author")

    body = _pick(raw, "content", "text", "body")
    if not isinstance(body, str):
        raise PayloadError(f"Comment {comment_id} has no content")

    liked_by = _liked_by(raw)
    is_liked = _pick(raw, "isLiked", "is_liked")
    if is_liked is True and viewer_id:
        liked_by.add(viewer_id)
    count = _pick(raw, "likesCount", "likes_count")
    unattributed = 0
    if isinstance(count, (int, float)) and not isinstance(count, bool):
        unattributed = max(int(count) - len(liked_by), 0)

    created_at = coerce_utc(_pick(raw, "createdAt", "created_at", "timestamp")) or now_utc()
    updated_at = coerce_utc(_pick(raw, "updatedAt", "updated_at")) or created_at

    raw_parent = _pick(raw, "parentId", "parent_id", "parent")
    record_parent = _as_id(raw_parent) if raw_parent is not None else parent_id

    return Comment(
        id=comment_id,
        post_id=record_post_id,
        parent_id=record_parent,
        **author,
        body=body,
        liked_by=frozenset(liked_by),
        unattributed_likes=unattributed,
        created_at=created_at,
        updated_at=updated_at,
        is_local=bool(_pick(raw, "isLocal", "is_local") or False),
        correlation_token=_as_text(_pick(raw, "clientToken", "correlationToken", "correlation_token")),
    )


def _walk(records: list[Any], parent_id: Optional[str] = None) -> Iterator[tuple[Any, Optional[str]]]:
    """Yield (record, enclosing parent id) for records and their nested replies."""
    stack = [(record, parent_id) for record in reversed(records)]
    while stack:
        record, enclosing = stack.pop()
        yield record, enclosing
        replies = record.get("replies") if isinstance(record, dict) else None
        if isinstance(replies, list) and replies:
            own_id = _as_id(_pick(record, "_id", "id"))
            stack.extend((reply, own_id) for reply in reversed(replies))


def _unwrap_list(payload: Any) -> tuple[list[Any], dict[str, Any]]:
    """Dig the comment array out of any wrapper; collect sibling metadata on the way."""
    meta: dict[str, Any] = {}
    node = payload
    for _ in range(MAX_UNWRAP):
        if isinstance(node, list):
            return node, meta
        if not isinstance(node, dict):
            break
        for key, value in node.items():
            if key not in LIST_KEYS and key not in meta:
                meta[key] = value
        for key in LIST_KEYS:
            if key in node:
                node = node[key]
                break
        else:
            break
    raise PayloadError("Response does not contain a comment list", details={"payload": payload})


def normalize_comment_list(
    payload: Any, post_id: Optional[str] = None, viewer_id: Optional[str] = None
) -> list[Comment]:
    """
    Normalize a listing payload into a flat list of comments.

    Nested replies are flattened. Records that cannot be normalized are
    skipped with a warning; duplicate ids keep their first occurrence.
    """
    records, _ = _unwrap_list(payload)
    return _normalize_records(records, post_id, viewer_id)


def _normalize_records(
    records: list[Any], post_id: Optional[str], viewer_id: Optional[str]
) -> list[Comment]:
    comments: list[Comment] = []
    seen: set[str] = set()
    for record, enclosing in _walk(records):
        try:
            comment = normalize_comment(record, post_id, viewer_id, parent_id=enclosing)
        except PayloadError as exc:
            logger.warning("Skipping invalid comment record: %s", exc.message)
            continue
        if comment.id in seen:
            continue
        seen.add(comment.id)
        comments.append(comment)
    return comments


def normalize_comment_page(
    payload: Any, post_id: str, viewer_id: Optional[str] = None
) -> CommentPage:
    records, meta = _unwrap_list(payload)
    comments = _normalize_records(records, post_id, viewer_id)
    total = meta.get("total")
    if not isinstance(total, int) or isinstance(total, bool) or total < 0:
        total = len(comments)
    return CommentPage(post_id=post_id, comments=comments, total=total)


def normalize_single_comment(
    payload: Any, post_id: Optional[str] = None, viewer_id: Optional[str] = None
) -> Comment:
    """Normalize a create/update/like response carrying one comment."""
    node = payload
    for _ in range(MAX_UNWRAP):
        if not isinstance(node, dict):
            break
        if "_id" in node or "id" in node:
            return normalize_comment(node, post_id, viewer_id)
        for key in SINGLE_KEYS:
            if isinstance(node.get(key), dict):
                node = node[key]
                break
        else:
            break
    raise PayloadError("Response does not contain a comment", details={"payload": payload})
