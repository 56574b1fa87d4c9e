"""
Comment tree construction.

Turns the flat, parent-pointer comment list of a post into a forest of
CommentNode. The forest is always re-derivable from the flat list; the only
state kept here is the memoization cache keyed by store version.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from blogcomments.core.config import get_settings
from blogcomments.core.logger import setup_logger
from blogcomments.interfaces.comment_store import ICommentStore
from blogcomments.models.comment import Comment, CommentNode
from blogcomments.models.enums import ReplyOrder

logger = setup_logger(__name__)

ParentKey = Optional[str]


def _normalized_parent(comment: Comment, by_id: dict[str, Comment]) -> ParentKey:
    """Parent id used for grouping, or None when the comment sits at top level."""
    if not comment.is_reply:
        return None
    parent_id = comment.parent_id
    if parent_id == comment.id:
        logger.warning("Integrity fault: comment %s replies to itself; re-homed to top level", comment.id)
        return None
    parent = by_id.get(parent_id)
    if parent is None:
        # Parent deleted or not loaded: orphan is re-homed
        logger.debug("Comment %s has missing parent %s; re-homed to top level", comment.id, parent_id)
        return None
    if parent.post_id != comment.post_id:
        logger.warning(
            "Integrity fault: comment %s (post %s) replies to comment %s of post %s; re-homed to top level",
            comment.id,
            comment.post_id,
            parent.id,
            parent.post_id,
        )
        return None
    return parent_id


def _cycle_members(parent_of: dict[str, ParentKey]) -> set[str]:
    """Ids lying on a parent cycle. Iterative walk, each node visited once."""
    done: set[str] = set()
    members: set[str] = set()
    for start in parent_of:
        if start in done:
            continue
        path: list[str] = []
        position: dict[str, int] = {}
        node: ParentKey = start
        while node is not None and node not in done and node not in position:
            position[node] = len(path)
            path.append(node)
            node = parent_of.get(node)
        if node is not None and node in position:
            members.update(path[position[node]:])
        done.update(path)
    return members


def _sort_siblings(siblings: list[Comment], order: ReplyOrder) -> None:
    # list.sort is stable, including with reverse=True: ties keep input order
    siblings.sort(key=lambda c: c.created_at, reverse=order == ReplyOrder.NEWEST_FIRST)


def _to_node(comment: Comment, replies: list[CommentNode], depth: int) -> CommentNode:
    data = comment.model_dump()
    data.pop("replies", None)
    data.pop("depth", None)
    return CommentNode(**data, replies=replies, depth=depth)


def _descendants(comment_id: str, groups: dict[ParentKey, list[Comment]]) -> list[Comment]:
    """All descendants in pre-order, each sibling group in reply order."""
    out: list[Comment] = []
    stack = list(reversed(groups.get(comment_id, [])))
    while stack:
        current = stack.pop()
        out.append(current)
        stack.extend(reversed(groups.get(current.id, [])))
    return out


def _assemble(
    siblings: list[Comment],
    groups: dict[ParentKey, list[Comment]],
    depth: int,
    max_depth: int,
) -> list[CommentNode]:
    nodes: list[CommentNode] = []
    for comment in siblings:
        if depth >= max_depth:
            # Depth guard: deeper replies are laid out flat at this level
            nodes.append(_to_node(comment, [], depth))
            nodes.extend(_to_node(d, [], depth) for d in _descendants(comment.id, groups))
        else:
            replies = _assemble(groups.get(comment.id, []), groups, depth + 1, max_depth)
            nodes.append(_to_node(comment, replies, depth))
    return nodes


def build_comment_tree(
    comments: Iterable[Comment],
    max_depth: Optional[int] = None,
    order: Union[ReplyOrder, str, None] = None,
) -> list[CommentNode]:
    """
    Build the reply forest of a flat comment list.

    Missing parents, cross-post parents and parent cycles never raise: the
    affected comments are re-homed to top level (integrity faults are logged).

    Args:
        comments: Flat list, in any order
        max_depth: Deepest nesting level kept (top level is depth 1)
        order: Sibling order; ties keep their input order

    Returns:
        Top-level nodes with nested replies
    """
    settings = get_settings()
    max_depth = settings.MAX_REPLY_DEPTH if max_depth is None else max_depth
    if max_depth < 1:
        raise ValueError("max_depth must be at least 1")
    order = ReplyOrder(order or settings.REPLY_ORDER)

    by_id: dict[str, Comment] = {}
    ordered: list[Comment] = []
    for comment in comments:
        if comment.id in by_id:
            logger.warning("Integrity fault: duplicate comment id %s; keeping first occurrence", comment.id)
            continue
        by_id[comment.id] = comment
        ordered.append(comment)

    parent_of: dict[str, ParentKey] = {c.id: _normalized_parent(c, by_id) for c in ordered}
    for comment_id in sorted(_cycle_members(parent_of)):
        logger.warning("Integrity fault: comment %s is part of a parent cycle; re-homed to top level", comment_id)
        parent_of[comment_id] = None

    groups: dict[ParentKey, list[Comment]] = {}
    for comment in ordered:
        groups.setdefault(parent_of[comment.id], []).append(comment)
    for siblings in groups.values():
        _sort_siblings(siblings, order)

    return _assemble(groups.get(None, []), groups, 1, max_depth)


def flatten_tree(forest: Iterable[CommentNode]) -> list[Comment]:
    """Pre-order list of the comments held in a forest."""
    out: list[Comment] = []
    stack = list(reversed(list(forest)))
    while stack:
        node = stack.pop()
        out.append(Comment(**node.model_dump(exclude={"replies", "depth"})))
        stack.extend(reversed(node.replies))
    return out


def count_nodes(forest: Iterable[CommentNode]) -> int:
    total = 0
    stack = list(forest)
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(node.replies)
    return total


def tree_depth(forest: Iterable[CommentNode]) -> int:
    """Number of nesting levels in a forest (0 when empty)."""
    deepest = 0
    stack = [(node, 1) for node in forest]
    while stack:
        node, level = stack.pop()
        deepest = max(deepest, level)
        stack.extend((reply, level + 1) for reply in node.replies)
    return deepest


def find_in_tree(forest: Iterable[CommentNode], comment_id: str) -> Optional[CommentNode]:
    stack = list(forest)
    while stack:
        node = stack.pop()
        if node.id == comment_id:
            return node
        stack.extend(node.replies)
    return None


class CommentTreeCache:
    """Memoized forests per post, invalidated whenever the store's post version moves."""

    def __init__(self, max_depth: Optional[int] = None, order: Union[ReplyOrder, str, None] = None):
        self._max_depth = max_depth
        self._order = order
        self._entries: dict[str, tuple[int, list[CommentNode]]] = {}

    def get(self, store: ICommentStore, post_id: str) -> list[CommentNode]:
        version = store.version(post_id)
        cached = self._entries.get(post_id)
        if cached is not None and cached[0] == version:
            return cached[1]
        forest = build_comment_tree(store.list_by_post(post_id), self._max_depth, self._order)
        self._entries[post_id] = (version, forest)
        return forest

    def invalidate(self, post_id: Optional[str] = None) -> None:
        if post_id is None:
            self._entries.clear()
        else:
            self._entries.pop(post_id, None)
