"""
Unit tests for the in-memory comment store.
"""

import pytest

from blogcomments.core.exceptions import (
    AlreadyLikedError,
    ConflictError,
    NotFoundError,
    NotLikedError,
    UnauthorizedError,
    ValidationError,
)
from blogcomments.models.enums import CommentEventType

from conftest import at, make_comment


# ============================================
# Upsert
# ============================================


class TestUpsert:
    def test_uncounted_upsert_leaves_counter(self, store):
        store.upsert(make_comment("c1"), counted=False)

        assert store.get("c1") is not None
        assert store.comment_count("post-1") == 0

    def test_insert_then_list(self, store):
        store.upsert(make_comment("c1"))
        store.upsert(make_comment("c2"))

        ids = {c.id for c in store.list_by_post("post-1")}
        assert ids == {"c1", "c2"}
        assert store.comment_count("post-1") == 2

    def test_upsert_same_id_never_duplicates(self, store):
        store.upsert(make_comment("c1", body="first"))
        store.upsert(make_comment("c1", body="second", updated_minute=5))

        comments = store.list_by_post("post-1")
        assert len(comments) == 1
        assert comments[0].body == "second"
        assert store.comment_count("post-1") == 1

    def test_last_write_wins_by_updated_at(self, store):
        """t2 の内容が到着順に関係なく残る。"""
        t1 = make_comment("c1", body="from t1", updated_minute=1)
        t2 = make_comment("c1", body="from t2", updated_minute=2)

        store.upsert(t2)
        store.upsert(t1)
        assert store.get("c1").body == "from t2"

        other = type(store)()
        other.upsert(t1)
        other.upsert(t2)
        assert other.get("c1").body == "from t2"

    def test_reply_can_arrive_before_parent(self, store):
        store.upsert(make_comment("child", parent_id="parent"))
        store.upsert(make_comment("parent"))

        assert store.get("child").parent_id == "parent"
        assert store.comment_count("post-1") == 2

    def test_same_id_under_other_post_conflicts(self, store):
        store.upsert(make_comment("c1", post_id="post-1"))

        with pytest.raises(ConflictError):
            store.upsert(make_comment("c1", post_id="post-2"))

    def test_confirmed_record_replaces_pending_overlay(self, store, alice):
        store.upsert(make_comment("c1", updated_minute=10))
        store.like("c1", "alice")
        assert store.has_pending_changes("c1")

        # Server clock is behind the local one, the confirmation still wins
        confirmed = make_comment("c1", updated_minute=3, liked_by={"alice"})
        store.upsert(confirmed)

        assert store.get("c1").updated_at == at(3)
        assert not store.has_pending_changes("c1")


# ============================================
# Remove
# ============================================


class TestRemove:
    def test_remove_keeps_replies(self, store, alice):
        store.upsert(make_comment("parent"))
        store.upsert(make_comment("reply", parent_id="parent"))

        removed = store.remove("post-1", "parent", alice)

        assert removed.id == "parent"
        remaining = store.list_by_post("post-1")
        assert [c.id for c in remaining] == ["reply"]
        assert remaining[0].parent_id == "parent"
        assert store.comment_count("post-1") == 1

    def test_remove_unknown_comment_raises(self, store, alice):
        with pytest.raises(NotFoundError):
            store.remove("no-such-post", "nope", alice)

    def test_remove_by_non_author_is_rejected(self, store, bob):
        store.upsert(make_comment("c1", author_id="alice"))

        with pytest.raises(UnauthorizedError):
            store.remove("post-1", "c1", actor=bob)
        assert store.get("c1") is not None

    def test_admin_may_remove_any_comment(self, store, admin):
        store.upsert(make_comment("c1", author_id="alice"))

        store.remove("post-1", "c1", actor=admin)
        assert store.get("c1") is None

    def test_removed_comment_is_not_brought_back(self, store, alice):
        store.upsert(make_comment("c1"))
        store.remove("post-1", "c1", alice)

        store.upsert(make_comment("c1", updated_minute=9))
        store.replace_post("post-1", [make_comment("c1"), make_comment("c2")], total=2)

        assert store.get("c1") is None
        assert [c.id for c in store.list_by_post("post-1")] == ["c2"]
        assert store.comment_count("post-1") == 1

    def test_delete_forgotten_once_listing_drops_it(self, store, alice):
        store.upsert(make_comment("c1"))
        store.remove("post-1", "c1", alice)

        store.replace_post("post-1", [], total=0)
        store.upsert(make_comment("c1", updated_minute=9))

        assert store.get("c1") is not None

    def test_restore_forgets_delete(self, store, alice):
        store.upsert(make_comment("c1"))
        removed = store.remove("post-1", "c1", alice)

        store.restore(removed)
        store.replace_post("post-1", [make_comment("c1")], total=1)

        assert store.get("c1") is not None
        assert store.comment_count("post-1") == 1


class TestDiscardLocal:
    def test_discards_local_record(self, store):
        store.upsert(make_comment("local-1", is_local=True, correlation_token="1"))

        dropped = store.discard_local("local-1")

        assert dropped.id == "local-1"
        assert store.get("local-1") is None
        assert store.comment_count("post-1") == 0

    def test_refuses_saved_comment(self, store):
        store.upsert(make_comment("c1", author_id="alice"))

        with pytest.raises(ConflictError):
            store.discard_local("c1")
        assert store.get("c1") is not None
        assert store.comment_count("post-1") == 1

    def test_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            store.discard_local("local-missing")


# ============================================
# Edit
# ============================================


class TestEdit:
    def test_author_edits_body(self, store, alice):
        store.upsert(make_comment("c1"))

        edited = store.edit("post-1", "c1", "  new text  ", alice, at=at(30))

        assert edited.body == "new text"
        assert edited.updated_at == at(30)
        assert store.get("c1").body == "new text"

    def test_edit_by_other_user_rejected(self, store, bob):
        store.upsert(make_comment("c1", author_id="alice"))

        with pytest.raises(UnauthorizedError):
            store.edit("post-1", "c1", "hijacked", bob)
        assert store.get("c1").body == "comment c1"

    @pytest.mark.parametrize("body", ["", "   ", "x" * 1001])
    def test_edit_validates_body(self, store, alice, body):
        store.upsert(make_comment("c1"))

        with pytest.raises(ValidationError):
            store.edit("post-1", "c1", body, alice)

    def test_edit_unknown_comment(self, store, alice):
        with pytest.raises(NotFoundError):
            store.edit("post-1", "missing", "text", alice)


# ============================================
# Likes
# ============================================


class TestLikes:
    def test_like_then_unlike_restores_set(self, store):
        store.upsert(make_comment("c1", liked_by={"carol"}))
        original = store.get("c1").liked_by

        store.toggle_like("c1", "bob", like=True)
        assert store.get("c1").liked_by == {"carol", "bob"}
        store.toggle_like("c1", "bob", like=False)

        assert store.get("c1").liked_by == original

    def test_double_like_rejected(self, store):
        store.upsert(make_comment("c1"))
        store.like("c1", "bob")

        with pytest.raises(AlreadyLikedError) as exc_info:
            store.like("c1", "bob")
        assert exc_info.value.comment_id == "c1"
        assert len(store.get("c1").liked_by) == 1

    def test_unlike_when_absent_rejected(self, store):
        store.upsert(make_comment("c1"))

        with pytest.raises(NotLikedError):
            store.unlike("c1", "bob")

    def test_like_updates_timestamp(self, store):
        store.upsert(make_comment("c1"))

        liked = store.like("c1", "bob")
        assert liked.updated_at > at(0)

    def test_like_unknown_comment(self, store):
        with pytest.raises(NotFoundError):
            store.like("missing", "bob")


# ============================================
# Post-level operations
# ============================================


class TestPostOperations:
    def test_unknown_post_is_empty(self, store):
        assert store.list_by_post("nothing") == []
        assert store.comment_count("nothing") == 0
        assert store.clear_post("nothing") == 0

    def test_replace_post_keeps_local_records(self, store):
        store.upsert(make_comment("old"))
        store.upsert(make_comment("tmp", is_local=True, correlation_token="tok"))

        store.replace_post("post-1", [make_comment("s1"), make_comment("s2")], total=2)

        ids = {c.id for c in store.list_by_post("post-1")}
        assert ids == {"s1", "s2", "tmp"}
        assert store.get("old") is None
        assert store.comment_count("post-1") == 3

    def test_replace_post_keeps_pending_edit(self, store, alice):
        store.upsert(make_comment("c1"))
        store.edit("post-1", "c1", "edited locally", alice)

        store.replace_post("post-1", [make_comment("c1", body="server copy")])

        assert store.get("c1").body == "edited locally"

    def test_replace_post_skips_foreign_records(self, store):
        store.replace_post("post-1", [make_comment("c1"), make_comment("x", post_id="post-2")])

        assert [c.id for c in store.list_by_post("post-1")] == ["c1"]

    def test_list_by_author_spans_posts(self, store):
        store.upsert(make_comment("a1", post_id="p1", author_id="alice"))
        store.upsert(make_comment("a2", post_id="p2", author_id="alice"))
        store.upsert(make_comment("b1", post_id="p1", author_id="bob"))

        assert {c.id for c in store.list_by_author("alice")} == {"a1", "a2"}

    def test_reset_clears_everything(self, store):
        store.upsert(make_comment("c1"))
        version = store.version("post-1")

        store.reset()

        assert store.list_by_post("post-1") == []
        assert store.get("c1") is None
        assert store.version("post-1") > version


# ============================================
# Notifications
# ============================================


class TestSubscriptions:
    def test_listener_receives_events(self, store, alice):
        events = []
        unsubscribe = store.subscribe(events.append)

        store.upsert(make_comment("c1"))
        store.like("c1", "bob")
        store.remove("post-1", "c1", alice)
        unsubscribe()
        store.upsert(make_comment("c2"))

        assert [e.type for e in events] == [
            CommentEventType.UPSERTED,
            CommentEventType.LIKED,
            CommentEventType.REMOVED,
        ]
        assert all(e.post_id == "post-1" for e in events)
        assert [e.version for e in events] == [1, 2, 3]

    def test_version_moves_on_every_change(self, store):
        assert store.version("post-1") == 0
        store.upsert(make_comment("c1"))
        store.upsert(make_comment("c2"))
        assert store.version("post-1") == 2
