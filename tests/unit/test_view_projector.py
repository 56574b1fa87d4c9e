"""
Unit tests for viewer-relative projection.
"""

from blogcomments.services.tree_builder import build_comment_tree
from blogcomments.services.view_projector import (
    display_author,
    is_liked_by_viewer,
    likes_count,
    project_comment,
    project_tree,
)

from conftest import make_comment


class TestLikes:
    def test_viewer_in_liked_by(self, alice):
        comment = make_comment("c1", liked_by={"alice", "bob"})

        view = project_comment(comment, alice)

        assert view.is_liked is True
        assert view.likes_count == 2

    def test_viewer_not_in_liked_by(self, bob):
        comment = make_comment("c1", liked_by={"alice"})

        assert project_comment(comment, bob).is_liked is False

    def test_anonymous_viewer(self):
        comment = make_comment("c1", liked_by={"alice"})

        view = project_comment(comment, None)

        assert view.is_liked is False
        assert view.can_edit is False
        assert view.likes_count == 1

    def test_count_includes_unattributed_likes(self):
        comment = make_comment("c1", liked_by={"alice"}, unattributed_likes=4)

        assert likes_count(comment) == 5
        assert is_liked_by_viewer(comment, None) is False


class TestAuthorFallbacks:
    def test_display_name_preferred(self, settings):
        comment = make_comment(
            "c1", author_display_name="Alice A.", author_username="alice", author_avatar="a.png"
        )

        author = display_author(comment, settings)

        assert author.name == "Alice A."
        assert author.username == "alice"
        assert author.avatar == "a.png"

    def test_name_falls_back_to_username(self, settings):
        comment = make_comment("c1", author_username="alice")

        author = display_author(comment, settings)

        assert author.name == "alice"
        assert author.username == "alice"

    def test_username_falls_back_to_name(self, settings):
        comment = make_comment("c1", author_display_name="Alice")

        assert display_author(comment, settings).username == "Alice"

    def test_everything_missing(self, settings):
        comment = make_comment("c1", author_display_name="  ")

        author = display_author(comment, settings)

        assert author.name == "Unknown"
        assert author.username == "unknown"
        assert author.avatar == "default-avatar.png"
        assert author.id == "alice"


class TestCanEdit:
    def test_author_can_edit(self, alice):
        assert project_comment(make_comment("c1", author_id="alice"), alice).can_edit is True

    def test_other_user_cannot_edit(self, bob):
        assert project_comment(make_comment("c1", author_id="alice"), bob).can_edit is False

    def test_admin_can_edit(self, admin):
        assert project_comment(make_comment("c1", author_id="alice"), admin).can_edit is True


class TestProjectTree:
    def test_shape_is_preserved(self, alice, settings):
        comments = [
            make_comment("root", minute=0),
            make_comment("reply", parent_id="root", minute=1, liked_by={"alice"}),
        ]
        forest = build_comment_tree(comments)

        projected = project_tree(forest, alice, settings)

        assert [n.id for n in projected] == ["root"]
        reply = projected[0].replies[0]
        assert reply.id == "reply"
        assert reply.depth == 2
        assert reply.is_liked is True

    def test_projection_does_not_touch_store(self, store, alice):
        store.upsert(make_comment("c1", liked_by={"alice"}))
        before = store.get("c1")

        project_tree(build_comment_tree(store.list_by_post("post-1")), alice)

        assert store.get("c1") is before
        assert store.version("post-1") == 1
