"""Tests for per-column coercion of Ghost rows."""

import sqlite3
from datetime import datetime, timezone

import pytest
from ghost2zola.ghost.models import CoercionError, Post, PostTag, User, to_bool, to_datetime, to_id, to_text


def make_row(**values):
    """A real sqlite3.Row with the given columns."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    columns = ", ".join(f"? AS {name}" for name in values)
    row = conn.execute(f"SELECT {columns}", list(values.values())).fetchone()
    conn.close()
    return row


POST_COLUMNS = dict(
    id=7, uuid="p-7", title="T", slug="t", author_id=1, created_at="2020-02-03 04:05:06",
    created_by=1, status="published", featured=0, page=0, language="en_US", visibility="public",
)


class TestCoercion:
    """Test the coercion rules for loosely typed columns."""

    @pytest.mark.parametrize("value, expected", [
        (0, False), (1, True), ("0", False), ("1", True),
        ("true", True), ("False", False), ("", False), (None, False),
    ])
    def test_to_bool(self, value, expected):
        assert to_bool(value, "featured") is expected

    @pytest.mark.parametrize("value", [2, "maybe", 1.5])
    def test_to_bool_rejects(self, value):
        with pytest.raises(CoercionError) as excinfo:
            to_bool(value, "featured")
        assert excinfo.value.column == "featured"

    def test_to_datetime_iso_text(self):
        assert to_datetime("2020-01-01 10:20:30", "created_at") == datetime(
            2020, 1, 1, 10, 20, 30, tzinfo=timezone.utc
        )

    def test_to_datetime_date_only(self):
        assert to_datetime("2020-01-01", "published_at") == datetime(2020, 1, 1, tzinfo=timezone.utc)

    def test_to_datetime_converts_offsets_to_utc(self):
        assert to_datetime("2020-01-01T02:00:00+02:00", "created_at") == datetime(
            2020, 1, 1, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", [1577836800000, "1577836800000"])
    def test_to_datetime_epoch_milliseconds(self, value):
        assert to_datetime(value, "created_at") == datetime(2020, 1, 1, tzinfo=timezone.utc)

    def test_to_datetime_empty(self):
        assert to_datetime(None, "updated_at") is None
        assert to_datetime("", "updated_at") is None

    def test_to_datetime_rejects_garbage(self):
        with pytest.raises(CoercionError):
            to_datetime("last tuesday", "created_at")

    def test_to_id(self):
        assert to_id(5, "id") == 5
        assert to_id("5", "id") == 5
        assert to_id("5e4bc5b7a11f0e0001b0c7d2", "id") == "5e4bc5b7a11f0e0001b0c7d2"
        assert to_id(None, "parent_id") is None

    def test_to_text_decodes_bytes(self):
        assert to_text("é".encode("utf-8"), "title") == "é"
        with pytest.raises(CoercionError):
            to_text(b"\xff\xfe", "title")


class TestFromRow:
    """Test building records from rows."""

    def test_post_minimal_row(self):
        """Optional columns absent from the schema read as None."""
        post = Post.from_row(make_row(**POST_COLUMNS))
        assert post.id == 7
        assert post.markdown is None
        assert post.published_at is None
        assert post.is_published
        assert post.date == datetime(2020, 2, 3, 4, 5, 6, tzinfo=timezone.utc)

    def test_post_feature_image_column(self):
        post = Post.from_row(make_row(**POST_COLUMNS, feature_image="/content/images/a.png"))
        assert post.image == "/content/images/a.png"

    def test_draft_uses_created_at(self):
        post = Post.from_row(make_row(**{**POST_COLUMNS, "status": "draft"}))
        assert post.is_draft
        assert post.date == post.created_at

    def test_post_requires_created_at(self):
        with pytest.raises(CoercionError):
            Post.from_row(make_row(**{**POST_COLUMNS, "created_at": None}))

    def test_user_profile_image(self):
        user = User.from_row(make_row(
            id="1", uuid="u", name="Pete", slug="pete", email="p@example.com", profile_image="/content/images/p.jpg"
        ))
        assert user.id == 1
        assert user.image == "/content/images/p.jpg"

    def test_post_tag_sort_order(self):
        link = PostTag.from_row(make_row(post_id=1, tag_id=2, sort_order="3"))
        assert link.sort_order == 3
        with pytest.raises(CoercionError):
            PostTag.from_row(make_row(post_id=1, tag_id=2, sort_order="first"))
