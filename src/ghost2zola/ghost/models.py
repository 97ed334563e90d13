"""Ghost database records.

Each record is built from one ``sqlite3.Row`` with an explicit coercion per
column. Ghost's SQLite exports are loose about types: booleans show up as
``0``/``1`` integers or as text, timestamps as ISO text or as epoch
milliseconds, and ids as integers (Ghost 0.x) or ObjectId strings (1.x+).
"""

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

Id = Union[int, str]

TRUE_VALUES = frozenset({"1", "true", "t", "yes"})
FALSE_VALUES = frozenset({"0", "false", "f", "no", ""})

PUBLISHED = "published"


class CoercionError(ValueError):
    """A column value cannot be converted to its field type."""

    def __init__(self, column: str, value: Any, expected: str) -> None:
        super().__init__(f"column {column!r}: cannot read {value!r} as {expected}")
        self.column = column
        self.value = value


def _raw(row: sqlite3.Row, column: str) -> Any:
    """Value of ``column``, or None for optional columns this schema lacks."""
    return row[column] if column in row.keys() else None


def to_id(value: Any, column: str) -> Optional[Id]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise CoercionError(column, value, "id")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        return int(value) if value.isdigit() else value
    raise CoercionError(column, value, "id")


def to_bool(value: Any, column: str) -> bool:
    if value is None:
        return False
    if isinstance(value, (bool, int)):
        if value in (0, 1):
            return bool(value)
        raise CoercionError(column, value, "boolean")
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_VALUES:
            return True
        if text in FALSE_VALUES:
            return False
    raise CoercionError(column, value, "boolean")


def to_datetime(value: Any, column: str) -> Optional[datetime]:
    """Parse a Ghost timestamp into an aware UTC datetime.

    SQLite has no datetime type; Ghost stores UTC either as ISO-8601 text
    or as milliseconds since the epoch.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.lstrip("-").isdigit():
            value = int(text)
        else:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                raise CoercionError(column, value, "timestamp") from None
            if parsed.tzinfo is None:
                return parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise CoercionError(column, value, "timestamp") from None
    raise CoercionError(column, value, "timestamp")


def to_text(value: Any, column: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            raise CoercionError(column, value[:32], "UTF-8 text") from None
    return str(value)


@dataclass(frozen=True)
class User:
    """Post author (``users`` table)."""
    id: Id
    uuid: str
    name: str
    slug: str
    email: str
    image: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "User":
        return cls(
            id=to_id(row["id"], "id"),
            uuid=to_text(row["uuid"], "uuid") or "",
            name=to_text(row["name"], "name") or "",
            slug=to_text(row["slug"], "slug") or "",
            email=to_text(row["email"], "email") or "",
            # Ghost 1.x renamed image -> profile_image
            image=to_text(_raw(row, "image") or _raw(row, "profile_image"), "image"),
            bio=to_text(_raw(row, "bio"), "bio"),
            website=to_text(_raw(row, "website"), "website"),
            location=to_text(_raw(row, "location"), "location"),
            created_at=to_datetime(_raw(row, "created_at"), "created_at"),
            updated_at=to_datetime(_raw(row, "updated_at"), "updated_at"),
        )


@dataclass(frozen=True)
class Tag:
    """Tag (``tags`` table). ``parent_id`` is an id, resolved by lookup only."""
    id: Id
    uuid: str
    name: str
    slug: str
    description: Optional[str] = None
    visibility: str = "public"
    parent_id: Optional[Id] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Tag":
        return cls(
            id=to_id(row["id"], "id"),
            uuid=to_text(row["uuid"], "uuid") or "",
            name=to_text(row["name"], "name") or "",
            slug=to_text(row["slug"], "slug") or "",
            description=to_text(_raw(row, "description"), "description"),
            visibility=to_text(_raw(row, "visibility"), "visibility") or "public",
            parent_id=to_id(_raw(row, "parent_id"), "parent_id"),
        )


@dataclass(frozen=True)
class PostTag:
    """Ordered post/tag association (``posts_tags`` table)."""
    post_id: Id
    tag_id: Id
    sort_order: int = 0
    id: Optional[Id] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "PostTag":
        sort_order = row["sort_order"]
        if sort_order is None:
            sort_order = 0
        try:
            sort_order = int(sort_order)
        except (TypeError, ValueError):
            raise CoercionError("sort_order", sort_order, "integer") from None
        return cls(
            post_id=to_id(row["post_id"], "post_id"),
            tag_id=to_id(row["tag_id"], "tag_id"),
            sort_order=sort_order,
            id=to_id(_raw(row, "id"), "id"),
        )


@dataclass(frozen=True)
class Post:
    """Post or static page (``posts`` table).

    ``markdown``, ``mobiledoc`` and ``html`` are alternative representations
    of the same body; which one wins is decided by the content transformer.
    """
    id: Id
    uuid: str
    title: str
    slug: str
    author_id: Id
    created_at: datetime
    created_by: Optional[Id] = None
    status: str = "draft"
    featured: bool = False
    page: bool = False
    language: str = "en_US"
    visibility: str = "public"
    markdown: Optional[str] = None
    mobiledoc: Optional[str] = None
    html: Optional[str] = None
    amp: Optional[str] = None
    image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[Id] = None
    published_at: Optional[datetime] = None
    published_by: Optional[Id] = None

    @property
    def is_published(self) -> bool:
        return self.status == PUBLISHED

    @property
    def is_draft(self) -> bool:
        return not self.is_published

    @property
    def date(self) -> Optional[datetime]:
        """Publication date, or creation date for never-published posts."""
        return self.published_at or self.created_at

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Post":
        created_at = to_datetime(row["created_at"], "created_at")
        if created_at is None:
            raise CoercionError("created_at", row["created_at"], "timestamp")
        return cls(
            id=to_id(row["id"], "id"),
            uuid=to_text(row["uuid"], "uuid") or "",
            title=to_text(row["title"], "title") or "",
            slug=to_text(row["slug"], "slug") or "",
            author_id=to_id(row["author_id"], "author_id"),
            created_at=created_at,
            created_by=to_id(row["created_by"], "created_by"),
            status=to_text(row["status"], "status") or "draft",
            featured=to_bool(row["featured"], "featured"),
            page=to_bool(row["page"], "page"),
            language=to_text(row["language"], "language") or "en_US",
            visibility=to_text(row["visibility"], "visibility") or "public",
            markdown=to_text(_raw(row, "markdown"), "markdown"),
            mobiledoc=to_text(_raw(row, "mobiledoc"), "mobiledoc"),
            html=to_text(_raw(row, "html"), "html"),
            amp=to_text(_raw(row, "amp"), "amp"),
            # Ghost 1.x renamed image -> feature_image
            image=to_text(_raw(row, "image") or _raw(row, "feature_image"), "image"),
            meta_title=to_text(_raw(row, "meta_title"), "meta_title"),
            meta_description=to_text(_raw(row, "meta_description"), "meta_description"),
            updated_at=to_datetime(_raw(row, "updated_at"), "updated_at"),
            updated_by=to_id(_raw(row, "updated_by"), "updated_by"),
            published_at=to_datetime(_raw(row, "published_at"), "published_at"),
            published_by=to_id(_raw(row, "published_by"), "published_by"),
        )


@dataclass
class Article:
    """A post joined with its author and ordered tags.

    ``body``, ``body_source`` and ``media_references`` are filled in by the
    content transformer.
    """
    post: Post
    author: User
    tags: list = field(default_factory=list)
    body: str = ""
    body_source: Optional[str] = None
    media_references: set = field(default_factory=set)

    @property
    def tag_names(self) -> list:
        return [tag.name for tag in self.tags]
