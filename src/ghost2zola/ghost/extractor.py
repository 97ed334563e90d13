"""Load posts, users, tags and posts_tags from a Ghost database."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, TypeVar

from ..archive import ArchiveIndex, BlogLocation
from ..errors import SchemaMismatchError
from .database import GhostDatabase
from .models import CoercionError, Post, PostTag, Tag, User

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Columns every supported export must have. Optional columns (markdown,
# html, image, published_at, ...) read as None when absent.
REQUIRED_COLUMNS: Dict[str, FrozenSet[str]] = {
    "posts": frozenset({
        "id", "uuid", "title", "slug", "featured", "page", "status", "language",
        "visibility", "author_id", "created_at", "created_by",
    }),
    "users": frozenset({"id", "uuid", "name", "slug", "email"}),
    "tags": frozenset({"id", "uuid", "name", "slug"}),
    "posts_tags": frozenset({"post_id", "tag_id", "sort_order"}),
}

BODY_COLUMNS = frozenset({"markdown", "mobiledoc", "html"})


@dataclass
class GhostContent:
    """Rows of the four tables a conversion needs."""
    posts: List[Post] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    tags: List[Tag] = field(default_factory=list)
    posts_tags: List[PostTag] = field(default_factory=list)


def materialize_database(index: ArchiveIndex, location: BlogLocation) -> Path:
    """Filesystem path SQLite can open for the located database.

    The archive index already spilled the entry into its arena, so this is a
    lookup, not a copy.
    """
    path = index.local_path(location.db_entry_path)
    logger.debug(f"Materialized database: {{'entry': {location.db_entry_path!r}, 'path': {str(path)!r}}}")
    return path


def validate_schema(db: GhostDatabase) -> None:
    """Check that every required table and column is present.
    
    Raises:
        SchemaMismatchError: Naming the first table that is missing or
            lacks columns
    """
    for table, required in REQUIRED_COLUMNS.items():
        columns = set(db.table_columns(table))
        if not columns:
            raise SchemaMismatchError(f"Database has no '{table}' table", table=table)
        missing = sorted(required - columns)
        if missing:
            raise SchemaMismatchError(
                f"Table '{table}' lacks columns: {', '.join(missing)}",
                table=table,
                missing_columns=missing,
            )
        if table == "posts" and not (BODY_COLUMNS & columns):
            raise SchemaMismatchError(
                "Table 'posts' has none of the body columns markdown, mobiledoc, html",
                table=table,
            )


def _load(db: GhostDatabase, table: str, order_by: str, factory: Callable[..., T]) -> List[T]:
    records = []
    for row in db.select_all(table, order_by=order_by):
        try:
            records.append(factory(row))
        except CoercionError as e:
            row_id = row["id"] if "id" in row.keys() else None
            raise SchemaMismatchError(
                f"Unreadable value in '{table}': {e}",
                table=table,
                column=e.column,
                row_id=row_id,
            ) from e
    logger.debug(f"Loaded rows: {{'table': {table!r}, 'count': {len(records)}}}")
    return records


def extract_content(db: GhostDatabase) -> GhostContent:
    """Validate the schema and read the four tables.
    
    Args:
        db: Open (or openable) Ghost database
        
    Returns:
        Coerced records in a stable order
        
    Raises:
        SchemaMismatchError: If tables/columns are missing or a value cannot
            be coerced
        QueryFailedError: On SQLite errors
    """
    validate_schema(db)

    content = GhostContent(
        posts=_load(db, "posts", "id", Post.from_row),
        users=_load(db, "users", "id", User.from_row),
        tags=_load(db, "tags", "id", Tag.from_row),
        posts_tags=_load(db, "posts_tags", "post_id, sort_order, tag_id", PostTag.from_row),
    )

    logger.info(
        f"Extracted content: {{'posts': {len(content.posts)}, 'users': {len(content.users)}, "
        f"'tags': {len(content.tags)}, 'posts_tags': {len(content.posts_tags)}}}"
    )
    return content
