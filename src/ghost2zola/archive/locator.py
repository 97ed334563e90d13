"""Find the Ghost database (and its blog) inside an indexed archive.

A standard Ghost content directory looks like::

    <prefix>/data/ghost.db
    <prefix>/images/2020/01/photo.jpg

so the blog prefix is the grandparent of the database and media lives in
the sibling ``images`` directory. An archive may hold several such trees;
a prefix then has to narrow the choice down to exactly one.
"""

import logging
import posixpath
from dataclasses import dataclass
from typing import Dict, List, Optional

from ghost2zola.common import is_within, normalize_archive_path
from ..errors import AmbiguousBlogError, BlogNotFoundError
from .index import ArchiveIndex

logger = logging.getLogger(__name__)

# Production, ghost-cli "local" installs, and development databases.
DATABASE_FILENAMES = frozenset({"ghost.db", "ghost-local.db", "ghost-dev.db"})
MEDIA_DIRNAME = "images"


@dataclass(frozen=True)
class BlogLocation:
    """Where one blog lives inside the archive."""
    prefix: str
    db_entry_path: str
    media_root_path: str

    @classmethod
    def from_db_path(cls, db_entry_path: str) -> "BlogLocation":
        prefix = posixpath.dirname(posixpath.dirname(db_entry_path))
        media_root = posixpath.join(prefix, MEDIA_DIRNAME) if prefix else MEDIA_DIRNAME
        return cls(prefix=prefix, db_entry_path=db_entry_path, media_root_path=media_root)


def is_ghost_database(path: str) -> bool:
    return posixpath.basename(path) in DATABASE_FILENAMES


def find_databases(index: ArchiveIndex, prefix: Optional[str] = None) -> List[str]:
    """All database entries in the archive, optionally within ``prefix``, in archive order."""
    prefix = normalize_archive_path(prefix) if prefix else ""
    return [
        entry.path
        for entry in index
        if entry.is_file and is_ghost_database(entry.path) and is_within(entry.path, prefix)
    ]


def _selectors(db_paths: List[str]) -> Dict[str, str]:
    """Map each database to a prefix that selects it and nothing else.

    That is the blog prefix when no other database lies within it, otherwise
    the database path itself (a blog at the archive root, a blog nested
    inside another, or ghost.db beside ghost-dev.db).
    """
    selectors = {}
    for path in db_paths:
        prefix = BlogLocation.from_db_path(path).prefix
        selected = [other for other in db_paths if is_within(other, prefix)]
        selectors[path] = prefix if selected == [path] else path
    return selectors


def list_candidate_prefixes(index: ArchiveIndex) -> List[str]:
    """Sorted prefixes, one per blog, each usable as the ``prefix`` of :func:`locate`."""
    return sorted(_selectors(find_databases(index)).values())


def locate(index: ArchiveIndex, prefix: Optional[str] = None) -> BlogLocation:
    """Resolve the single blog selected by ``prefix``.
    
    Args:
        index: Indexed archive
        prefix: Optional path prefix inside the archive (component-wise match)
        
    Returns:
        Location of the blog's database and media root
        
    Raises:
        BlogNotFoundError: If no database lies within the prefix
        AmbiguousBlogError: If several do; ``candidates`` lists their prefixes
    """
    matches = find_databases(index, prefix)

    if not matches:
        raise BlogNotFoundError(
            "input does not contain a ghost.db within search area",
            prefix=prefix,
            archive=str(index.archive_path),
        )

    if len(matches) > 1:
        selectors = _selectors(find_databases(index))
        candidates = sorted(selectors[path] for path in matches)
        raise AmbiguousBlogError(
            f"input contains {len(matches)} Ghost databases within search area; "
            f"choose one with a prefix: {', '.join(repr(c) for c in candidates)}",
            candidates=candidates,
            prefix=prefix,
            databases=matches,
        )

    location = BlogLocation.from_db_path(matches[0])
    logger.info(
        f"Located blog: {{'prefix': {location.prefix!r}, 'database': {location.db_entry_path!r}, "
        f"'media_root': {location.media_root_path!r}}}"
    )
    return location
