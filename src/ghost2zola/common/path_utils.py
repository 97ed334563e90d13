"""Path and name helpers shared by the archive and output layers."""

import re
import unicodedata
from pathlib import PurePosixPath

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
MAX_SLUG_LENGTH = 150


def normalize_archive_path(name: str) -> str:
    """
    Normalize a tar member name for lookups.

    Tar writers disagree on leading ``./``, trailing slashes on directories
    and (on Windows) backslashes. Every path stored in the archive index goes
    through this function, and so must every path used to query it.

    Examples:
        >>> normalize_archive_path("./blog/content/data/ghost.db")
        'blog/content/data/ghost.db'
        >>> normalize_archive_path("blog/content/images/")
        'blog/content/images'
    """
    name = unicodedata.normalize('NFC', name).replace('\\', '/')
    parts = [part for part in name.split('/') if part not in ('', '.')]
    return '/'.join(parts)


def is_within(path: str, prefix: str) -> bool:
    """Component-wise prefix test on normalized archive paths.

    An empty prefix contains everything; ``blog`` contains ``blog/x`` but not
    ``blog2/x``.
    """
    if not prefix:
        return True
    return PurePosixPath(path).is_relative_to(PurePosixPath(prefix))


def slugify(value: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Generate an ASCII slug, or an empty string when nothing survives."""
    normalized = unicodedata.normalize('NFKD', value)
    normalized = normalized.encode("ascii", "ignore").decode("ascii").lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized[:max_length].rstrip("-")
