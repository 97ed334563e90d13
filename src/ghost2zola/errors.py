"""Conversion errors.

Every error except :class:`MissingMediaError` aborts a conversion. Missing
media is collected and reported once the rest of the run has finished.
"""

from typing import Sequence

from ghost2zola.common import Ghost2ZolaError


class ArchiveError(Ghost2ZolaError):
    """Reading the input archive failed."""
    pass


class UnsupportedFormatError(ArchiveError):
    """Input is neither a tar file nor a gzip/bzip2-compressed tar file."""
    pass


class ArchiveCorruptError(ArchiveError):
    """Archive stream is truncated, fails to decompress or has bad headers."""
    pass


class ReadFailedError(ArchiveError):
    """Archive or a spilled entry could not be read from disk."""
    pass


class BlogNotFoundError(ArchiveError):
    """No Ghost database matches the requested prefix."""
    pass


class AmbiguousBlogError(ArchiveError):
    """More than one Ghost database matches the requested prefix."""

    def __init__(self, message: str, candidates: Sequence[str] = (), **context) -> None:
        super().__init__(message, candidates=list(candidates), **context)
        self.candidates = list(candidates)


class DatabaseError(Ghost2ZolaError):
    """Reading the embedded Ghost database failed."""
    pass


class SchemaMismatchError(DatabaseError):
    """Database lacks an expected table or column, or holds an unreadable value."""
    pass


class QueryFailedError(DatabaseError):
    """SQLite reported an error while opening or querying the database."""
    pass


class DanglingReferenceError(DatabaseError):
    """A row references an id that does not exist in the referenced table."""
    pass


class OutputError(Ghost2ZolaError):
    """Writing the output tree failed."""
    pass


class OutputCollisionError(OutputError):
    """Two outputs map to the same path, or the path already exists."""
    pass


class WriteFailedError(OutputError):
    """Filesystem error while writing the output tree."""
    pass


class MissingMediaError(Ghost2ZolaError):
    """A referenced media file is absent from the archive (non-fatal)."""
    pass
