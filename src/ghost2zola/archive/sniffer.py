"""Archive format detection and transparent decompression.

The format is decided from magic bytes only, so arbitrarily named exports
(``backup.bin``, ``ghost-2020``) are handled the same as ``.tar.gz`` files.
"""

import logging
import tarfile
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator

import filetype

from ..errors import ArchiveCorruptError, ReadFailedError, UnsupportedFormatError

logger = logging.getLogger(__name__)

# A tar header block; enough for the ustar magic at offset 257.
HEADER_SIZE = tarfile.BLOCKSIZE


class ArchiveFormat(Enum):
    """Supported archive envelopes."""
    TAR = "tar"
    TAR_GZ = "tar.gz"
    TAR_BZ2 = "tar.bz2"

    @property
    def stream_mode(self) -> str:
        """Mode string for ``tarfile.open`` in forward-only stream mode."""
        return _STREAM_MODES[self]


_STREAM_MODES = {
    ArchiveFormat.TAR: "r|",
    ArchiveFormat.TAR_GZ: "r|gz",
    ArchiveFormat.TAR_BZ2: "r|bz2",
}

_MIME_MAP = {
    "application/x-tar": ArchiveFormat.TAR,
    "application/gzip": ArchiveFormat.TAR_GZ,
    "application/x-bzip2": ArchiveFormat.TAR_BZ2,
}

SQLITE_MIME = "application/x-sqlite3"


def _is_plain_tar_header(header: bytes) -> bool:
    """Accept pre-POSIX tar headers, which carry no ustar magic.

    A valid header has a correct checksum; an all-zero block is the
    end-of-archive marker of an empty tar.
    """
    if len(header) < HEADER_SIZE:
        return False
    try:
        tarfile.TarInfo.frombuf(header[:HEADER_SIZE], tarfile.ENCODING, "surrogateescape")
    except tarfile.EmptyHeaderError:
        return True
    except tarfile.HeaderError:
        return False
    return True


def sniff_format(header: bytes) -> ArchiveFormat:
    """Classify the first bytes of an archive.
    
    Args:
        header: At least the first 512 bytes of the file (fewer for tiny files)
        
    Returns:
        Detected archive format
        
    Raises:
        UnsupportedFormatError: If no supported magic matches
    """
    kind = filetype.guess(header) if header else None
    if kind is not None:
        if kind.mime in _MIME_MAP:
            return _MIME_MAP[kind.mime]
        if kind.mime == SQLITE_MIME:
            raise UnsupportedFormatError(
                "input is a bare SQLite database, not an archive; "
                "pack the exported Ghost content directory into a tar file",
                mime=kind.mime,
            )

    if _is_plain_tar_header(header):
        return ArchiveFormat.TAR

    raise UnsupportedFormatError(
        "input does not appear to be a (compressed) tar file",
        mime=kind.mime if kind is not None else None,
    )


def detect_format(archive_path: Path) -> ArchiveFormat:
    """Read the head of ``archive_path`` and classify it."""
    try:
        with open(archive_path, "rb") as f:
            header = f.read(HEADER_SIZE)
    except OSError as e:
        raise ReadFailedError(f"Cannot read archive: {e}", path=str(archive_path)) from e

    archive_format = sniff_format(header)
    logger.debug(f"Detected format: {{'path': {str(archive_path)!r}, 'format': {archive_format.value!r}}}")
    return archive_format


@contextmanager
def open_tar_stream(archive_path: Path) -> Iterator[tarfile.TarFile]:
    """Open ``archive_path`` as a forward-only tar stream.

    The decompressor matching the sniffed format is stacked under the tar
    reader; callers iterate the yielded ``TarFile`` exactly once.

    Raises:
        UnsupportedFormatError: If the format is not recognised
        ArchiveCorruptError: If the first header cannot be decoded
        ReadFailedError: If the file cannot be opened
    """
    archive_path = Path(archive_path)
    archive_format = detect_format(archive_path)

    try:
        raw = open(archive_path, "rb")
    except OSError as e:
        raise ReadFailedError(f"Cannot open archive: {e}", path=str(archive_path)) from e

    try:
        try:
            tar = tarfile.open(fileobj=raw, mode=archive_format.stream_mode)
        except (tarfile.TarError, EOFError, OSError) as e:
            raise ArchiveCorruptError(
                f"Cannot decode {archive_format.value} stream: {e}",
                path=str(archive_path),
            ) from e
        try:
            yield tar
        finally:
            tar.close()
    finally:
        raw.close()
