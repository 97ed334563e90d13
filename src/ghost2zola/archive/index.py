"""Walk-once index over a tar stream.

The archive is decompressed exactly once. While walking it, the bytes of
every retained regular file are spilled into a private temporary directory
(the arena) so that later stages can re-read them at will: SQLite needs a
real, seekable file and media copies happen long after the stream has
moved on.
"""

import logging
import tarfile
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Iterator, List, Optional

from ghost2zola.common import normalize_archive_path
from ..errors import ArchiveCorruptError, ReadFailedError, WriteFailedError
from .sniffer import open_tar_stream

logger = logging.getLogger(__name__)

INFO_PROGRESS_MASK = 0x7fff
DEBUG_PROGRESS_MASK = 0x1fff
COPY_CHUNK_SIZE = 1024 * 1024


class EntryKind(Enum):
    """Kinds of archive entries the index keeps."""
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class ArchiveEntry:
    """One indexed tar member."""
    path: str
    kind: EntryKind
    size: int
    local_path: Optional[Path] = None  # spilled copy inside the arena

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def is_materialized(self) -> bool:
        return self.local_path is not None

    def open(self) -> BinaryIO:
        """Open the spilled bytes of this entry for reading.

        Raises:
            ReadFailedError: If the entry is a directory, was not retained, or
                the arena copy cannot be opened
        """
        if self.local_path is None:
            raise ReadFailedError(
                f"Archive entry was not retained: {self.path}", path=self.path
            )
        try:
            return open(self.local_path, "rb")
        except OSError as e:
            raise ReadFailedError(f"Cannot read archive entry {self.path}: {e}", path=self.path) from e

    def read_bytes(self) -> bytes:
        with self.open() as f:
            return f.read()


def log_progress(idx: int, verb: str) -> None:
    """Log walk progress: INFO every 32768 entries, DEBUG every 8192."""
    if idx <= 0:
        return
    if idx & INFO_PROGRESS_MASK == 0:
        logger.info(f"{verb} {idx} archive entries")
    elif idx & DEBUG_PROGRESS_MASK == 0:
        logger.debug(f"{verb} {idx} archive entries")


class ArchiveIndex:
    """Mapping from normalized archive path to :class:`ArchiveEntry`.
    
    Usage:
        with ArchiveIndex.build(path) as index:
            entry = index.get("blog/content/data/ghost.db")
            data = entry.read_bytes()
    """

    def __init__(self, archive_path: Path, arena: Optional[tempfile.TemporaryDirectory] = None):
        self.archive_path = Path(archive_path)
        self._arena = arena
        self._entries: Dict[str, ArchiveEntry] = {}

    @classmethod
    def build(
        cls,
        archive_path: Path,
        spill: bool = True,
        retain: Optional[Callable[[str], bool]] = None,
    ) -> "ArchiveIndex":
        """Index an archive in a single forward pass.
        
        Args:
            archive_path: Path to a tar, tar.gz or tar.bz2 file (any name)
            spill: Whether to copy file bytes into the arena at all
            retain: Optional predicate on the normalized path; files for which
                it returns False are indexed but not spilled
            
        Returns:
            Populated index; close it (or use it as a context manager) to
            remove the arena

        Raises:
            UnsupportedFormatError: If the input is not a supported archive
            ArchiveCorruptError: If the stream or a header is malformed
        """
        arena = tempfile.TemporaryDirectory(prefix="ghost2zola-") if spill else None
        index = cls(archive_path, arena)
        try:
            index._walk(retain)
        except BaseException:
            index.close()
            raise
        return index

    def _walk(self, retain: Optional[Callable[[str], bool]]) -> None:
        logger.info(f"Indexing archive: {{'path': {str(self.archive_path)!r}}}")
        spilled = 0

        with open_tar_stream(self.archive_path) as tar:
            idx = 0
            members = iter(tar)
            while True:
                try:
                    member = next(members)
                except StopIteration:
                    break
                except (tarfile.TarError, EOFError, OSError) as e:
                    raise ArchiveCorruptError(
                        f"Malformed archive after {idx} entries: {e}",
                        path=str(self.archive_path),
                        entries_read=idx,
                    ) from e

                idx += 1
                log_progress(idx, "Indexed")

                path = normalize_archive_path(member.name)
                if not path:
                    continue

                if member.isdir():
                    self._entries[path] = ArchiveEntry(path, EntryKind.DIRECTORY, 0)
                    continue
                if not member.isfile():
                    logger.debug(f"Skipping non-regular entry: {{'path': {path!r}, 'type': {member.type!r}}}")
                    continue

                local_path = None
                if self._arena is not None and (retain is None or retain(path)):
                    local_path = self._spill(tar, member, spilled)
                    spilled += 1
                self._entries[path] = ArchiveEntry(path, EntryKind.FILE, member.size, local_path)

        logger.info(f"Indexed archive: {{'entries': {len(self._entries)}, 'spilled': {spilled}}}")

    def _spill(self, tar: tarfile.TarFile, member: tarfile.TarInfo, n: int) -> Path:
        """Copy the current member's bytes into the arena under an opaque name."""
        local_path = Path(self._arena.name) / f"{n:08d}"
        source = tar.extractfile(member)
        try:
            with open(local_path, "wb") as dest:
                while True:
                    try:
                        chunk = source.read(COPY_CHUNK_SIZE)
                    except (tarfile.TarError, EOFError, OSError) as e:
                        raise ArchiveCorruptError(
                            f"Cannot read data for {member.name}: {e}", path=member.name
                        ) from e
                    if not chunk:
                        break
                    dest.write(chunk)
        except OSError as e:
            raise WriteFailedError(
                f"Cannot spill {member.name} to temporary storage: {e}", path=member.name
            ) from e
        finally:
            source.close()
        return local_path

    def get(self, path: str) -> Optional[ArchiveEntry]:
        return self._entries.get(normalize_archive_path(path))

    def __contains__(self, path: str) -> bool:
        return normalize_archive_path(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return iter(self._entries.values())

    def paths(self) -> List[str]:
        """All indexed paths, in archive order."""
        return list(self._entries)

    def files(self) -> List[ArchiveEntry]:
        return [entry for entry in self._entries.values() if entry.is_file]

    def local_path(self, path: str) -> Path:
        """Arena location of a retained file, for consumers that need a real file.

        Raises:
            ReadFailedError: If the path is unknown or was not retained
        """
        entry = self.get(path)
        if entry is None or entry.local_path is None:
            raise ReadFailedError(f"Archive entry is not available: {path}", path=path)
        return entry.local_path

    def close(self) -> None:
        """Remove the arena."""
        if self._arena is not None:
            self._arena.cleanup()
            self._arena = None

    def __enter__(self) -> "ArchiveIndex":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
