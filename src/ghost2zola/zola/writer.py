"""Writes the Zola output tree."""

import logging
import posixpath
import threading
from pathlib import Path
from typing import BinaryIO, Set

from ..errors import OutputCollisionError, WriteFailedError

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


class OutputWriter:
    """
    Creates files below ``extract_path``.

    Every relative path may be claimed once per run; a second claim is an
    :class:`OutputCollisionError`, as is an existing file on disk unless
    ``overwrite`` is set. Claims are serialized under a lock and files are
    opened with exclusive create, so concurrent writers cannot clobber
    each other.
    """

    def __init__(self, extract_path: Path, overwrite: bool = False):
        self.extract_path = Path(extract_path)
        self.overwrite = overwrite
        self._claimed: Set[str] = set()
        self._lock = threading.Lock()
        try:
            self.extract_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteFailedError(
                f"Cannot create extract path: {e}", path=str(self.extract_path)
            ) from e
        self._root = self.extract_path.resolve()

    @property
    def written(self) -> Set[str]:
        with self._lock:
            return set(self._claimed)

    def resolve(self, relative_path: str) -> Path:
        """Absolute target for ``relative_path``.

        Raises:
            WriteFailedError: If the path would land outside the extract path
        """
        normalized = posixpath.normpath(relative_path.replace("\\", "/"))
        target = (self._root / normalized).resolve()
        if normalized.startswith("/") or not target.is_relative_to(self._root):
            logger.warning(f"Refusing path outside extraction root: {relative_path}")
            raise WriteFailedError(
                f"Path escapes the extract path: {relative_path}", path=relative_path
            )
        return target

    def _claim(self, relative_path: str) -> Path:
        target = self.resolve(relative_path)
        key = target.relative_to(self._root).as_posix()
        with self._lock:
            if key in self._claimed:
                raise OutputCollisionError(
                    f"Two outputs map to the same path: {key}", path=key
                )
            self._claimed.add(key)
        return target

    def _open(self, target: Path, relative_path: str) -> BinaryIO:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            return open(target, "wb" if self.overwrite else "xb")
        except FileExistsError as e:
            raise OutputCollisionError(
                f"Refusing to overwrite existing file: {relative_path}",
                path=relative_path,
            ) from e
        except OSError as e:
            raise WriteFailedError(f"Cannot create {relative_path}: {e}", path=relative_path) from e

    def write_text(self, relative_path: str, text: str) -> Path:
        """Write UTF-8 text with ``\\n`` line endings on every platform."""
        target = self._claim(relative_path)
        with self._open(target, relative_path) as f:
            try:
                f.write(text.encode("utf-8"))
            except OSError as e:
                raise WriteFailedError(f"Cannot write {relative_path}: {e}", path=relative_path) from e
        logger.debug(f"Wrote {relative_path}")
        return target

    def write_stream(self, relative_path: str, source: BinaryIO) -> Path:
        """Copy ``source`` byte for byte to ``relative_path``."""
        target = self._claim(relative_path)
        with self._open(target, relative_path) as f:
            try:
                while chunk := source.read(COPY_CHUNK_SIZE):
                    f.write(chunk)
            except OSError as e:
                raise WriteFailedError(f"Cannot write {relative_path}: {e}", path=relative_path) from e
        logger.debug(f"Copied {relative_path}")
        return target

    def write_if_absent(self, relative_path: str, data: bytes) -> bool:
        """Create ``relative_path`` unless a file already exists there.

        Used for scaffolding that must never replace user edits, regardless
        of ``overwrite``.
        """
        target = self.resolve(relative_path)
        if target.exists():
            return False
        target = self._claim(relative_path)
        try:
            with open(target, "xb") as f:
                f.write(data)
        except FileExistsError:
            return False
        except OSError as e:
            raise WriteFailedError(f"Cannot create {relative_path}: {e}", path=relative_path) from e
        return True
