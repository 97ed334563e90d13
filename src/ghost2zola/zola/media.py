"""Tracks referenced Ghost images and copies them into the output tree."""

import logging
import posixpath
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote

from ghost2zola.common import is_within, normalize_archive_path
from ..archive import ArchiveIndex, BlogLocation
from ..errors import MissingMediaError
from .writer import OutputWriter

logger = logging.getLogger(__name__)

# Ghost serves the media root at /content/images. References are matched
# only when they are site-relative (or use Ghost 4's __GHOST_URL__
# placeholder): https://elsewhere.example/content/images/... is left alone.
MEDIA_URL_ROOT = "/content/images/"
MEDIA_REFERENCE = re.compile(
    r"(?:__GHOST_URL__|(?<![\w.\-/:]))/content/images/(?P<path>[^\s)\"'<>?#]+)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class MediaAsset:
    """One archive file and the place it is copied to."""
    source_path: str
    output_path: str


class MediaMaterializer:
    """Deduplicating registry of media assets for one blog.

    Paths keep their layout relative to the blog's media root:
    ``<prefix>/images/2020/01/a.jpg`` is copied to ``[media_dir/]2020/01/a.jpg``.
    """

    def __init__(self, index: ArchiveIndex, location: BlogLocation, media_dir: str = ""):
        self.index = index
        self.location = location
        self.media_dir = media_dir.strip("/")
        self._assets: Dict[str, MediaAsset] = {}
        self._rejected: List[MissingMediaError] = []
        self._lock = threading.Lock()

    def register(self, source_path: str) -> str:
        """Register an archive path below the media root; idempotent.
        
        Returns:
            Output path relative to the extract path
        """
        source_path = normalize_archive_path(source_path)
        with self._lock:
            asset = self._assets.get(source_path)
            if asset is None:
                relative = posixpath.relpath(source_path, self.location.media_root_path)
                output_path = posixpath.join(self.media_dir, relative) if self.media_dir else relative
                asset = MediaAsset(source_path, output_path)
                self._assets[source_path] = asset
            return asset.output_path

    def register_reference(self, reference: str) -> Optional[MediaAsset]:
        """Register the part of a ``/content/images/...`` URL after the media root.

        The path is URL-decoded. References that climb out of the media root
        are recorded as missing and yield None.
        """
        relative = posixpath.normpath(unquote(reference).replace("\\", "/").lstrip("/"))
        source_path = posixpath.join(self.location.media_root_path, relative)
        escapes = relative == ".." or relative.startswith("../")
        if escapes or not is_within(normalize_archive_path(source_path), self.location.media_root_path):
            logger.warning(f"Ignoring media reference outside the media root: {reference}")
            with self._lock:
                self._rejected.append(
                    MissingMediaError(f"Media reference escapes media root: {reference}", reference=reference)
                )
            return None
        output_path = self.register(source_path)
        return MediaAsset(normalize_archive_path(source_path), output_path)

    def assets(self) -> List[MediaAsset]:
        """Registered assets sorted by source path."""
        with self._lock:
            return sorted(self._assets.values(), key=lambda asset: asset.source_path)

    def _copy(self, asset: MediaAsset, writer: OutputWriter) -> Optional[MissingMediaError]:
        entry = self.index.get(asset.source_path)
        if entry is None or not entry.is_file or not entry.is_materialized:
            return MissingMediaError(
                f"Referenced media is missing from the archive: {asset.source_path}",
                source_path=asset.source_path,
                output_path=asset.output_path,
            )
        with entry.open() as source:
            writer.write_stream(asset.output_path, source)
        return None

    def materialize(self, writer: OutputWriter, workers: int = 1) -> Tuple[int, List[MissingMediaError]]:
        """Copy every registered asset.
        
        Args:
            writer: Output writer for the extract path
            workers: Number of copy threads
            
        Returns:
            Tuple of (assets copied, missing-media warnings)
        """
        assets = self.assets()
        if workers > 1 and len(assets) > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="media") as pool:
                results = list(pool.map(lambda asset: self._copy(asset, writer), assets))
        else:
            results = [self._copy(asset, writer) for asset in assets]

        missing = [warning for warning in results if warning is not None]
        copied = len(assets) - len(missing)
        with self._lock:
            warnings = self._rejected + missing
        logger.info(f"Copied media: {{'copied': {copied}, 'missing': {len(warnings)}}}")
        return copied, warnings
