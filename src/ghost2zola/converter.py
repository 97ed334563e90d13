"""End-to-end conversion of a Ghost export archive into Zola content.

A run walks the archive once, locates the blog, reads its database, then
writes one page per post followed by the referenced images and the section
indices. Any error except missing media aborts the run; files written up to
that point are left in place.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import List, Optional

from ghost2zola.common import LogContext
from .archive import ArchiveIndex, BlogLocation, find_databases as find_database_paths
from .archive import list_candidate_prefixes, locate
from .archive.locator import MEDIA_DIRNAME, is_ghost_database
from .config import ConversionConfig
from .errors import MissingMediaError
from .ghost import GhostDatabase, build_articles, extract_content, materialize_database
from .ghost.models import Article
from .zola import ContentTransformer, MediaMaterializer, OutputWriter, ensure_indices

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Outcome of a successful run."""
    location: BlogLocation
    posts_written: int = 0
    assets_copied: int = 0
    indices_written: int = 0
    warnings: List[MissingMediaError] = field(default_factory=list)


def should_retain(path: str) -> bool:
    """Spill only what a conversion can read back: databases and media."""
    return is_ghost_database(path) or MEDIA_DIRNAME in PurePosixPath(path).parts[:-1]


def _included(article: Article, config: ConversionConfig) -> bool:
    post = article.post
    if post.is_draft and not config.include_drafts:
        return False
    if post.page and not config.include_pages:
        return False
    return True


def _write_articles(
    articles: List[Article],
    transformer: ContentTransformer,
    writer: OutputWriter,
    workers: int,
) -> int:
    def write_one(article: Article) -> str:
        output = transformer.transform(article)
        writer.write_text(output.path, output.render())
        return output.path

    if workers > 1 and len(articles) > 1:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="post") as pool:
            written = list(pool.map(write_one, articles))
    else:
        written = [write_one(article) for article in articles]

    logger.info(f"Wrote posts: {{'count': {len(written)}}}")
    return len(written)


def convert(
    archive_path: Path,
    extract_path: Path,
    prefix: Optional[str] = None,
    config: Optional[ConversionConfig] = None,
) -> ConversionResult:
    """Extract an archived Ghost blog into a Zola content directory.
    
    Args:
        archive_path: Tar file, optionally gzip/bzip2 compressed, of any name
        extract_path: Directory receiving the pages (typically ``content/blog``)
        prefix: Path prefix inside the archive selecting one of several blogs
        config: Conversion options; defaults when omitted
        
    Returns:
        Counts and the non-fatal missing-media warnings

    Raises:
        Ghost2ZolaError: Any fatal error; the output tree may be partially written
    """
    config = config or ConversionConfig()
    archive_path = Path(archive_path)

    with ArchiveIndex.build(archive_path, retain=should_retain) as index:
        location = locate(index, prefix)

        with LogContext(logger, archive=str(archive_path), blog_prefix=location.prefix):
            with GhostDatabase(materialize_database(index, location)) as db:
                content = extract_content(db)

            articles = [article for article in build_articles(content) if _included(article, config)]

            writer = OutputWriter(Path(extract_path), overwrite=config.overwrite)
            materializer = MediaMaterializer(index, location, media_dir=config.media_dir)
            transformer = ContentTransformer(location, materializer, config)

            result = ConversionResult(location=location)
            result.posts_written = _write_articles(articles, transformer, writer, config.worker_threads)
            result.assets_copied, result.warnings = materializer.materialize(
                writer, workers=config.worker_threads
            )
            if config.write_section_indices:
                result.indices_written = ensure_indices(writer)

    for warning in result.warnings:
        logger.warning(f"{warning.message}")
    logger.info(
        f"Conversion complete: {{'posts': {result.posts_written}, 'assets': {result.assets_copied}, "
        f"'indices': {result.indices_written}, 'missing_media': {len(result.warnings)}}}"
    )
    return result


def list_prefixes(archive_path: Path) -> List[str]:
    """Blog prefixes available in an archive, for use as ``convert(prefix=...)``."""
    with ArchiveIndex.build(Path(archive_path), spill=False) as index:
        return list_candidate_prefixes(index)


def find_databases(archive_path: Path, prefix: Optional[str] = None) -> List[str]:
    """Every Ghost database path in an archive (optionally within ``prefix``)."""
    with ArchiveIndex.build(Path(archive_path), spill=False) as index:
        return find_database_paths(index, prefix)


def locate_database(archive_path: Path, prefix: Optional[str] = None) -> BlogLocation:
    """Resolve the single blog ``prefix`` selects, without extracting anything."""
    with ArchiveIndex.build(Path(archive_path), spill=False) as index:
        return locate(index, prefix)
