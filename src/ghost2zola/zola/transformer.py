"""Turns joined Ghost articles into Zola content files.

Body precedence, highest first:

1. ``markdown`` when it is not blank;
2. with ``body_fallback = "html"`` (default): ``html``, then the markdown and
   HTML card payloads of ``mobiledoc``; with ``"mobiledoc"`` the other way
   round;
3. an empty body.

Nothing is re-rendered. Zola accepts raw HTML inside markdown, so HTML
bodies are embedded as they are.
"""

import logging
import posixpath
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set, Tuple
from urllib.parse import quote

import tomli_w

from ghost2zola.common import slugify
from ..archive import BlogLocation
from ..config import ConversionConfig
from ..errors import OutputCollisionError
from ..ghost.mobiledoc import passthrough_body
from ..ghost.models import Article, Post
from .media import MEDIA_REFERENCE, MediaMaterializer

logger = logging.getLogger(__name__)

FRONTMATTER_FENCE = "+++"
SAFE_SLUG = re.compile(r"\w[\w.\-]*")


@dataclass
class OutputFile:
    """A rendered Zola page."""
    path: str
    frontmatter: Dict[str, Any]
    body: str

    def render(self) -> str:
        return (
            f"{FRONTMATTER_FENCE}\n"
            f"{tomli_w.dumps(self.frontmatter)}"
            f"{FRONTMATTER_FENCE}\n"
            f"\n"
            f"{self.body}\n"
        )


def select_body(post: Post, fallback: str = "html") -> Tuple[str, Optional[str]]:
    """Pick the authoritative body of ``post``.

    Returns:
        Tuple of (body, name of the column it came from or None)
    """
    if post.markdown and post.markdown.strip():
        return post.markdown, "markdown"

    order = ("html", "mobiledoc") if fallback == "html" else ("mobiledoc", "html")
    for source in order:
        text = post.html if source == "html" else passthrough_body(post.mobiledoc or "")
        if text and text.strip():
            return text, source
    return "", None


def post_slug(post: Post) -> str:
    """File name stem for ``post``.

    - the post's own slug when it is a safe single path component
    - otherwise a slug made from that slug, then from the title
    - finally the post uuid (or id), which keeps re-runs deterministic
    """
    slug = (post.slug or "").strip()
    if slug and SAFE_SLUG.fullmatch(slug):
        return slug
    return slugify(slug) or slugify(post.title) or post.uuid or f"post-{post.id}"


def output_path(post: Post, layout: str = "dated") -> str:
    """``YYYY/MM/DD/<slug>.md`` (dated) or ``<slug>.md`` (flat)."""
    name = f"{post_slug(post)}.md"
    if layout == "flat":
        return name
    date = post.date
    return posixpath.join(f"{date:%Y}", f"{date:%m}", f"{date:%d}", name)


class ContentTransformer:
    """Builds :class:`OutputFile` objects and registers referenced media."""

    def __init__(
        self,
        location: BlogLocation,
        materializer: MediaMaterializer,
        config: Optional[ConversionConfig] = None,
    ):
        self.location = location
        self.materializer = materializer
        self.config = config or ConversionConfig()
        self._paths: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def _claim_path(self, path: str, article: Article) -> None:
        with self._lock:
            previous = self._paths.get(path)
            if previous is not None:
                raise OutputCollisionError(
                    f"Posts {previous!r} and {article.post.id!r} both map to {path}",
                    path=path,
                    post_ids=[previous, article.post.id],
                )
            self._paths[path] = article.post.id

    def link_for(self, media_output_path: str, page_path: str) -> str:
        """URL under which Zola serves ``media_output_path`` as seen from ``page_path``.

        Zola renders ``a/b/slug.md`` at ``a/b/slug/``, so page-relative links
        climb one extra level.
        """
        if self.config.media_url_prefix:
            return f"{self.config.media_url_prefix}/{quote(media_output_path)}"
        page_dir = posixpath.dirname(page_path) or "."
        return quote(posixpath.join("..", posixpath.relpath(media_output_path, page_dir)))

    def rewrite_media(self, text: str, page_path: str, references: Set[str]) -> str:
        """Register every media reference in ``text`` and point it at the copy."""
        def replace(match: re.Match) -> str:
            asset = self.materializer.register_reference(match.group("path"))
            if asset is None:
                return match.group(0)
            references.add(asset.source_path)
            return self.link_for(asset.output_path, page_path)

        return MEDIA_REFERENCE.sub(replace, text)

    def frontmatter(self, article: Article, page_path: str) -> Dict[str, Any]:
        post = article.post
        frontmatter: Dict[str, Any] = {
            "title": post.title,
            "slug": post_slug(post),
        }
        if post.meta_description:
            frontmatter["description"] = post.meta_description
        frontmatter["date"] = post.date
        if post.updated_at is not None:
            frontmatter["updated"] = post.updated_at
        frontmatter["draft"] = post.is_draft
        frontmatter["authors"] = [article.author.name]
        frontmatter["taxonomies"] = {"tags": article.tag_names}

        extra: Dict[str, Any] = {
            "id": post.id,
            "uuid": post.uuid,
            "author_name": article.author.name,
            "language": post.language,
            "featured": post.featured,
            "page": post.page,
            "visibility": post.visibility,
        }
        if post.meta_title:
            extra["meta_title"] = post.meta_title
        if post.image:
            extra["feature_image"] = self.rewrite_media(post.image, page_path, article.media_references)
        if self.config.include_author_images and article.author.image:
            extra["author_image"] = self.rewrite_media(
                article.author.image, page_path, article.media_references
            )
        frontmatter["extra"] = extra
        return frontmatter

    def transform(self, article: Article) -> OutputFile:
        """Render one article.
        
        Raises:
            OutputCollisionError: If another article already produced the same path
        """
        path = output_path(article.post, self.config.path_layout)
        self._claim_path(path, article)

        body, source = select_body(article.post, self.config.body_fallback)
        if source is None:
            logger.warning(f"Post has no content: {{'id': {article.post.id!r}, 'slug': {article.post.slug!r}}}")
        elif source != "markdown":
            logger.debug(f"Using {source} body: {{'id': {article.post.id!r}}}")

        article.body_source = source
        article.body = self.rewrite_media(body, path, article.media_references)

        return OutputFile(path=path, frontmatter=self.frontmatter(article, path), body=article.body)
