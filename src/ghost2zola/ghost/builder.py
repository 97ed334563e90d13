"""Join posts with their authors and ordered tags."""

import logging
from typing import Dict, List, Optional

from ..errors import DanglingReferenceError
from .extractor import GhostContent
from .models import Article, Id, Post, Tag, User

logger = logging.getLogger(__name__)


class ContentModel:
    """Lookup tables built once per run, and the articles derived from them."""

    def __init__(self, content: GhostContent):
        self.content = content
        self.users_by_id: Dict[Id, User] = {user.id: user for user in content.users}
        self.tags_by_id: Dict[Id, Tag] = {tag.id: tag for tag in content.tags}
        self.tags_by_post_id: Dict[Id, List[Tag]] = self._order_tags(content)

    def _order_tags(self, content: GhostContent) -> Dict[Id, List[Tag]]:
        links: Dict[Id, list] = {}
        for link in content.posts_tags:
            tag = self.tags_by_id.get(link.tag_id)
            if tag is None:
                raise DanglingReferenceError(
                    f"posts_tags row links post {link.post_id!r} to missing tag {link.tag_id!r}",
                    post_id=link.post_id,
                    tag_id=link.tag_id,
                )
            links.setdefault(link.post_id, []).append(((link.sort_order, _sort_key(link.tag_id)), tag))

        return {
            post_id: [tag for _, tag in sorted(entries, key=lambda entry: entry[0])]
            for post_id, entries in links.items()
        }

    def author_of(self, post: Post) -> User:
        author = self.users_by_id.get(post.author_id)
        if author is None:
            raise DanglingReferenceError(
                f"post {post.id!r} ({post.slug!r}) references missing author {post.author_id!r}",
                post_id=post.id,
                author_id=post.author_id,
            )
        return author

    def tags_of(self, post: Post) -> List[Tag]:
        return list(self.tags_by_post_id.get(post.id, ()))

    def parent_of(self, tag: Tag) -> Optional[Tag]:
        """One level of the tag hierarchy; None for root tags or unknown parents."""
        if tag.parent_id is None:
            return None
        return self.tags_by_id.get(tag.parent_id)

    def articles(self) -> List[Article]:
        """One article per post, in post order.

        Raises:
            DanglingReferenceError: If any post's author is missing
        """
        return [
            Article(post=post, author=self.author_of(post), tags=self.tags_of(post))
            for post in self.content.posts
        ]


def _sort_key(value: Id) -> tuple:
    # integer ids sort numerically, ObjectId strings lexically
    return (0, value, "") if isinstance(value, int) else (1, 0, value)


def build_articles(content: GhostContent) -> List[Article]:
    """Build every article of ``content``."""
    model = ContentModel(content)
    articles = model.articles()
    logger.info(f"Built articles: {{'count': {len(articles)}}}")
    return articles
