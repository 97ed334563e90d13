"""Reading the Ghost database embedded in an export."""

from .database import GhostDatabase
from .models import Article, Post, PostTag, Tag, User
from .extractor import GhostContent, extract_content, materialize_database, validate_schema
from .builder import ContentModel, build_articles

__all__ = [
    'GhostDatabase',
    'Article',
    'Post',
    'PostTag',
    'Tag',
    'User',
    'GhostContent',
    'extract_content',
    'materialize_database',
    'validate_schema',
    'ContentModel',
    'build_articles',
]
