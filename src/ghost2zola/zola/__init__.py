"""Producing Zola content from Ghost articles."""

from .writer import OutputWriter
from .media import MediaAsset, MediaMaterializer, MEDIA_REFERENCE
from .transformer import ContentTransformer, OutputFile, output_path, post_slug, select_body
from .indices import ensure_indices

__all__ = [
    'OutputWriter',
    'MediaAsset',
    'MediaMaterializer',
    'MEDIA_REFERENCE',
    'ContentTransformer',
    'OutputFile',
    'output_path',
    'post_slug',
    'select_body',
    'ensure_indices',
]
