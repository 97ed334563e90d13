"""Convert Ghost blog export archives into Zola content."""

__version__ = "0.1.0"

from .converter import ConversionResult, convert, find_databases, list_prefixes, locate_database
from .config import ConversionConfig, Ghost2ZolaConfig

__all__ = [
    '__version__',
    'ConversionResult',
    'ConversionConfig',
    'Ghost2ZolaConfig',
    'convert',
    'find_databases',
    'list_prefixes',
    'locate_database',
]
