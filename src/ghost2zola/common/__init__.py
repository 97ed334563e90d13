"""Common utilities for ghost2zola."""

from .config import ConfigLoader
from .logging import setup_logging, LogContext
from .logging_config import LoggingConfig
from .errors import Ghost2ZolaError, ConfigurationError
from .path_utils import normalize_archive_path, is_within, slugify

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'LogContext',
    'Ghost2ZolaError',
    'ConfigurationError',
    'normalize_archive_path',
    'is_within',
    'slugify',
]
