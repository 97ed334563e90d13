"""Reading Ghost export archives."""

from .sniffer import ArchiveFormat, sniff_format, detect_format, open_tar_stream
from .index import ArchiveIndex, ArchiveEntry, EntryKind
from .locator import BlogLocation, locate, find_databases, list_candidate_prefixes

__all__ = [
    'ArchiveFormat',
    'sniff_format',
    'detect_format',
    'open_tar_stream',
    'ArchiveIndex',
    'ArchiveEntry',
    'EntryKind',
    'BlogLocation',
    'locate',
    'find_databases',
    'list_candidate_prefixes',
]
