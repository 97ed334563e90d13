"""Zola section scaffolding.

Zola only picks up pages that live in a section, i.e. a directory with an
``_index.md``. The extract path gets the root template; every directory
below it gets a transparent branch template so that dated pages surface in
the root section. Existing ``_index.md`` files are never replaced.
"""

import logging
import os
from pathlib import Path

from .writer import OutputWriter

logger = logging.getLogger(__name__)

INDEX_FILENAME = "_index.md"
TEMPLATE_DIR = Path(__file__).parent / "templates"
ROOT_TEMPLATE = TEMPLATE_DIR / "root._index.md"
BRANCH_TEMPLATE = TEMPLATE_DIR / "branch._index.md"


def ensure_indices(writer: OutputWriter) -> int:
    """Create missing section indices below ``writer.extract_path``.
    
    Returns:
        Number of ``_index.md`` files created
    """
    root_data = ROOT_TEMPLATE.read_bytes()
    branch_data = BRANCH_TEMPLATE.read_bytes()
    created = 0

    for dirpath, dirnames, _ in os.walk(writer.extract_path):
        dirnames.sort()
        relative = Path(dirpath).relative_to(writer.extract_path).as_posix()
        if relative == ".":
            index_path, data = INDEX_FILENAME, root_data
        else:
            index_path, data = f"{relative}/{INDEX_FILENAME}", branch_data
        if writer.write_if_absent(index_path, data):
            created += 1
            logger.debug(f"Created section index {index_path}")

    logger.info(f"Added section indices: {{'count': {created}}}")
    return created
