"""
Filesystem helpers shared by the purge and fetch stages.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def remove_dir_if_exists(path: Path) -> bool:
    """Recursively delete ``path``.  Returns False if it was absent."""
    if not path.exists():
        return False
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
    logger.debug("Removed %s", path)
    return True
