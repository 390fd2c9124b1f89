"""
Cache probe — is an artifact's wheel already in the wheelhouse?

Presence of a matching filename is authoritative.  File contents are
never inspected: that is what makes a second run cheap.
"""

from __future__ import annotations

import logging
from pathlib import Path

from mmsetup.core.models.artifact import ArtifactSpec

logger = logging.getLogger(__name__)


def find_cached_artifacts(spec: ArtifactSpec, cache_dir: Path) -> list[Path]:
    """All wheelhouse files matching ``spec.cache_glob``, sorted."""
    if not cache_dir.is_dir():
        return []
    return sorted(p for p in cache_dir.glob(spec.cache_glob) if p.is_file())


def has_cached_artifact(spec: ArtifactSpec, cache_dir: Path) -> bool:
    """Whether at least one wheel for ``spec`` exists in ``cache_dir``."""
    matches = find_cached_artifacts(spec, cache_dir)
    if matches:
        logger.info("Cache hit for %s: %s", spec.requirement, matches[0].name)
        return True
    logger.info("Cache miss for %s (%s)", spec.requirement, spec.cache_glob)
    return False
