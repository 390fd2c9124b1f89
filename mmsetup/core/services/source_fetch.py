"""
Source fetch — materialize a pinned, patched source tree for an artifact.

    remove stale checkout → shallow clone of v<version> → strip .git
    → apply patches

Each step runs only if the previous one succeeded.  A checkout is
never updated in place: on every cache miss it is re-cloned.
"""

from __future__ import annotations

import logging
from pathlib import Path

from mmsetup.adapters.base import Runner
from mmsetup.adapters.vcs.git import GitClient
from mmsetup.core.errors import CloneFailed
from mmsetup.core.models.artifact import ArtifactSpec
from mmsetup.core.models.command import OutputPolicy
from mmsetup.core.services.fs_helpers import remove_dir_if_exists
from mmsetup.core.services.patches import apply_patches

logger = logging.getLogger(__name__)


def fetch_source(
    spec: ArtifactSpec,
    runner: Runner,
    *,
    root: Path,
    policy: OutputPolicy = OutputPolicy.CAPTURED,
) -> Path:
    """Clone and patch ``spec`` under ``root``.  Returns the checkout path.

    Raises:
        CloneFailed: git exited non-zero.
        PatchFailed: a patch rule did not apply.
        ProcessLaunchFailed: git could not be started.
    """
    checkout = root / spec.checkout_dir
    if remove_dir_if_exists(checkout):
        logger.info("Removed stale checkout %s", checkout)

    git = GitClient(runner)
    result = git.shallow_clone(
        spec.repository,
        spec.tag,
        Path(spec.checkout_dir),
        cwd=root,
        policy=policy,
        label=f"clone {spec.name}",
    )
    if not result.ok:
        raise CloneFailed(result.describe(), artifact=spec.name, result=result)

    git.strip_metadata(checkout)

    if spec.patches:
        apply_patches(checkout, spec.patches, artifact=spec.name)
    return checkout
