"""
Install — put a cached wheel into the virtual environment.

Exact pin, no dependency resolution, no package index: the wheelhouse
is the only place the installer may look.
"""

from __future__ import annotations

import logging
from pathlib import Path

from mmsetup.adapters.languages.uv import UvClient
from mmsetup.core.errors import InstallFailed
from mmsetup.core.models.artifact import ArtifactSpec
from mmsetup.core.models.command import CommandResult, OutputPolicy

logger = logging.getLogger(__name__)


def install_artifact(
    spec: ArtifactSpec,
    uv: UvClient,
    *,
    python: Path,
    cache_dir: Path,
    policy: OutputPolicy = OutputPolicy.CAPTURED,
) -> CommandResult:
    """Install ``spec.name==spec.version`` from ``cache_dir`` only.

    Raises:
        InstallFailed: the installer exited non-zero.
    """
    result = uv.pip_install(
        python,
        [spec.requirement],
        find_links=cache_dir,
        no_deps=True,
        no_index=True,
        verbose=True,
        policy=policy,
        label=f"install {spec.name}",
    )
    if not result.ok:
        raise InstallFailed(result.describe(), artifact=spec.name, result=result)
    logger.info("Installed %s", spec.requirement)
    return result
