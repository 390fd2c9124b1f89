"""
Wheel build — turn a fetched checkout into a wheel in the wheelhouse.

Dependencies are not resolved and build isolation is off: the
toolchain already installed in the virtual environment (and the
artifacts installed before this one) are used as they are.
"""

from __future__ import annotations

import logging
from pathlib import Path

from mmsetup.adapters.base import Runner
from mmsetup.core.errors import BuildFailed
from mmsetup.core.models.artifact import ArtifactSpec
from mmsetup.core.models.command import CommandResult, OutputPolicy

logger = logging.getLogger(__name__)


def wheel_command(spec: ArtifactSpec, python: Path, cache_dir: Path) -> list[str]:
    return [
        str(python), "-m", "pip", "wheel", "-v",
        f"./{spec.checkout_dir}",
        "--no-deps",
        "--no-build-isolation",
        "--wheel-dir", str(cache_dir),
    ]


def build_wheel(
    spec: ArtifactSpec,
    runner: Runner,
    *,
    python: Path,
    cache_dir: Path,
    root: Path,
    policy: OutputPolicy = OutputPolicy.CAPTURED,
) -> CommandResult:
    """Build ``spec``'s wheel into ``cache_dir``.

    The checkout is left in place whatever the outcome.

    Raises:
        BuildFailed: the build exited non-zero.
    """
    result = runner.run(
        wheel_command(spec, python, cache_dir),
        cwd=root,
        policy=policy,
        label=f"build {spec.name} wheel",
    )
    if not result.ok:
        raise BuildFailed(result.describe(), artifact=spec.name, result=result)
    logger.info("Built %s in %dms", spec.requirement, result.duration_ms)
    return result
