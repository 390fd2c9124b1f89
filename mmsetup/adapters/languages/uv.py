"""
uv adapter — environment manager operations.

Covers the subset of the uv CLI the installer needs: virtual
environment creation, ``uv pip install`` against a given interpreter,
and ``uv sync``.  All calls go through a Runner.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from mmsetup.adapters.base import Runner
from mmsetup.core.models.command import CommandResult, OutputPolicy

logger = logging.getLogger(__name__)


class UvClient:
    """uv CLI bound to a resolved executable path.

    Args:
        runner: Runner used for every invocation.
        executable: Path (or name) of the uv binary, as resolved by
            the tool resolver.
        cwd: Project root every command runs in.
    """

    def __init__(self, runner: Runner, executable: str = "uv", cwd: Path | None = None):
        self._runner = runner
        self.executable = executable
        self.cwd = cwd

    def version(self) -> CommandResult:
        """``uv --version``, always captured."""
        return self._runner.run(
            [self.executable, "--version"],
            cwd=self.cwd,
            policy=OutputPolicy.CAPTURED,
            label="uv --version",
        )

    def create_venv(
        self,
        python_version: str,
        *,
        venv_dir: str | None = None,
        policy: OutputPolicy = OutputPolicy.CAPTURED,
    ) -> CommandResult:
        cmd = [self.executable, "venv"]
        if venv_dir:
            cmd.append(venv_dir)
        cmd += ["--python", python_version]
        return self._runner.run(
            cmd, cwd=self.cwd, policy=policy, label="create virtual environment",
        )

    def pip_install(
        self,
        python: Path,
        packages: Sequence[str],
        *,
        find_links: Path | None = None,
        no_deps: bool = False,
        no_index: bool = False,
        verbose: bool = False,
        policy: OutputPolicy = OutputPolicy.CAPTURED,
        label: str = "",
    ) -> CommandResult:
        """``uv pip install`` into the environment owning ``python``."""
        cmd = [self.executable, "pip", "install"]
        if verbose:
            cmd.append("-v")
        cmd += ["--python", str(python)]
        if no_deps:
            cmd.append("--no-deps")
        if no_index:
            cmd.append("--no-index")
        if find_links is not None:
            cmd += ["--find-links", str(find_links)]
        cmd += list(packages)
        return self._runner.run(
            cmd, cwd=self.cwd, policy=policy, label=label or f"install {' '.join(packages)}",
        )

    def sync(self, *, policy: OutputPolicy = OutputPolicy.STREAMED) -> CommandResult:
        """Resolve and install the enclosing project's full dependency set."""
        return self._runner.run(
            [self.executable, "sync"], cwd=self.cwd, policy=policy, label="uv sync",
        )
