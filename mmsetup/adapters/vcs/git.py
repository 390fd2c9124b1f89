"""
Git adapter — shallow tagged clones of upstream sources.

Uses the git CLI through a Runner, never a git library.  The checkout
is a disposable build input, so its ``.git`` directory is removed
right after cloning.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from mmsetup.adapters.base import Runner
from mmsetup.core.models.command import CommandResult, OutputPolicy

logger = logging.getLogger(__name__)


class GitClient:
    """Thin wrapper around ``git clone``."""

    def __init__(self, runner: Runner, executable: str = "git"):
        self._runner = runner
        self._git = executable

    def shallow_clone(
        self,
        repository: str,
        tag: str,
        dest: Path,
        *,
        cwd: Path | None = None,
        policy: OutputPolicy = OutputPolicy.CAPTURED,
        label: str = "",
    ) -> CommandResult:
        """Clone only the tip commit of ``tag`` into ``dest``."""
        cmd = [
            self._git, "clone",
            "--depth", "1",
            "--branch", tag,
            repository,
            str(dest),
        ]
        return self._runner.run(cmd, cwd=cwd, policy=policy, label=label or f"clone {repository}")

    @staticmethod
    def strip_metadata(checkout: Path) -> None:
        """Delete the checkout's ``.git`` directory, if any."""
        git_dir = checkout / ".git"
        if git_dir.exists():
            shutil.rmtree(git_dir)
            logger.debug("Removed %s", git_dir)
