"""
Tool resolver — make sure the ``uv`` environment manager is usable.

Resolution order:
    1. ``uv`` already on PATH and answering ``uv --version``
    2. ``uv`` in a well-known install dir → prepend that dir to PATH
    3. run the official installer script via curl or wget, then
       re-scan the install dirs and prepend

PATH is the one piece of process-wide state the installer changes.
It is held in an explicit ToolLocations value: production passes
``os.environ``, tests pass a plain dict.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from pathlib import Path

from mmsetup.adapters.base import Runner
from mmsetup.adapters.languages.uv import UvClient
from mmsetup.core.errors import ProcessLaunchFailed, ToolUnavailable
from mmsetup.core.models.command import OutputPolicy
from mmsetup.core.models.setup_config import UV_INSTALL_URL

logger = logging.getLogger(__name__)

# Where the uv installer drops the binary, relative to $HOME.
_CANDIDATE_SUBDIRS = (".local/bin", ".cargo/bin")


@dataclass
class ToolLocations:
    """Resolved tool paths plus the PATH they were resolved against.

    Args:
        environ: Environment mapping whose ``PATH`` is read and updated.
        uv: Absolute path of the resolved uv binary, once known.
        prepended: Directories this run put in front of PATH.
    """

    environ: MutableMapping[str, str] = field(default_factory=lambda: os.environ)
    uv: str | None = None
    prepended: list[Path] = field(default_factory=list)

    @property
    def path_entries(self) -> list[str]:
        raw = self.environ.get("PATH", "")
        return [p for p in raw.split(os.pathsep) if p]

    def which(self, name: str) -> str | None:
        return shutil.which(name, path=self.environ.get("PATH", ""))

    def candidate_dirs(self) -> list[Path]:
        home = self.environ.get("HOME")
        if not home:
            return []
        return [Path(home) / sub for sub in _CANDIDATE_SUBDIRS]

    def prepend_path(self, directory: Path) -> bool:
        """Put ``directory`` first on PATH.  No-op if missing or present."""
        if not directory.is_dir():
            return False
        if str(directory) in self.path_entries:
            return False
        self.environ["PATH"] = os.pathsep.join([str(directory), *self.path_entries])
        self.prepended.append(directory)
        logger.info("Prepended %s to PATH", directory)
        return True


def _uv_answers(runner: Runner, locations: ToolLocations) -> str | None:
    """Return uv's path if it is on PATH and ``uv --version`` succeeds."""
    path = locations.which("uv")
    if path is None:
        return None
    try:
        result = UvClient(runner, executable=path).version()
    except ProcessLaunchFailed:
        return None
    if not result.ok:
        return None
    logger.debug("uv resolved: %s (%s)", path, result.stdout.strip())
    return path


def _adopt_candidates(locations: ToolLocations) -> None:
    for directory in locations.candidate_dirs():
        if (directory / "uv").exists():
            locations.prepend_path(directory)


def installer_command(locations: ToolLocations, url: str = UV_INSTALL_URL) -> list[str] | None:
    """Shell command running the uv installer, or None without curl/wget."""
    if locations.which("curl"):
        return ["sh", "-c", f"curl -LsSf {url} | sh"]
    if locations.which("wget"):
        return ["sh", "-c", f"wget -qO- {url} | sh"]
    return None


def ensure_uv(
    runner: Runner,
    locations: ToolLocations,
    *,
    policy: OutputPolicy = OutputPolicy.CAPTURED,
    install_url: str = UV_INSTALL_URL,
) -> str:
    """Resolve uv, self-installing it once if needed.

    Returns:
        Absolute path of the uv binary (also stored in ``locations.uv``).

    Raises:
        ToolUnavailable: uv is missing and could not be installed.
    """
    found = _uv_answers(runner, locations)
    if found is None:
        _adopt_candidates(locations)
        found = _uv_answers(runner, locations)

    if found is None:
        cmd = installer_command(locations, install_url)
        if cmd is None:
            raise ToolUnavailable(
                "uv is missing and cannot be auto-installed because neither "
                "curl nor wget is available"
            )
        logger.info("uv not found, running installer from %s", install_url)
        try:
            result = runner.run(
                cmd, policy=policy, label="install uv", env=dict(locations.environ),
            )
        except ProcessLaunchFailed as e:
            raise ToolUnavailable(f"uv installer could not be started: {e.message}") from e
        if not result.ok:
            raise ToolUnavailable(result.describe(), result=result)

        _adopt_candidates(locations)
        found = _uv_answers(runner, locations)

    if found is None:
        raise ToolUnavailable(
            "uv installation completed but `uv` is still not on PATH. Try sourcing "
            "your shell rc (for example `source ~/.bashrc`) or add ~/.local/bin to PATH"
        )

    locations.uv = found
    return found
