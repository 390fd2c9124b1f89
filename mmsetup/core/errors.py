"""
Setup errors — every failure kind the installer can surface.

All of them are fatal.  Each one is raised at the point of failure,
carries the stage (and artifact, when there is one) that failed, and
optionally the CommandResult of the command that caused it so the
reporter can dump its captured output.
"""

from __future__ import annotations

from mmsetup.core.models.command import CommandResult


class SetupError(Exception):
    """Base class for installer failures."""

    stage = "setup"

    def __init__(
        self,
        message: str,
        *,
        artifact: str | None = None,
        result: CommandResult | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.artifact = artifact
        self.result = result

    def __str__(self) -> str:
        if self.artifact:
            return f"{self.stage} [{self.artifact}]: {self.message}"
        return f"{self.stage}: {self.message}"


class ToolUnavailable(SetupError):
    """uv could not be found or self-installed."""

    stage = "tool"


class ProcessLaunchFailed(SetupError):
    """The external command could not be started at all."""

    stage = "launch"


class EnvironmentFailed(SetupError):
    """The isolated environment could not be created."""

    stage = "venv"


class CloneFailed(SetupError):
    stage = "clone"


class PatchFailed(SetupError):
    """A source rewrite rule did not match or could not be applied."""

    stage = "patch"


class BuildFailed(SetupError):
    stage = "build"


class InstallFailed(SetupError):
    stage = "install"


class SyncFailed(SetupError):
    stage = "sync"


class WorkspaceError(SetupError):
    """A managed directory could not be created or removed."""

    stage = "workspace"
