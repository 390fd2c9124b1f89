"""
Runner base — the contract between services and external processes.

Services never call ``subprocess`` themselves.  They describe a
command and an output policy, and a runner executes it and returns a
CommandResult.  Swapping the runner (e.g. for the mock) leaves every
service's logic untouched.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path

from mmsetup.core.models.command import CommandResult, OutputPolicy


class Runner(ABC):
    """Abstract base class for command runners.

    A non-zero exit is returned as a CommandResult with ``ok == False``.
    Only a failure to start the process raises (``ProcessLaunchFailed``).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'shell', 'mock')."""

    @abstractmethod
    def run(
        self,
        command: Sequence[str | Path],
        *,
        cwd: str | Path | None = None,
        policy: OutputPolicy = OutputPolicy.CAPTURED,
        label: str = "",
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run one command to completion under the given output policy."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
