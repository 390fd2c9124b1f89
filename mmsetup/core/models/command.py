"""
Command models — the contract between services and the command runner.

Services hand the runner a command and an output policy; the runner
hands back a CommandResult.  A non-zero exit is data, not an exception.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class OutputPolicy(StrEnum):
    """How a child process's output reaches the operator."""

    STREAMED = "streamed"   # inherit the terminal, output shows live
    CAPTURED = "captured"   # buffer in memory, shown only on failure


class CommandResult(BaseModel):
    """Outcome of one external process invocation.

    Streamed results never carry output text: it already went to the
    terminal.  Captured results carry both streams in full.
    """

    command: list[str]
    label: str = ""
    policy: OutputPolicy
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    cwd: str | None = None

    @property
    def ok(self) -> bool:
        """Whether the process exited with status 0."""
        return self.returncode == 0

    @property
    def has_output(self) -> bool:
        return bool(self.stdout or self.stderr)

    def describe(self) -> str:
        """Short one-line summary used in error messages."""
        name = self.label or " ".join(self.command)
        return f"command failed ({name}) with exit status {self.returncode}"
