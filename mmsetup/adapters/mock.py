"""
Mock runner — test double for every external command.

Records each invocation and returns success by default.  Responses
and side effects are keyed by label glob (``"clone *"``,
``"uv sync"``) so a test can fail one stage or make a build drop a
wheel into the wheelhouse without running git or pip.  When several
patterns match a label, the one registered last applies.
"""

from __future__ import annotations

import fnmatch
import sys
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from mmsetup.adapters.base import Runner
from mmsetup.core.errors import ProcessLaunchFailed
from mmsetup.core.models.command import CommandResult, OutputPolicy

SideEffect = Callable[[list[str], Path | None], None]


@dataclass
class MockCall:
    """One recorded invocation."""

    command: list[str]
    label: str
    policy: OutputPolicy
    cwd: Path | None = None


@dataclass
class _Response:
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


class MockCommandRunner(Runner):
    """Universal mock runner for tests.

    Output of a configured response follows the real policy contract:
    streamed output is written to this process's stdout/stderr and the
    result carries no text; captured output is returned in the result.
    """

    def __init__(self, default_output: str = ""):
        self._default_output = default_output
        self._responses: dict[str, _Response] = {}
        self._effects: dict[str, SideEffect] = {}
        self._launch_failures: list[str] = []
        self._call_log: list[MockCall] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[MockCall]:
        """All invocations this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def labels(self) -> list[str]:
        """Labels of every call, in order."""
        return [call.label for call in self._call_log]

    def calls_matching(self, pattern: str) -> list[MockCall]:
        return [c for c in self._call_log if fnmatch.fnmatchcase(c.label, pattern)]

    def set_response(
        self,
        pattern: str,
        *,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        """Set the outcome for commands whose label matches ``pattern``."""
        self._responses.pop(pattern, None)
        self._responses[pattern] = _Response(returncode, stdout, stderr)

    def set_failure(
        self,
        pattern: str,
        *,
        returncode: int = 1,
        stdout: str = "",
        stderr: str = "Mock failure",
    ) -> None:
        """Configure matching commands to exit non-zero."""
        self.set_response(pattern, returncode=returncode, stdout=stdout, stderr=stderr)

    def set_launch_failure(self, pattern: str) -> None:
        """Configure matching commands to fail before starting."""
        if pattern in self._launch_failures:
            self._launch_failures.remove(pattern)
        self._launch_failures.append(pattern)

    def on(self, pattern: str, effect: SideEffect) -> None:
        """Run ``effect(command, cwd)`` when a matching command succeeds."""
        self._effects.pop(pattern, None)
        self._effects[pattern] = effect

    def run(
        self,
        command: Sequence[str | Path],
        *,
        cwd: str | Path | None = None,
        policy: OutputPolicy = OutputPolicy.CAPTURED,
        label: str = "",
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        cmd = [str(part) for part in command]
        label = label or cmd[0]
        workdir = Path(cwd) if cwd is not None else None
        self._call_log.append(MockCall(command=cmd, label=label, policy=policy, cwd=workdir))

        if self._match(self._launch_failures, label):
            raise ProcessLaunchFailed(f"failed to spawn command ({label}): [mock] not found")

        response = self._lookup(label) or _Response(stdout=self._default_output)

        if response.returncode == 0:
            effect = self._lookup_effect(label)
            if effect is not None:
                effect(cmd, workdir)

        if policy == OutputPolicy.STREAMED:
            if response.stdout:
                sys.stdout.write(response.stdout)
            if response.stderr:
                sys.stderr.write(response.stderr)
            stdout, stderr = "", ""
        else:
            stdout, stderr = response.stdout, response.stderr

        return CommandResult(
            command=cmd,
            label=label,
            policy=policy,
            returncode=response.returncode,
            stdout=stdout,
            stderr=stderr,
            cwd=str(cwd) if cwd is not None else None,
        )

    def reset(self) -> None:
        """Clear call log, responses and side effects."""
        self._call_log.clear()
        self._responses.clear()
        self._effects.clear()
        self._launch_failures.clear()

    # ── Lookup ──────────────────────────────────────────────────

    @staticmethod
    def _match(patterns: Iterable[str], label: str) -> str | None:
        # most recent registration wins
        for pattern in reversed(list(patterns)):
            if fnmatch.fnmatchcase(label, pattern):
                return pattern
        return None

    def _lookup(self, label: str) -> _Response | None:
        pattern = self._match(self._responses, label)
        return self._responses[pattern] if pattern is not None else None

    def _lookup_effect(self, label: str) -> SideEffect | None:
        pattern = self._match(self._effects, label)
        return self._effects[pattern] if pattern is not None else None
