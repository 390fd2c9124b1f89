"""
Shell command runner — execute external commands under an output policy.

This is the SINGLE PLACE where ``subprocess.run`` is called.  Every
clone, build, install and sync goes through here, so the streamed vs.
captured contract is enforced in one spot.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from mmsetup.adapters.base import Runner
from mmsetup.core.errors import ProcessLaunchFailed
from mmsetup.core.models.command import CommandResult, OutputPolicy

logger = logging.getLogger(__name__)


class CommandRunner(Runner):
    """Run commands with either inherited or buffered output.

    STREAMED:
        stdout/stderr are inherited from this process, so the operator
        sees output live.  The result's text fields are empty.
    CAPTURED:
        stdout/stderr are buffered in memory, whatever their size.
        Nothing is shown while the child runs.

    No timeouts: clones and builds may legitimately take a long time.
    """

    @property
    def name(self) -> str:
        return "shell"

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
        logger.debug("Executing: %s (cwd=%s, policy=%s)", shlex.join(cmd), cwd, policy)

        start = time.monotonic()
        try:
            if policy == OutputPolicy.STREAMED:
                proc = subprocess.run(
                    cmd,
                    cwd=cwd,
                    env=dict(env) if env is not None else None,
                    stdin=subprocess.DEVNULL,
                )
                stdout, stderr = "", ""
            else:
                proc = subprocess.run(
                    cmd,
                    cwd=cwd,
                    env=dict(env) if env is not None else None,
                    stdin=subprocess.DEVNULL,
                    capture_output=True,
                    text=True,
                    errors="replace",
                )
                stdout, stderr = proc.stdout or "", proc.stderr or ""
        except OSError as e:
            raise ProcessLaunchFailed(f"failed to spawn command ({label}): {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if proc.returncode != 0:
            logger.debug("%s exited with %d after %dms", label, proc.returncode, elapsed_ms)

        return CommandResult(
            command=cmd,
            label=label,
            policy=policy,
            returncode=proc.returncode,
            stdout=stdout,
            stderr=stderr,
            duration_ms=elapsed_ms,
            cwd=str(cwd) if cwd is not None else None,
        )
