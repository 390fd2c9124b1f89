"""
Progress reporter — step lifecycle output for the installer.

Two presentation modes:

    default   transient spinner per step, replaced by ✔/✖ and the
              elapsed time; captured output of a failed command is
              dumped right after the ✖ line
    debug     plain "→" start line and ✔/✖ end line, no spinner;
              command output already streamed live, nothing to dump

A step can also be forced to plain presentation (``live=True``) so
its command can own the terminal while it runs.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.status import Status
from rich.text import Text

from mmsetup.core.errors import SetupError
from mmsetup.core.models.command import CommandResult, OutputPolicy

_SPINNER = "growVertical"


def format_elapsed(seconds: float) -> str:
    """``12.3s`` under a minute, ``3m 4s`` above."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    total = int(seconds)
    return f"{total // 60}m {total % 60}s"


class ProgressReporter:
    """Render numbered steps on ``console``; failure dumps go to ``err_console``."""

    def __init__(
        self,
        *,
        debug: bool,
        total: int,
        console: Console | None = None,
        err_console: Console | None = None,
    ):
        self.debug = debug
        self.total = total
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)
        self._index = 0
        self.failed_step: str | None = None

    # ── Banners ─────────────────────────────────────────────────

    def header(self) -> None:
        self.console.print(
            Text.assemble(
                ("mmsetup", "bold cyan"),
                " ",
                ("build the pinned open-mmlab wheels locally and run uv sync", "dim"),
            )
        )
        state = ("Debug output: enabled", "yellow") if self.debug else ("Debug output: disabled", "dim")
        self.console.print(Text.assemble(("•", "cyan"), " ", state))

    def finished(self) -> None:
        self.console.print(
            Text.assemble(("✔", "bold green"), " ", ("Setup completed successfully.", "bold green"))
        )

    # ── Steps ───────────────────────────────────────────────────

    @contextmanager
    def step(self, name: str, *, live: bool = False) -> Iterator[None]:
        """Report one step around the body of the ``with`` block.

        Exceptions propagate unchanged after the ✖ line (and, for a
        captured command failure, the output dump) has been printed.
        """
        self._index += 1
        prefix = f"[{self._index}/{self.total}]"
        started = time.monotonic()
        plain = self.debug or live

        status: Status | None = None
        if plain:
            self.console.print(
                Text.assemble(("→", "bold cyan"), f" {prefix} ", (name, "cyan"))
            )
        else:
            status = self.console.status(
                Text.assemble((prefix, "dim"), " ", name),
                spinner=_SPINNER,
                spinner_style="bold cyan",
            )
            status.start()

        try:
            yield
        except BaseException as error:
            if status is not None:
                status.stop()
            self.failed_step = name
            self._line("✖", "red", prefix, name, started)
            if isinstance(error, SetupError) and error.result is not None:
                self.dump_output(error.result)
            raise
        else:
            if status is not None:
                status.stop()
            self._line("✔", "green", prefix, name, started)

    def _line(self, glyph: str, color: str, prefix: str, name: str, started: float) -> None:
        elapsed = format_elapsed(time.monotonic() - started)
        self.console.print(
            Text.assemble(
                (glyph, f"bold {color}"),
                f" {prefix} ",
                (name, color),
                " ",
                (f"({elapsed})", "dim"),
            )
        )

    # ── Failure output ──────────────────────────────────────────

    def dump_output(self, result: CommandResult) -> None:
        """Print a failed command's captured streams verbatim.

        Streamed results are skipped: their output is already on screen.
        """
        if result.policy != OutputPolicy.CAPTURED:
            return

        err = self.err_console
        err.print()
        err.print(Text.assemble(("Command failed:", "bold red"), " ", result.label))
        if result.stdout:
            err.print(Text("--- stdout ---", style="yellow"))
            self._raw(result.stdout)
        if result.stderr:
            err.print(Text("--- stderr ---", style="yellow"))
            self._raw(result.stderr)

    def _raw(self, text: str) -> None:
        self.err_console.print(
            text.rstrip("\n"), markup=False, highlight=False, emoji=False, soft_wrap=True,
        )
