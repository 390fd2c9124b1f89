"""
mmsetup — CLI entrypoint.

Usage:
    mmsetup
    mmsetup --debug
    mmsetup --purge --debug
    python -m mmsetup --help
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click
from rich.console import Console

from mmsetup import __version__
from mmsetup.adapters.shell.command import CommandRunner
from mmsetup.core.config.loader import (
    ConfigError,
    find_config_file,
    load_config,
    project_root,
)
from mmsetup.core.engine.orchestrator import Orchestrator
from mmsetup.core.errors import SetupError
from mmsetup.core.models.options import RunOptions
from mmsetup.core.observability.logging_config import resolve_level, setup_logging
from mmsetup.ui.cli.progress import ProgressReporter


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="mmsetup")
@click.option("--debug", is_flag=True, help="Show command output while running setup.")
@click.option(
    "--purge",
    is_flag=True,
    help="Delete the wheelhouse and every source checkout before reinstalling.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable informational logging.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to mmsetup.yml (default: ./mmsetup.yml when present).",
)
def cli(debug: bool, purge: bool, verbose: bool, config_path: Path | None) -> None:
    """Install the open-mmlab stack from locally built wheels, then run uv sync.

    Missing wheels are built from tagged upstream sources into
    .wheelhouse; cached wheels are reused.  Everything is installed
    into .venv without touching a package index.
    """
    err_console = Console(stderr=True)

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug, verbose, os.environ.get("MMSETUP_LOG_LEVEL")),
        log_file=os.environ.get("MMSETUP_LOG_FILE"),
        log_file_level=os.environ.get("MMSETUP_LOG_FILE_LEVEL"),
        console=err_console,
    )

    try:
        path = config_path or find_config_file()
        config = load_config(path)
    except ConfigError as e:
        click.secho(f"Error: {e}", fg="red", bold=True, err=True)
        sys.exit(1)

    options = RunOptions(debug=debug, purge=purge)
    orchestrator = Orchestrator(
        config,
        options,
        root=project_root(path),
        runner=CommandRunner(),
    )
    reporter = ProgressReporter(
        debug=debug,
        total=orchestrator.total_steps,
        err_console=err_console,
    )
    orchestrator.reporter = reporter

    reporter.header()
    try:
        orchestrator.run()
    except SetupError as e:
        click.secho("Error:", fg="red", bold=True, nl=False, err=True)
        failed = reporter.failed_step or e.stage
        click.echo(f" step failed: {failed}: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.secho("\nInterrupted.", fg="yellow", err=True)
        sys.exit(130)

    reporter.finished()


if __name__ == "__main__":
    cli()
