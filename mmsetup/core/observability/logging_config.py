"""
Logging configuration — central setup for the mmsetup entrypoint.

Called once at startup by ``mmsetup.main``.  Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Levels are resolved in precedence order:
    --debug / --verbose  >  MMSETUP_LOG_LEVEL env var  >  WARNING

Console records go through a rich handler on a stderr console, which
the step spinner redirects around, so log lines never tear it.  Optional
file output via MMSETUP_LOG_FILE / MMSETUP_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# ── Format strings ──────────────────────────────────────────────

# Console — rich adds time and level columns itself
_FMT_CONSOLE = "%(message)s"
_FMT_CONSOLE_DEBUG = "%(name)s:%(lineno)d — %(message)s"

# File output — always full detail
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    console: Console | None = None,
) -> None:
    """Configure Python logging for the whole process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Optional separate level for the log file.
            Defaults to the same as ``level``.
        console: Console the handler writes to (default: a stderr console).
    """
    numeric_level = _parse_level(level)

    # ── Console handler (stderr) ────────────────────────────────
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=numeric_level <= logging.INFO,
        show_path=False,
        markup=False,
        rich_tracebacks=numeric_level <= logging.DEBUG,
    )
    handler.setLevel(numeric_level)
    fmt = _FMT_CONSOLE_DEBUG if numeric_level <= logging.DEBUG else _FMT_CONSOLE
    handler.setFormatter(logging.Formatter(fmt))

    # ── Root logger ─────────────────────────────────────────────
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)

    effective_level = numeric_level

    # ── File handler (optional) ─────────────────────────────────
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    logging.raiseExceptions = False


def resolve_level(debug: bool, verbose: bool, env_level: str | None) -> str:
    """Pick the console level from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    return env_level or "WARNING"


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
