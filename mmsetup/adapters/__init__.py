"""Adapters — bindings for the external tools the installer drives.

Public re-exports for convenient access.
"""

from mmsetup.adapters.base import Runner
from mmsetup.adapters.mock import MockCommandRunner
from mmsetup.adapters.shell.command import CommandRunner

__all__ = [
    "CommandRunner",
    "MockCommandRunner",
    "Runner",
]
