"""
Run options — the immutable knobs of one installer invocation.
"""

from __future__ import annotations

from dataclasses import dataclass

from mmsetup.core.models.command import OutputPolicy


@dataclass(frozen=True)
class RunOptions:
    """Options for one run.

    Args:
        debug: Stream every command's output and use plain step lines.
        purge: Delete the wheelhouse and every source checkout first.
    """

    debug: bool = False
    purge: bool = False

    @property
    def policy(self) -> OutputPolicy:
        """Output policy for every step that is not forced to stream."""
        return OutputPolicy.STREAMED if self.debug else OutputPolicy.CAPTURED
