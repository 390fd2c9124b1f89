"""
Domain models — pydantic types and value objects for the installer.

All models are re-exported here for convenient access:

    from mmsetup.core.models import ArtifactSpec, CommandResult, RunOptions
"""

from mmsetup.core.models.artifact import (
    ArtifactSpec,
    FunctionBodyReplacement,
    LineSubstitution,
    PatchRule,
)
from mmsetup.core.models.command import CommandResult, OutputPolicy
from mmsetup.core.models.options import RunOptions

__all__ = [
    # artifact.py
    "ArtifactSpec",
    "FunctionBodyReplacement",
    "LineSubstitution",
    "PatchRule",
    # command.py
    "CommandResult",
    "OutputPolicy",
    # options.py
    "RunOptions",
]
