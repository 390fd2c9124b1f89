"""
Artifact model — one pinned package and how to build it from source.

An ArtifactSpec is everything the pipeline needs to know about a
package: where its source lives, which tag to clone, which patches to
apply after cloning, and how its wheel is named in the wheelhouse.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LineSubstitution(BaseModel):
    """Regex find/replace scoped to one file of the checkout.

    Must match at least once, otherwise the patch fails.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["substitute"] = "substitute"
    path: str                       # relative to the checkout
    pattern: str                    # Python regex
    replacement: str                # re.sub replacement (\1 etc.)

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regex {value!r}: {e}") from e
        return value

    def describe(self) -> str:
        return f"substitute /{self.pattern}/ in {self.path}"


class FunctionBodyReplacement(BaseModel):
    """Rewrite the body of a named function to return a fixed literal.

    Used to stamp an exact version into a ``setup.py`` whose own
    version detection does not work in a stripped checkout.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["replace_function"] = "replace_function"
    path: str
    function: str
    returns: str

    def describe(self) -> str:
        return f"replace {self.function}() in {self.path}"


PatchRule = Annotated[
    LineSubstitution | FunctionBodyReplacement,
    Field(discriminator="kind"),
]


class ArtifactSpec(BaseModel):
    """A pinned package built from a tagged upstream repository."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    repository: str
    patches: tuple[PatchRule, ...] = ()
    source_dir: str | None = None   # default: ".<name>"

    @field_validator("name", "version")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("name")
    @classmethod
    def _no_separators(cls, value: str) -> str:
        # the default checkout dir is ".<name>"
        if "/" in value or "\\" in value:
            raise ValueError(f"must not contain a path separator: {value!r}")
        return value

    @field_validator("source_dir")
    @classmethod
    def _inside_project(cls, value: str | None) -> str | None:
        """A checkout is deleted and re-cloned, so it must be its own subdir."""
        if value is None:
            return None
        path = PurePosixPath(value.strip())
        if path.is_absolute():
            raise ValueError(f"must be relative to the project root: {value!r}")
        if not path.parts or ".." in path.parts:
            raise ValueError(f"must be a subdirectory of the project root: {value!r}")
        return str(path)

    @property
    def checkout_dir(self) -> str:
        """Directory (relative to the project root) holding the clone."""
        return self.source_dir or f".{self.name}"

    @property
    def tag(self) -> str:
        """Upstream git tag for this version."""
        return f"v{self.version}"

    @property
    def cache_glob(self) -> str:
        """Filename pattern of this artifact's wheel in the wheelhouse."""
        return f"{self.name}-{self.version}-*.whl"

    @property
    def requirement(self) -> str:
        """Exact pin passed to the installer."""
        return f"{self.name}=={self.version}"
