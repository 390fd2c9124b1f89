"""
Setup configuration — what to install and where things live.

Defaults reproduce the pinned open-mmlab stack.  An ``mmsetup.yml``
can override any field; see ``core.config.loader``.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from pydantic import BaseModel, Field, field_validator, model_validator

from mmsetup.core.models.artifact import (
    ArtifactSpec,
    FunctionBodyReplacement,
    LineSubstitution,
)

MMCV_VERSION = "2.1.0"
MMACTION_VERSION = "1.2.0"
MMENGINE_VERSION = "0.10.7"

UV_INSTALL_URL = "https://astral.sh/uv/install.sh"

# torch>=2.6 defaults to weights_only=True; the pinned checkpoints need the old behaviour.
TORCH_LOAD_PATTERN = r"torch\.load\((?![^)]*weights_only)([^)]*)\)"
TORCH_LOAD_REPLACEMENT = r"torch.load(\1, weights_only=False)"


def _torch_load_patch(path: str) -> LineSubstitution:
    return LineSubstitution(
        path=path,
        pattern=TORCH_LOAD_PATTERN,
        replacement=TORCH_LOAD_REPLACEMENT,
    )


def _version_stamp(version: str) -> FunctionBodyReplacement:
    return FunctionBodyReplacement(path="setup.py", function="get_version", returns=version)


def default_artifacts() -> list[ArtifactSpec]:
    """The pinned stack, in build order."""
    return [
        ArtifactSpec(
            name="mmcv",
            version=MMCV_VERSION,
            repository="https://github.com/open-mmlab/mmcv.git",
        ),
        ArtifactSpec(
            name="mmaction2",
            version=MMACTION_VERSION,
            repository="https://github.com/open-mmlab/mmaction2.git",
            patches=(
                _torch_load_patch("mmaction/apis/inference.py"),
                _version_stamp(MMACTION_VERSION),
            ),
        ),
        ArtifactSpec(
            name="mmengine",
            version=MMENGINE_VERSION,
            repository="https://github.com/open-mmlab/mmengine",
            patches=(
                _version_stamp(MMENGINE_VERSION),
                _torch_load_patch("mmengine/runner/checkpoint.py"),
            ),
        ),
    ]


class SetupConfig(BaseModel):
    """Root configuration for one project directory."""

    python_version: str = "3.12"
    cache_dir: str = ".wheelhouse"
    venv_dir: str = ".venv"
    baseline_packages: list[str] = Field(
        default_factory=lambda: ["pip", "setuptools<81", "wheel"]
    )
    uv_install_url: str = UV_INSTALL_URL
    artifacts: list[ArtifactSpec] = Field(default_factory=default_artifacts)

    @field_validator("artifacts")
    @classmethod
    def _unique_names(cls, value: list[ArtifactSpec]) -> list[ArtifactSpec]:
        seen: set[str] = set()
        for spec in value:
            if spec.name in seen:
                raise ValueError(f"duplicate artifact name: {spec.name}")
            seen.add(spec.name)
        return value

    @field_validator("cache_dir")
    @classmethod
    def _purgeable(cls, value: str) -> str:
        # --purge deletes this directory
        path = PurePosixPath(value.strip())
        if not path.parts or ".." in path.parts:
            raise ValueError(f"cache_dir must be a subdirectory, got {value!r}")
        return str(path)

    @model_validator(mode="after")
    def _disjoint_dirs(self) -> SetupConfig:
        """Checkouts are re-created on every miss and may not overlap anything."""
        owned = [
            ("cache_dir", PurePosixPath(self.cache_dir)),
            ("venv_dir", PurePosixPath(self.venv_dir)),
        ]
        for spec in self.artifacts:
            checkout = PurePosixPath(spec.checkout_dir)
            for owner, path in owned:
                if _overlaps(checkout, path):
                    raise ValueError(
                        f"checkout dir {spec.checkout_dir!r} of {spec.name} overlaps {owner} {str(path)!r}"
                    )
            owned.append((f"checkout of {spec.name}", checkout))
        return self

    @property
    def python_bin(self) -> str:
        """Interpreter path inside the venv, relative to the project root."""
        return f"{self.venv_dir}/bin/python"

    def get_artifact(self, name: str) -> ArtifactSpec | None:
        for spec in self.artifacts:
            if spec.name == name:
                return spec
        return None


def _overlaps(a: PurePosixPath, b: PurePosixPath) -> bool:
    """Whether one path equals or contains the other."""
    n = min(len(a.parts), len(b.parts))
    return a.parts[:n] == b.parts[:n]
