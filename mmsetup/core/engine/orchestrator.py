"""
Setup orchestrator — the installer's state machine.

    init → environment_ready
         → {probing → fetching → building → installing} × N
         → syncing → done

``failed`` is reachable from every non-terminal state.  Steps run
strictly in sequence, artifacts in their declared order: a later
artifact's build may import an earlier one, so nothing is skipped or
reordered and the first error ends the run.

Idempotency comes from the wheelhouse: an artifact whose wheel is
already cached goes straight to ``installing``, so a repeated run
performs no clone and no build, only installs and the final sync.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Protocol

from mmsetup.adapters.base import Runner
from mmsetup.adapters.languages.uv import UvClient
from mmsetup.adapters.shell.command import CommandRunner
from mmsetup.core.errors import (
    EnvironmentFailed,
    InstallFailed,
    SetupError,
    SyncFailed,
    WorkspaceError,
)
from mmsetup.core.models.artifact import ArtifactSpec
from mmsetup.core.models.command import OutputPolicy
from mmsetup.core.models.options import RunOptions
from mmsetup.core.models.setup_config import SetupConfig
from mmsetup.core.services.cache_probe import has_cached_artifact
from mmsetup.core.services.fs_helpers import remove_dir_if_exists
from mmsetup.core.services.install import install_artifact
from mmsetup.core.services.source_fetch import fetch_source
from mmsetup.core.services.tool_resolver import ToolLocations, ensure_uv
from mmsetup.core.services.wheel_build import build_wheel

logger = logging.getLogger(__name__)

# purge? + wheelhouse, uv, venv, pip tooling, sync
_FIXED_STEPS = 5


class SetupState(StrEnum):
    """Orchestrator states."""

    INIT = "init"
    ENVIRONMENT_READY = "environment_ready"
    PROBING = "probing"
    FETCHING = "fetching"
    BUILDING = "building"
    INSTALLING = "installing"
    SYNCING = "syncing"
    DONE = "done"
    FAILED = "failed"


class StepReporter(Protocol):
    """What the orchestrator needs from a progress reporter."""

    def step(self, name: str, *, live: bool = False) -> AbstractContextManager[None]: ...


class NullReporter:
    """Reporter that shows nothing (library use, tests)."""

    @contextmanager
    def step(self, name: str, *, live: bool = False) -> Iterator[None]:
        yield


@dataclass
class ArtifactOutcome:
    """What happened to one artifact."""

    name: str
    version: str
    cached: bool = False    # wheel was already in the wheelhouse
    built: bool = False     # cloned, patched and built this run
    installed: bool = False


@dataclass
class SetupReport:
    """Result of one orchestrator run."""

    state: SetupState = SetupState.INIT
    history: list[tuple[SetupState, str | None]] = field(default_factory=list)
    artifacts: list[ArtifactOutcome] = field(default_factory=list)
    purged: bool = False
    uv: str | None = None
    venv_created: bool = False
    tooling_installed: bool = False

    @property
    def built(self) -> list[str]:
        return [a.name for a in self.artifacts if a.built]

    @property
    def cached(self) -> list[str]:
        return [a.name for a in self.artifacts if a.cached]

    def to_dict(self) -> dict:
        return {
            "state": str(self.state),
            "purged": self.purged,
            "uv": self.uv,
            "venv_created": self.venv_created,
            "tooling_installed": self.tooling_installed,
            "artifacts": [
                {
                    "name": a.name,
                    "version": a.version,
                    "cached": a.cached,
                    "built": a.built,
                    "installed": a.installed,
                }
                for a in self.artifacts
            ],
        }


class Orchestrator:
    """Drive one full setup run.

    Args:
        config: What to install and where.
        options: debug / purge flags for this run.
        root: Directory every managed path is relative to.
        runner: Command runner (default: the real subprocess runner).
        reporter: Step reporter (default: silent).
        locations: PATH / tool state (default: bound to ``os.environ``).
    """

    def __init__(
        self,
        config: SetupConfig,
        options: RunOptions,
        *,
        root: Path,
        runner: Runner | None = None,
        reporter: StepReporter | None = None,
        locations: ToolLocations | None = None,
    ):
        self.config = config
        self.options = options
        self.root = root
        self.runner = runner or CommandRunner()
        self.reporter = reporter or NullReporter()
        self.locations = locations or ToolLocations()
        self.report = SetupReport()
        self._uv: UvClient | None = None

    # ── Paths ───────────────────────────────────────────────────

    @property
    def cache_dir(self) -> Path:
        return self.root / self.config.cache_dir

    @property
    def python(self) -> Path:
        return self.root / self.config.python_bin

    @property
    def total_steps(self) -> int:
        extra = 1 if self.options.purge else 0
        return _FIXED_STEPS + len(self.config.artifacts) + extra

    @property
    def state(self) -> SetupState:
        return self.report.state

    @property
    def uv(self) -> UvClient:
        if self._uv is None:
            raise RuntimeError("uv has not been resolved yet")
        return self._uv

    # ── Run ─────────────────────────────────────────────────────

    def run(self) -> SetupReport:
        """Execute every step in order.

        Raises:
            SetupError: on the first failing step; the report's state
                is ``failed`` and later steps never run.
        """
        step = self.reporter.step
        self._transition(SetupState.INIT)
        try:
            if self.options.purge:
                with step("Purging mmsetup cache directories"):
                    self.purge()

            with step("Ensuring wheelhouse directory"):
                self.ensure_cache_dir()

            with step("Ensuring uv availability"):
                self.ensure_tool()

            with step("Ensuring Python virtual environment"):
                self.ensure_environment()

            with step("Ensuring pip tooling"):
                self.ensure_baseline_tooling()

            for spec in self.config.artifacts:
                with step(f"Building/installing {spec.name}"):
                    self.process_artifact(spec)

            # sync output is primary signal: always live, never behind a spinner
            with step("Running uv sync", live=True):
                self.sync()
        except BaseException:
            self._transition(SetupState.FAILED)
            raise

        self._transition(SetupState.DONE)
        return self.report

    # ── Stages ──────────────────────────────────────────────────

    def purge(self) -> None:
        """Delete the wheelhouse and every artifact checkout."""
        targets = [self.cache_dir] + [self.root / s.checkout_dir for s in self.config.artifacts]
        for target in targets:
            with _workspace_errors():
                if remove_dir_if_exists(target):
                    logger.info("Purged %s", target)
        self.report.purged = True

    def ensure_cache_dir(self) -> None:
        with _workspace_errors():
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    def ensure_tool(self) -> None:
        path = ensure_uv(
            self.runner,
            self.locations,
            policy=self.options.policy,
            install_url=self.config.uv_install_url,
        )
        self._uv = UvClient(self.runner, executable=path, cwd=self.root)
        self.report.uv = path

    def ensure_environment(self) -> None:
        """Create the venv unless its interpreter path already exists."""
        if self.python.exists():
            logger.info("Virtual environment present: %s", self.python)
        else:
            result = self.uv.create_venv(
                self.config.python_version,
                venv_dir=self.config.venv_dir,
                policy=self.options.policy,
            )
            if not result.ok:
                raise EnvironmentFailed(result.describe(), result=result)
            self.report.venv_created = True
        self._transition(SetupState.ENVIRONMENT_READY)

    def ensure_baseline_tooling(self) -> None:
        """Install pip/setuptools/wheel unless pip already imports."""
        check = self.runner.run(
            [self.python, "-c", "import pip"],
            cwd=self.root,
            policy=OutputPolicy.CAPTURED,
            label="check pip",
        )
        if check.ok:
            return

        result = self.uv.pip_install(
            self.python,
            self.config.baseline_packages,
            policy=self.options.policy,
            label="install pip tooling",
        )
        if not result.ok:
            raise InstallFailed(result.describe(), result=result)
        self.report.tooling_installed = True

    def process_artifact(self, spec: ArtifactSpec) -> ArtifactOutcome:
        """Probe, then (on a miss) fetch and build, then install."""
        outcome = ArtifactOutcome(name=spec.name, version=spec.version)
        self.report.artifacts.append(outcome)
        policy = self.options.policy

        self._transition(SetupState.PROBING, spec.name)
        outcome.cached = has_cached_artifact(spec, self.cache_dir)

        if not outcome.cached:
            self._transition(SetupState.FETCHING, spec.name)
            with _workspace_errors(spec.name), _tagged(spec.name):
                fetch_source(spec, self.runner, root=self.root, policy=policy)

            self._transition(SetupState.BUILDING, spec.name)
            with _tagged(spec.name):
                build_wheel(
                    spec,
                    self.runner,
                    python=self.python,
                    cache_dir=self.cache_dir,
                    root=self.root,
                    policy=policy,
                )
            outcome.built = True
            if not has_cached_artifact(spec, self.cache_dir):
                logger.warning(
                    "Build of %s succeeded but no %s appeared in %s",
                    spec.name, spec.cache_glob, self.cache_dir,
                )

        self._transition(SetupState.INSTALLING, spec.name)
        with _tagged(spec.name):
            install_artifact(
                spec,
                self.uv,
                python=self.python,
                cache_dir=self.cache_dir,
                policy=policy,
            )
        outcome.installed = True
        return outcome

    def sync(self) -> None:
        self._transition(SetupState.SYNCING)
        result = self.uv.sync(policy=OutputPolicy.STREAMED)
        if not result.ok:
            raise SyncFailed(result.describe(), result=result)

    # ── Internals ───────────────────────────────────────────────

    def _transition(self, state: SetupState, artifact: str | None = None) -> None:
        logger.debug("state %s → %s%s", self.report.state, state, f" ({artifact})" if artifact else "")
        self.report.state = state
        self.report.history.append((state, artifact))


@contextmanager
def _workspace_errors(artifact: str | None = None) -> Iterator[None]:
    """Turn filesystem errors into WorkspaceError."""
    try:
        yield
    except OSError as e:
        raise WorkspaceError(str(e), artifact=artifact) from e


@contextmanager
def _tagged(artifact: str) -> Iterator[None]:
    """Attach ``artifact`` to setup errors raised without one (e.g. launch failures)."""
    try:
        yield
    except SetupError as e:
        if e.artifact is None:
            e.artifact = artifact
        raise
