"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from mmsetup.adapters.mock import MockCommandRunner
from mmsetup.core.models.setup_config import SetupConfig
from mmsetup.core.services.tool_resolver import ToolLocations

SETUP_PY = textwrap.dedent("""\
    from setuptools import setup


    def get_version():
        with open(version_file) as f:
            exec(compile(f.read(), version_file, 'exec'))
        return locals()['__version__']


    setup(name='pkg', version=get_version())
""")

TORCH_LOAD_PY = textwrap.dedent("""\
    import torch


    def load(path, device):
        checkpoint = torch.load(path, map_location=device)
        return checkpoint
""")

# Files every simulated clone contains, so every default patch rule applies.
CHECKOUT_FILES = {
    "setup.py": SETUP_PY,
    "mmaction/apis/inference.py": TORCH_LOAD_PY,
    "mmengine/runner/checkpoint.py": TORCH_LOAD_PY,
}


def make_executable(path: Path, body: str = "#!/bin/sh\nexit 0\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body)
    path.chmod(0o755)
    return path


def write_wheel(cache_dir: Path, name: str, version: str) -> Path:
    cache_dir.mkdir(parents=True, exist_ok=True)
    wheel = cache_dir / f"{name}-{version}-cp312-cp312-linux_x86_64.whl"
    wheel.write_bytes(b"PK")
    return wheel


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """Empty project directory the installer runs in."""
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def config() -> SetupConfig:
    return SetupConfig()


@pytest.fixture
def locations(tmp_path: Path) -> ToolLocations:
    """PATH containing a fake ``uv``; HOME pointing at an empty dir."""
    bin_dir = tmp_path / "bin"
    make_executable(bin_dir / "uv")
    home = tmp_path / "home"
    home.mkdir()
    return ToolLocations(environ={"PATH": str(bin_dir), "HOME": str(home)})


@pytest.fixture
def runner(root: Path, config: SetupConfig) -> MockCommandRunner:
    """Mock runner whose clone/venv/build commands leave real files behind."""
    mock = MockCommandRunner()
    by_checkout = {spec.checkout_dir: spec for spec in config.artifacts}

    def clone(cmd: list[str], cwd: Path | None) -> None:
        dest = (cwd or root) / cmd[-1]
        (dest / ".git").mkdir(parents=True)
        (dest / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
        for rel, content in CHECKOUT_FILES.items():
            target = dest / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)

    def create_venv(cmd: list[str], cwd: Path | None) -> None:
        make_executable(root / config.python_bin)

    def build(cmd: list[str], cwd: Path | None) -> None:
        source = cmd[cmd.index("wheel") + 2].removeprefix("./")
        wheel_dir = Path(cmd[cmd.index("--wheel-dir") + 1])
        spec = by_checkout[source]
        write_wheel(wheel_dir, spec.name, spec.version)

    mock.on("clone *", clone)
    mock.on("create virtual environment", create_venv)
    mock.on("build * wheel", build)
    return mock


@pytest.fixture
def wheel():
    """``wheel(cache_dir, name, version)`` drops a fake wheel file."""
    return write_wheel
