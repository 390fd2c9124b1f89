"""
Tests for the step progress reporter.
"""

import io

import pytest
from rich.console import Console

from mmsetup.core.errors import BuildFailed, ProcessLaunchFailed, SyncFailed
from mmsetup.core.models.command import CommandResult, OutputPolicy
from mmsetup.ui.cli.progress import ProgressReporter, format_elapsed


def _console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None)


def _text(console: Console) -> str:
    return console.file.getvalue()


@pytest.fixture
def out():
    return _console()


@pytest.fixture
def err():
    return _console()


def _failed(label: str, policy: OutputPolicy = OutputPolicy.CAPTURED, **streams) -> CommandResult:
    return CommandResult(command=["x"], label=label, policy=policy, returncode=1, **streams)


class TestFormatElapsed:
    def test_seconds(self):
        assert format_elapsed(12.34) == "12.3s"

    def test_minutes(self):
        assert format_elapsed(125.9) == "2m 5s"


class TestSteps:
    def test_debug_step_lines(self, out, err):
        reporter = ProgressReporter(debug=True, total=2, console=out, err_console=err)
        with reporter.step("Ensuring uv availability"):
            pass
        with reporter.step("Running uv sync", live=True):
            pass
        text = _text(out)
        assert "→ [1/2] Ensuring uv availability" in text
        assert "✔ [1/2] Ensuring uv availability (" in text
        assert "✔ [2/2] Running uv sync (" in text

    def test_default_mode_ends_with_check(self, out, err):
        reporter = ProgressReporter(debug=False, total=1, console=out, err_console=err)
        with reporter.step("Ensuring wheelhouse directory"):
            pass
        assert "✔ [1/1] Ensuring wheelhouse directory" in _text(out)

    def test_live_step_prints_start_line(self, out, err):
        reporter = ProgressReporter(debug=False, total=1, console=out, err_console=err)
        with reporter.step("Running uv sync", live=True):
            pass
        assert "→ [1/1] Running uv sync" in _text(out)

    def test_failure_dumps_captured_output(self, out, err):
        reporter = ProgressReporter(debug=False, total=3, console=out, err_console=err)
        result = _failed("build mmcv wheel", stdout="running bdist_wheel\n", stderr="error: [nvcc] failed\n")
        with pytest.raises(BuildFailed):
            with reporter.step("Building/installing mmcv"):
                raise BuildFailed(result.describe(), artifact="mmcv", result=result)

        assert reporter.failed_step == "Building/installing mmcv"
        assert "✖ [1/3] Building/installing mmcv" in _text(out)
        dump = _text(err)
        assert "Command failed: build mmcv wheel" in dump
        assert "--- stdout ---\nrunning bdist_wheel" in dump
        assert "--- stderr ---\nerror: [nvcc] failed" in dump

    def test_streamed_failure_not_dumped(self, out, err):
        reporter = ProgressReporter(debug=True, total=1, console=out, err_console=err)
        result = _failed("uv sync", policy=OutputPolicy.STREAMED)
        with pytest.raises(SyncFailed):
            with reporter.step("Running uv sync", live=True):
                raise SyncFailed(result.describe(), result=result)
        assert _text(err) == ""

    def test_launch_failure_has_nothing_to_dump(self, out, err):
        reporter = ProgressReporter(debug=False, total=2, console=out, err_console=err)
        with pytest.raises(ProcessLaunchFailed):
            with reporter.step("Building/installing mmcv"):
                raise ProcessLaunchFailed("failed to spawn command (clone mmcv): not found", artifact="mmcv")
        assert "✖ [1/2] Building/installing mmcv" in _text(out)
        assert _text(err) == ""

    def test_empty_streams_skipped(self, out, err):
        reporter = ProgressReporter(debug=False, total=1, console=out, err_console=err)
        reporter.dump_output(_failed("install mmcv", stderr="No solution found"))
        dump = _text(err)
        assert "--- stdout ---" not in dump
        assert "--- stderr ---\nNo solution found" in dump

    def test_interrupt_marks_step_failed(self, out, err):
        reporter = ProgressReporter(debug=True, total=1, console=out, err_console=err)
        with pytest.raises(KeyboardInterrupt):
            with reporter.step("Ensuring pip tooling"):
                raise KeyboardInterrupt
        assert reporter.failed_step == "Ensuring pip tooling"
        assert "✖ [1/1] Ensuring pip tooling" in _text(out)


class TestBanners:
    def test_header_debug(self, out):
        ProgressReporter(debug=True, total=1, console=out).header()
        assert "• Debug output: enabled" in _text(out)

    def test_header_default(self, out):
        ProgressReporter(debug=False, total=1, console=out).header()
        text = _text(out)
        assert text.startswith("mmsetup ")
        assert "• Debug output: disabled" in text

    def test_finished(self, out):
        ProgressReporter(debug=False, total=1, console=out).finished()
        assert "✔ Setup completed successfully." in _text(out)
