"""
Tests for the shell command runner — output policies and failures.

These run a real interpreter as the child process.
"""

import sys

import pytest

from mmsetup.adapters.shell.command import CommandRunner
from mmsetup.core.errors import ProcessLaunchFailed
from mmsetup.core.models.command import OutputPolicy

CHATTY = "import sys; print('to-out'); print('to-err', file=sys.stderr); sys.exit({code})"


def _py(code: int = 0) -> list[str]:
    return [sys.executable, "-c", CHATTY.format(code=code)]


class TestCapturedPolicy:
    def test_buffers_both_streams(self, capfd):
        result = CommandRunner().run(_py(), policy=OutputPolicy.CAPTURED, label="chatty")
        out, err = capfd.readouterr()
        assert result.ok
        assert result.stdout.strip() == "to-out"
        assert result.stderr.strip() == "to-err"
        assert result.policy == OutputPolicy.CAPTURED
        assert out == ""
        assert err == ""

    def test_nonzero_exit_is_a_result(self):
        result = CommandRunner().run(_py(3), policy=OutputPolicy.CAPTURED)
        assert not result.ok
        assert result.returncode == 3
        assert "to-err" in result.stderr

    def test_large_output_not_truncated(self):
        code = "import sys; sys.stdout.write('x' * 200000)"
        result = CommandRunner().run([sys.executable, "-c", code])
        assert len(result.stdout) == 200000

    def test_cwd(self, tmp_path):
        code = "import os; print(os.getcwd())"
        result = CommandRunner().run([sys.executable, "-c", code], cwd=tmp_path)
        assert result.stdout.strip() == str(tmp_path)
        assert result.cwd == str(tmp_path)


class TestStreamedPolicy:
    def test_output_goes_to_terminal(self, capfd):
        result = CommandRunner().run(_py(), policy=OutputPolicy.STREAMED)
        out, err = capfd.readouterr()
        assert result.ok
        assert result.stdout == ""
        assert result.stderr == ""
        assert "to-out" in out
        assert "to-err" in err

    def test_failure_keeps_exit_code(self, capfd):
        result = CommandRunner().run(_py(2), policy=OutputPolicy.STREAMED)
        assert result.returncode == 2
        assert result.stdout == ""


class TestLaunchFailure:
    def test_missing_binary_raises(self, tmp_path):
        with pytest.raises(ProcessLaunchFailed, match="missing-tool"):
            CommandRunner().run([str(tmp_path / "missing-tool")], label="missing-tool")

    def test_label_defaults_to_program(self):
        result = CommandRunner().run(_py())
        assert result.label == sys.executable
        assert result.command[0] == sys.executable
