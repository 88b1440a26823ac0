"""
Tests for the process runner — real subprocesses through sh.
"""

import time

import pytest

from magedock.adapters.shell.process import (
    CODE_TIMEOUT,
    PendingProcess,
    ProcessResult,
    ProcessRunner,
)
from magedock.core.exceptions import ProcessException, ProcessLaunchError


class TestProcessResult:
    def test_succeeded(self):
        assert ProcessResult(exit_code=0).succeeded
        assert not ProcessResult(exit_code=2).succeeded

    def test_timed_out(self):
        result = ProcessResult(exit_code=CODE_TIMEOUT)
        assert result.timed_out
        assert not result.succeeded


class TestRun:
    def test_captures_stdout(self):
        result = ProcessRunner().run(["sh", "-c", "echo hello"])
        assert result.succeeded
        assert result.stdout == "hello\n"
        assert result.argv == ["sh", "-c", "echo hello"]

    def test_captures_stderr_and_exit_code(self):
        result = ProcessRunner().run(["sh", "-c", "echo oops >&2; exit 3"])
        assert result.exit_code == 3
        assert result.stderr == "oops\n"

    def test_timeout_reports_code(self):
        result = ProcessRunner().run(["sleep", "5"], timeout=1)
        assert result.timed_out
        assert result.exit_code == CODE_TIMEOUT

    def test_launch_failure_raises(self):
        with pytest.raises(ProcessLaunchError) as exc:
            ProcessRunner().run(["magedock-no-such-binary-xyz"])
        assert isinstance(exc.value, ProcessException)

    def test_env_is_merged(self, monkeypatch):
        monkeypatch.setenv("MAGEDOCK_TEST_BASE", "base")
        result = ProcessRunner().run(
            ["sh", "-c", 'echo "$MAGEDOCK_TEST_BASE-$MAGEDOCK_TEST_EXTRA"'],
            env={"MAGEDOCK_TEST_EXTRA": "extra"},
        )
        assert result.stdout.strip() == "base-extra"

    def test_cwd(self, tmp_path):
        result = ProcessRunner().run(["pwd"], cwd=tmp_path)
        assert result.stdout.strip() == str(tmp_path.resolve())

    def test_uncaptured_keeps_exit_code(self):
        result = ProcessRunner().run(["sh", "-c", "exit 4"], capture_output=False)
        assert result.exit_code == 4
        assert result.stdout == ""

    def test_uncaptured_launch_failure(self):
        with pytest.raises(ProcessLaunchError):
            ProcessRunner().run(["magedock-no-such-binary-xyz"], capture_output=False)


class TestPendingProcess:
    def test_create_does_not_start(self):
        pending = ProcessRunner().create(["sh", "-c", "echo later"], timeout=5)
        assert isinstance(pending, PendingProcess)
        assert pending.started is False
        assert pending.timeout == 5

    def test_run_after_create(self):
        pending = ProcessRunner().create(["sh", "-c", "echo later"])
        result = pending.run()
        assert pending.started
        assert result.stdout == "later\n"

    def test_cannot_start_twice(self):
        pending = ProcessRunner().create(["true"])
        pending.run()
        with pytest.raises(RuntimeError):
            pending.run()

    def test_stream_yields_lines_then_exit(self):
        pending = ProcessRunner().create(["sh", "-c", "echo one; echo two >&2; exit 5"])
        events = list(pending.stream())
        assert events[-1] == ("exit", 5)
        assert ("stdout", "one") in events
        assert ("stderr", "two") in events

    def test_stream_timeout(self):
        pending = ProcessRunner().create(["sleep", "5"], timeout=1)
        events = list(pending.stream())
        assert events[-1] == ("exit", CODE_TIMEOUT)

    def test_stream_timeout_bounds_chatty_process(self):
        script = "for i in 1 2 3 4 5 6 7 8; do echo $i; sleep 0.5; done"
        pending = ProcessRunner().create(["sh", "-c", script], timeout=1)
        start = time.monotonic()
        events = list(pending.stream())
        assert time.monotonic() - start < 3
        assert events[-1] == ("exit", CODE_TIMEOUT)
        assert ("stdout", "1") in events
        assert ("stdout", "8") not in events
        assert pending.process.poll() is not None

    def test_stream_closed_early_kills_process(self):
        pending = ProcessRunner().create(["sh", "-c", "echo ready; exec sleep 30"], timeout=60)
        lines = pending.stream()
        assert next(lines) == ("stdout", "ready")
        lines.close()
        assert pending.process.poll() is not None


class TestRunInteractive:
    def test_returns_exit_code(self):
        assert ProcessRunner().run_interactive(["sh", "-c", "exit 7"]) == 7
