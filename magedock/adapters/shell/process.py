"""
Process runner — the one place magedock spawns external commands.

Everything that touches docker, compose, composer, make or mutagen goes
through ``ProcessRunner``. Callers get a ``ProcessResult`` back and
decide what a non-zero exit means; the runner itself only raises when
the executable cannot be launched at all.

A timeout is not an error here: the result comes back with
``CODE_TIMEOUT`` so long-running flows (install) can treat it as
"still working" and branch.
"""

from __future__ import annotations

import logging
import os
import selectors
import subprocess
import sys
import time
from collections.abc import Generator, Mapping, Sequence
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from magedock.core.exceptions import ProcessLaunchError

logger = logging.getLogger(__name__)

# Exit code reported when a process is killed on timeout.
CODE_TIMEOUT = 124


class ProcessResult(BaseModel):
    """Outcome of one process invocation. Consumed and discarded."""

    argv: list[str] = Field(default_factory=list)
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def timed_out(self) -> bool:
        return self.exit_code == CODE_TIMEOUT


def _merge_env(env: Mapping[str, str] | None) -> dict[str, str] | None:
    if not env:
        return None
    merged = dict(os.environ)
    merged.update({k: str(v) for k, v in env.items()})
    return merged


def _text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


# (source, payload): an output line, or the exit code for "exit"
StreamLine = tuple[Literal["stdout", "stderr", "exit"], str | int]


class PendingProcess:
    """A configured process that has not been started yet.

    Returned by ``ProcessRunner.create`` so callers can decide when to
    start it and whether to stream its output themselves.
    """

    def __init__(
        self,
        argv: Sequence[str],
        *,
        timeout: int | None = None,
        env: Mapping[str, str] | None = None,
        cwd: Path | str | None = None,
    ):
        self.argv = list(argv)
        self.timeout = timeout
        self.env = dict(env) if env else None
        self.cwd = str(cwd) if cwd else None
        self.started = False
        self.process: subprocess.Popen | None = None

    def _mark_started(self) -> None:
        if self.started:
            raise RuntimeError(f"Process already started: {' '.join(self.argv)}")
        self.started = True

    def run(self) -> ProcessResult:
        """Start the process and wait for it, capturing output."""
        self._mark_started()
        logger.debug("Running: %s (cwd=%s, timeout=%ss)", self.argv, self.cwd, self.timeout)
        start = time.monotonic()
        try:
            completed = subprocess.run(
                self.argv,
                cwd=self.cwd,
                env=_merge_env(self.env),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.info("Timed out after %ss: %s", self.timeout, self.argv)
            return ProcessResult(
                argv=self.argv,
                exit_code=CODE_TIMEOUT,
                stdout=_text(e.stdout),
                stderr=_text(e.stderr),
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        except OSError as e:
            raise ProcessLaunchError(f"Cannot run {self.argv[0]}: {e}") from e

        return ProcessResult(
            argv=self.argv,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    def _remaining(self, deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())

    def stream(self) -> Generator[StreamLine, None, None]:
        """Start the process and yield its output lines as they arrive.

        The timeout bounds the whole run, not the silence between lines.
        Closing the generator early kills the process.

        Yields:
            ("stdout", line) or ("stderr", line), newline stripped, then
            ("exit", code) last; code is ``CODE_TIMEOUT`` if it was killed.
        """
        self._mark_started()
        logger.debug("Streaming: %s (cwd=%s, timeout=%ss)", self.argv, self.cwd, self.timeout)
        try:
            self.process = subprocess.Popen(
                self.argv,
                cwd=self.cwd,
                env=_merge_env(self.env),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            raise ProcessLaunchError(f"Cannot run {self.argv[0]}: {e}") from e

        proc = self.process
        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        timed_out = False
        code = 0

        # Compose writes progress to stderr, both pipes are watched.
        pipes = selectors.DefaultSelector()
        pipes.register(proc.stdout, selectors.EVENT_READ, "stdout")
        pipes.register(proc.stderr, selectors.EVENT_READ, "stderr")
        try:
            while pipes.get_map():
                remaining = self._remaining(deadline)
                if remaining == 0:
                    timed_out = True
                    break
                for key, _ in pipes.select(remaining):
                    line = key.fileobj.readline()  # type: ignore[union-attr]
                    if not line:
                        pipes.unregister(key.fileobj)
                        continue
                    yield (key.data, line.rstrip("\n"))

            if not timed_out:
                try:
                    code = proc.wait(timeout=self._remaining(deadline))
                except subprocess.TimeoutExpired:
                    timed_out = True
        finally:
            pipes.close()
            if proc.poll() is None:
                logger.info("Killing %s", self.argv)
                proc.kill()
                proc.wait()
            proc.stdout.close()  # type: ignore[union-attr]
            proc.stderr.close()  # type: ignore[union-attr]

        if timed_out:
            logger.info("Timed out after %ss: %s", self.timeout, self.argv)
            yield ("stderr", f"Timed out after {self.timeout}s, process killed")
            yield ("exit", CODE_TIMEOUT)
            return
        yield ("exit", code)


class ProcessRunner:
    """Spawn external commands with timeout and exit-code semantics."""

    def create(
        self,
        argv: Sequence[str],
        timeout: int | None = 60,
        env: Mapping[str, str] | None = None,
        cwd: Path | str | None = None,
    ) -> PendingProcess:
        """Configure a process without starting it."""
        return PendingProcess(argv, timeout=timeout, env=env, cwd=cwd)

    def run(
        self,
        argv: Sequence[str],
        timeout: int | None = 60,
        env: Mapping[str, str] | None = None,
        capture_output: bool = True,
        cwd: Path | str | None = None,
    ) -> ProcessResult:
        """Run a command to completion.

        Args:
            argv: Command and arguments.
            timeout: Seconds before the process is killed and
                ``CODE_TIMEOUT`` is reported.
            env: Extra variables merged over the current environment.
            capture_output: If False, output goes to the terminal and the
                result carries only the exit code.
            cwd: Working directory.

        Raises:
            ProcessLaunchError: The executable could not be started.
        """
        if capture_output:
            return self.create(argv, timeout=timeout, env=env, cwd=cwd).run()

        argv = list(argv)
        logger.debug("Running (uncaptured): %s (cwd=%s, timeout=%ss)", argv, cwd, timeout)
        start = time.monotonic()
        try:
            completed = subprocess.run(
                argv,
                cwd=str(cwd) if cwd else None,
                env=_merge_env(env),
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            logger.info("Timed out after %ss: %s", timeout, argv)
            return ProcessResult(
                argv=argv,
                exit_code=CODE_TIMEOUT,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        except OSError as e:
            raise ProcessLaunchError(f"Cannot run {argv[0]}: {e}") from e

        return ProcessResult(
            argv=argv,
            exit_code=completed.returncode,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    def run_interactive(
        self,
        argv: Sequence[str],
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
        timeout: int | None = None,
    ) -> int:
        """Hand the terminal to *argv* and block until it exits.

        Returns:
            The process exit code (``CODE_TIMEOUT`` if it was killed).
        """
        return self.run(argv, timeout=timeout, env=env, capture_output=False, cwd=cwd).exit_code

    @staticmethod
    def tty_supported() -> bool:
        """Whether stdin and stdout are attached to a terminal."""
        return sys.stdin.isatty() and sys.stdout.isatty()
