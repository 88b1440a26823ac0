"""
Mutagen adapter — wait for file synchronization to settle.

On macOS the project files reach the containers through mutagen. After
the environment starts, the first sync can take minutes; install polls
``mutagen sync list`` until every session is watching for changes.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable

from magedock.adapters.shell.process import ProcessRunner
from magedock.core.exceptions import ProcessLaunchError

logger = logging.getLogger(__name__)

_STATUS_RE = re.compile(r"^\s*Status:\s*(.+?)\s*$", re.MULTILINE)
_SYNCED = "watching for changes"
_FAILED = ("halted", "error", "problem")


def parse_statuses(listing: str) -> list[str]:
    """Status line of every session in a ``mutagen sync list`` output."""
    return _STATUS_RE.findall(listing)


class Mutagen:
    def __init__(
        self,
        runner: ProcessRunner,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._runner = runner
        self._sleep = sleep
        self._clock = clock

    def monitor_until_synced(
        self,
        on_status: Callable[[list[str]], None] | None = None,
        timeout: int = 1800,
        interval: float = 2.0,
    ) -> bool:
        """Poll the sync sessions until they are all watching for changes.

        Args:
            on_status: Called with the session statuses after each poll.
            timeout: Seconds to wait before giving up.
            interval: Seconds between polls.

        Returns:
            True once synced; False on a halted session, a failed listing,
            or when the timeout passes.
        """
        deadline = self._clock() + timeout
        while True:
            try:
                result = self._runner.run(["mutagen", "sync", "list"], timeout=30)
            except ProcessLaunchError as e:
                logger.error("mutagen is not available: %s", e)
                return False
            if not result.succeeded:
                logger.error("mutagen sync list failed: %s", result.stderr.strip())
                return False

            statuses = parse_statuses(result.stdout)
            if on_status is not None:
                on_status(statuses)

            lowered = [s.lower() for s in statuses]
            if any(marker in s for s in lowered for marker in _FAILED):
                logger.error("Sync session failed: %s", statuses)
                return False
            if lowered and all(_SYNCED in s for s in lowered):
                return True

            if self._clock() >= deadline:
                logger.error("Sync did not settle within %ss", timeout)
                return False
            self._sleep(interval)
