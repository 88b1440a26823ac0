"""
System prerequisites — which binaries are installed, which services run.

One ``SystemPrerequisites`` object is built per process and handed to
everything that needs it. The snapshot is taken on first access and
kept for the life of the process, even if the machine changes under
it. Container liveness is never read from here: the compose adapter
re-probes containers on every operation.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Mapping

from magedock.adapters.shell.process import ProcessRunner
from magedock.core.exceptions import ProcessLaunchError
from magedock.core.models.prerequisite import Prerequisite, PrerequisiteKind

logger = logging.getLogger(__name__)

# name -> mandatory
DEFAULT_BINARIES: dict[str, bool] = {
    "docker": True,
    "docker-compose": True,
    "composer": True,
    "make": True,
    "mutagen": False,
}

# name -> (probe argv, mandatory)
DEFAULT_SERVICES: dict[str, tuple[list[str], bool]] = {
    "Docker": (["docker", "info"], True),
    "Mutagen": (["mutagen", "sync", "list"], False),
}

_SERVICE_PROBE_TIMEOUT = 10


class SystemPrerequisites:
    """Process-wide snapshot of binary and service prerequisites."""

    def __init__(
        self,
        runner: ProcessRunner,
        binaries: Mapping[str, bool] | None = None,
        services: Mapping[str, tuple[list[str], bool]] | None = None,
        which: Callable[[str], str | None] = shutil.which,
    ):
        self._runner = runner
        self._binaries = dict(DEFAULT_BINARIES if binaries is None else binaries)
        self._services = dict(DEFAULT_SERVICES if services is None else services)
        self._which = which
        self._binary_cache: dict[str, Prerequisite] | None = None
        self._service_cache: dict[str, Prerequisite] | None = None

    def binary_prerequisites(self) -> dict[str, Prerequisite]:
        if self._binary_cache is None:
            self._binary_cache = {
                name: Prerequisite(
                    name=name,
                    kind=PrerequisiteKind.BINARY,
                    mandatory=mandatory,
                    status=self._which(name) is not None,
                )
                for name, mandatory in self._binaries.items()
            }
            logger.debug(
                "Binary prerequisites: %s",
                {n: p.status for n, p in self._binary_cache.items()},
            )
        return dict(self._binary_cache)

    def service_prerequisites(self) -> dict[str, Prerequisite]:
        if self._service_cache is None:
            self._service_cache = {
                name: Prerequisite(
                    name=name,
                    kind=PrerequisiteKind.SERVICE,
                    mandatory=mandatory,
                    status=self._probe_service(argv),
                )
                for name, (argv, mandatory) in self._services.items()
            }
            logger.debug(
                "Service prerequisites: %s",
                {n: p.status for n, p in self._service_cache.items()},
            )
        return dict(self._service_cache)

    def prerequisites(self, kind: PrerequisiteKind) -> dict[str, Prerequisite]:
        if kind is PrerequisiteKind.BINARY:
            return self.binary_prerequisites()
        return self.service_prerequisites()

    def missing(self) -> list[Prerequisite]:
        """Every unsatisfied prerequisite, binaries first."""
        every = [*self.binary_prerequisites().values(), *self.service_prerequisites().values()]
        return [p for p in every if not p.status]

    def _probe_service(self, argv: list[str]) -> bool:
        try:
            return self._runner.run(argv, timeout=_SERVICE_PROBE_TIMEOUT).succeeded
        except ProcessLaunchError as e:
            logger.debug("Service probe %s could not start: %s", argv, e)
            return False
