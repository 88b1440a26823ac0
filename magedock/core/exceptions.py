"""
Exception hierarchy for magedock.

Core services raise these; the CLI layer catches ``MagedockError`` at
the top of each command, prints the message and exits with the error
code. ``UndefinedPrerequisite`` is the exception to that rule: it means
a command was wired with a prerequisite name the registry does not know,
so it is left to propagate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from magedock.adapters.shell.process import ProcessResult
    from magedock.core.models.prerequisite import Prerequisite


class MagedockError(Exception):
    """Base exception carrying a user-facing message."""

    exit_code = 1

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class UndefinedPrerequisite(MagedockError):
    """A command declares prerequisite names the registry does not track."""

    def __init__(self, kind: str, names: list[str]) -> None:
        self.kind = kind
        self.names = list(names)
        super().__init__(
            f"Undefined {kind} prerequisite(s) specified: {','.join(self.names)}"
        )


class EnvironmentException(MagedockError):
    """The local environment cannot serve the requested operation."""


class EnvironmentNotReady(EnvironmentException):
    """A mandatory prerequisite is unsatisfied at dispatch time."""

    def __init__(self, prerequisite: Prerequisite) -> None:
        self.prerequisite = prerequisite
        super().__init__(prerequisite.failure_message())


class EnvironmentNotDefined(EnvironmentException):
    """No environment exists at all (no compose project, no docker)."""

    def __init__(
        self,
        message: str = "Environment is not defined, install the environment first.",
    ) -> None:
        super().__init__(message)


class ContainerNotStarted(EnvironmentException):
    """The target container is down for an operation that needs it up."""

    def __init__(self, container: str) -> None:
        self.container = container
        super().__init__(f"The container {container} is not started.")


class ProcessException(MagedockError):
    """A subprocess could not be run the way the operation required."""


class ProcessLaunchError(ProcessException):
    """The executable could not be started at all."""


class ProcessFailure(ProcessException):
    """A subprocess exited non-zero outside the soft-timeout case."""

    def __init__(self, result: ProcessResult, message: str = "") -> None:
        self.result = result
        super().__init__(
            message
            or result.stderr.strip()
            or f"{' '.join(result.argv)} exited with code {result.exit_code}"
        )


class ComposerException(MagedockError):
    """composer.json is missing or unreadable."""
