"""
Docker Compose adapter — probe, exec into, attach to and restart containers.

Container names are compose service names ("php", "mysql", ...).
Every operation that needs a running container probes it first; the
cached system prerequisites are never trusted for container state.
"""

from __future__ import annotations

import logging
import shlex

from magedock.adapters.shell.process import PendingProcess, ProcessResult, ProcessRunner
from magedock.core.exceptions import (
    ContainerNotStarted,
    EnvironmentNotDefined,
    ProcessException,
    ProcessLaunchError,
)
from magedock.core.models.settings import Settings
from magedock.core.services.environment import Environment

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 10
RESTART_TIMEOUT = 60
EXEC_TIMEOUT = 600


class DockerCompose:
    """Container operations for the project's compose environment."""

    def __init__(
        self,
        runner: ProcessRunner,
        environment: Environment,
        settings: Settings | None = None,
    ):
        self._runner = runner
        self._environment = environment
        self._settings = settings or Settings()

    @property
    def compose(self) -> list[str]:
        return list(self._settings.compose_command)

    def probe_command(self, container: str) -> str:
        """Shell pipeline that prints the container ID only if it is running.

        docker's own running list is the authority; compose only maps
        the service name to its container ID(s).
        """
        compose_ps = shlex.join([*self.compose, "ps", "-q", container])
        return f'docker ps -q --no-trunc | grep -F -x -e "$({compose_ps})"'

    def is_container_up(self, container: str) -> bool:
        """Whether the compose service *container* has a running container.

        Raises:
            EnvironmentNotDefined: There is no environment to probe.
        """
        try:
            result = self._runner.run(
                ["sh", "-c", self.probe_command(container)],
                timeout=PROBE_TIMEOUT,
                env=self._environment.docker_variables(),
            )
        except (EnvironmentNotDefined, ProcessLaunchError) as e:
            logger.error("Cannot probe container %s: %s", container, e)
            raise EnvironmentNotDefined() from e

        up = result.succeeded and bool(result.stdout.strip())
        logger.debug("Container %s is %s", container, "up" if up else "down")
        return up

    def user_arguments(self, container: str) -> list[str]:
        """The app container runs as the app user so files are not root-owned."""
        if container == self._settings.app_container:
            return ["-u", self._settings.app_user]
        return []

    def exec_command(self, container: str, command: str) -> list[str]:
        # The command is a single argv element, only the container shell parses it.
        return [
            *self.compose,
            "exec",
            *self.user_arguments(container),
            "-T",
            container,
            "sh",
            "-c",
            command,
        ]

    def execute_command(
        self,
        container: str,
        command: str,
        create_only: bool = False,
    ) -> ProcessResult | PendingProcess:
        """Run *command* inside *container*.

        Args:
            container: Compose service name.
            command: Shell command run by ``sh -c`` in the container.
            create_only: Return the configured process without starting it.

        Raises:
            ContainerNotStarted: The container is not running.
        """
        if not self.is_container_up(container):
            raise ContainerNotStarted(container)

        argv = self.exec_command(container, command)
        env = self._environment.docker_variables()
        logger.info("Executing in %s: %s", container, command)
        if create_only:
            return self._runner.create(argv, timeout=EXEC_TIMEOUT, env=env)
        return self._runner.run(argv, timeout=EXEC_TIMEOUT, env=env)

    def open_terminal(self, container: str, user: str = "") -> int:
        """Attach an interactive login shell to *container*, blocking until it exits.

        Raises:
            ContainerNotStarted: The container is not running.
            ProcessException: The current process has no terminal.
        """
        if not self.is_container_up(container):
            raise ContainerNotStarted(container)
        if not self._runner.tty_supported():
            raise ProcessException(
                "TTY is not supported, ensure you're running the application from the command line."
            )

        argv = [*self.compose, "exec"]
        if user:
            argv += ["-u", user]
        argv += [container, "sh", "-l"]
        return self._runner.run_interactive(argv, env=self._environment.docker_variables())

    def restart_container(self, container: str) -> bool:
        """Restart *container*; works whether it is up or down."""
        result = self._runner.run(
            [*self.compose, "restart", container],
            timeout=RESTART_TIMEOUT,
            env=self._environment.docker_variables(),
        )
        if not result.succeeded:
            logger.warning("Restart of %s failed: %s", container, result.stderr.strip())
        return result.succeeded
