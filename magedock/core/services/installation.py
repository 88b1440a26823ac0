"""
Installation steps — the subprocess side of ``magedock install``.

Each step runs one external command and raises ``ProcessFailure`` when
it fails. ``start`` is the exception: a timeout there means containers
are up but files are still syncing, so the result is handed back for
the caller to branch on.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from magedock.adapters.containers.compose import DockerCompose
from magedock.adapters.shell.process import ProcessResult, ProcessRunner
from magedock.core.exceptions import ComposerException, ContainerNotStarted, ProcessFailure
from magedock.core.models.settings import Settings
from magedock.core.services.env_config import host_name
from magedock.core.services.environment import Environment

logger = logging.getLogger(__name__)

_SYNC_START_TIMEOUT = 120


def dump_reader(dump: Path) -> str:
    """Command that writes the decompressed dump to stdout."""
    name = dump.name.lower()
    if name.endswith(".zip"):
        return "unzip -p"
    if name.endswith((".gz", ".gzip")):
        return "gunzip -c"
    return "cat"


def mysql_client(database: str) -> str:
    """mysql client invocation, evaluated by the database container's shell."""
    return f'mysql -uroot -p"$MYSQL_ROOT_PASSWORD" {shlex.quote(database)}'


class Installation:
    def __init__(
        self,
        runner: ProcessRunner,
        compose: DockerCompose,
        environment: Environment,
        settings: Settings | None = None,
    ):
        self._runner = runner
        self._compose = compose
        self._environment = environment
        self._settings = settings or Settings()

    @property
    def root(self) -> Path:
        return self._environment.root

    def _check(self, result: ProcessResult) -> ProcessResult:
        if not result.succeeded:
            raise ProcessFailure(result)
        return result

    def composer_install(self) -> ProcessResult:
        if not (self.root / "composer.json").is_file():
            raise ComposerException("Unable to read composer.json.")
        return self._check(self._runner.run(
            ["composer", "install", "--ignore-platform-reqs", "-o"],
            timeout=self._settings.timeouts.composer_install,
            capture_output=False,
            cwd=self.root,
        ))

    def docker_local_install(self) -> ProcessResult:
        """Copy the docker-magento2 local files into the project, then re-locate them."""
        result = self._check(self._runner.run(
            ["composer", "exec", "docker-local-install"],
            timeout=self._settings.timeouts.composer_update,
            cwd=self.root,
        ))
        self._environment.auto_locate()
        return result

    def build(self) -> ProcessResult:
        return self._check(self._runner.run(
            ["make", "build"],
            timeout=self._settings.timeouts.build,
            cwd=self.root,
        ))

    def start(self) -> ProcessResult:
        """Start the environment.

        Returns the result even when it timed out: the caller then waits
        for the file sync instead of failing.
        """
        result = self._runner.run(
            ["make", "start"],
            timeout=self._settings.timeouts.start,
            cwd=self.root,
        )
        if not result.succeeded and not result.timed_out:
            raise ProcessFailure(result)
        return result

    def stop(self) -> ProcessResult:
        return self._check(self._runner.run(
            ["make", "stop"],
            timeout=self._settings.timeouts.start,
            cwd=self.root,
        ))

    def start_sync(self) -> ProcessResult:
        return self._check(self._runner.run(
            self._settings.sync_start_command,
            timeout=_SYNC_START_TIMEOUT,
            cwd=self.root,
        ))

    def import_database(self, database: str, dump: Path) -> ProcessResult:
        """Pipe *dump* into *database* through the database container.

        Raises:
            ContainerNotStarted: The database container is down.
            ProcessFailure: The import failed.
        """
        container = self._settings.database_container
        if not self._compose.is_container_up(container):
            raise ContainerNotStarted(container)

        exec_argv = [*self._compose.compose, "exec", "-T", container, "sh", "-c", mysql_client(database)]
        pipeline = f"{dump_reader(dump)} {shlex.quote(str(dump))} | {shlex.join(exec_argv)}"
        logger.info("Importing %s into %s", dump, database)
        return self._check(self._runner.run(
            ["sh", "-c", pipeline],
            timeout=self._settings.timeouts.database_import,
            env=self._environment.docker_variables(),
            cwd=self.root,
        ))

    def update_urls(self, database: str, server_name: str) -> ProcessResult:
        """Point the store base URLs at https://www.<server_name>/."""
        sql = (
            f"UPDATE core_config_data SET value = 'https://{host_name(server_name)}/' "
            "WHERE path LIKE 'web/%secure/base_url';"
        )
        result = self._compose.execute_command(
            self._settings.database_container,
            f"{mysql_client(database)} -e {shlex.quote(sql)}",
        )
        assert isinstance(result, ProcessResult)
        return result
