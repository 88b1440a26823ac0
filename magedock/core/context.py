"""
Application context — the collaborators a command runs with.

Built once by the CLI entry point and passed down through
``click.Context.obj["app"]``. Tests inject their own instance with fake
runners instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from magedock.adapters.containers.compose import DockerCompose
from magedock.adapters.shell.process import ProcessRunner
from magedock.adapters.sync.mutagen import Mutagen
from magedock.core.models.settings import Settings
from magedock.core.services.environment import Environment
from magedock.core.services.installation import Installation
from magedock.core.services.system import SystemPrerequisites


@dataclass
class AppContext:
    settings: Settings
    runner: ProcessRunner
    system: SystemPrerequisites
    environment: Environment
    compose: DockerCompose
    installation: Installation
    mutagen: Mutagen

    @property
    def root(self) -> Path:
        return self.environment.root

    @classmethod
    def build(
        cls,
        root: Path,
        settings: Settings | None = None,
        runner: ProcessRunner | None = None,
    ) -> AppContext:
        """Wire the default collaborators for the project at *root*."""
        settings = settings or Settings()
        runner = runner or ProcessRunner()
        environment = Environment(root, settings)
        compose = DockerCompose(runner, environment, settings)
        return cls(
            settings=settings,
            runner=runner,
            system=SystemPrerequisites(runner),
            environment=environment,
            compose=compose,
            installation=Installation(runner, compose, environment, settings),
            mutagen=Mutagen(runner),
        )
