"""
Command base — prerequisite gating around every magedock command.

Commands are declared with ``cls=GatedCommand`` and a
``prerequisites=CommandPrerequisites(...)`` attribute:

    @click.command(cls=GatedCommand, prerequisites=CommandPrerequisites(binary=["docker"]))
    @click.pass_context
    def status(ctx): ...

Before the callback runs, ``GatedCommand.invoke`` checks the declaration
against the system snapshot in ``ctx.obj["app"]``. An unsatisfied
mandatory prerequisite stops the command with ``CODE_ERROR``; a
``MagedockError`` raised by the body is printed the same way. Commands
built with ``catch_all=True`` (install, create) report any other
exception that way too.
"""

from __future__ import annotations

import logging
from typing import Any

import click

from magedock.core.context import AppContext
from magedock.core.exceptions import EnvironmentNotReady, MagedockError, UndefinedPrerequisite
from magedock.core.models.prerequisite import CommandPrerequisites
from magedock.core.services.gate import PrerequisiteGate

logger = logging.getLogger(__name__)

CODE_SUCCESS = 0
CODE_ERROR = 1

DOCKER_BINARIES = ("docker", "docker-compose")


def get_app(ctx: click.Context) -> AppContext:
    """The AppContext built by the root group."""
    obj = ctx.find_object(dict) or {}
    app = obj.get("app")
    if app is None:
        raise click.UsageError("magedock commands must be run through the magedock group.")
    return app


def fail(message: str) -> None:
    """Print an error and exit with CODE_ERROR."""
    if message:
        click.secho(f"❌ {message}", fg="red", err=True)
    raise click.exceptions.Exit(CODE_ERROR)


class GatedCommand(click.Command):
    """A click command that declares the prerequisites it needs."""

    def __init__(
        self,
        *args: Any,
        prerequisites: CommandPrerequisites | None = None,
        catch_all: bool = False,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.prerequisites = prerequisites or CommandPrerequisites()
        self.catch_all = catch_all

    def declares_prerequisites(self) -> CommandPrerequisites:
        return self.prerequisites

    def invoke(self, ctx: click.Context) -> Any:
        declared = self.declares_prerequisites()
        if not declared.empty:
            gate = PrerequisiteGate(get_app(ctx).system)
            try:
                result = gate.check(declared)
            except UndefinedPrerequisite:
                logger.error("Command %s declares unknown prerequisites", self.name)
                raise
            except EnvironmentNotReady as e:
                fail(str(e))
            else:
                for missing in result.warnings:
                    click.secho(f"⚠️  {missing.name} is missing, some features may not work.", fg="yellow", err=True)

        try:
            return super().invoke(ctx)
        except UndefinedPrerequisite:
            raise
        except MagedockError as e:
            logger.debug("Command %s failed", self.name, exc_info=True)
            fail(str(e))
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            raise
        except Exception as e:
            if not self.catch_all:
                raise
            logger.debug("Command %s failed unexpectedly", self.name, exc_info=True)
            fail(str(e) or type(e).__name__)
