"""
CLI commands for Magento itself: create a project, run bin/magento.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

import click

from magedock.adapters.shell.process import ProcessResult
from magedock.core.models.prerequisite import CommandPrerequisites
from magedock.core.services.magento_project import (
    add_dev_requirements,
    create_project_command,
    package_name,
    scaffold_directories,
    write_gitignore,
)
from magedock.ui.cli.base import DOCKER_BINARIES, GatedCommand, fail, get_app

logger = logging.getLogger(__name__)

_NAME_ATTEMPTS = 2


def _ask_project_name() -> str:
    for _ in range(_NAME_ATTEMPTS):
        name = click.prompt("Enter your project name", default="", show_default=False).strip()
        if name:
            return name
        click.secho("The name cannot be empty", fg="red", err=True)
    fail("No project name given.")
    return ""


@click.command(cls=GatedCommand, prerequisites=CommandPrerequisites(binary=["composer"]), catch_all=True)
@click.option("--enterprise", is_flag=True, help="Create a Magento Commerce project.")
@click.option(
    "--patch",
    "-p",
    default=None,
    help="Version or specific patch to install. E.g: 2.3.3, 2.3.3-p1...",
)
@click.pass_context
def create(ctx: click.Context, enterprise: bool, patch: str | None) -> None:
    """Create a new Magento 2 project in the current directory.

    When the current directory is not empty, the project goes into a new
    subdirectory named after the answer to the project name prompt.
    """
    app = get_app(ctx)
    timeouts = app.settings.timeouts

    root = Path.cwd()
    if any(root.iterdir()):
        target = root / _ask_project_name()
        try:
            target.mkdir()
        except FileExistsError:
            fail("A directory with that name already exist, try again with another name or try somewhere else.")
        root = target

    package = package_name(enterprise, patch)
    code = app.runner.run_interactive(
        create_project_command(package),
        cwd=root,
        timeout=timeouts.composer_create,
    )
    if code != 0:
        fail(f"composer create-project {package} failed (exit code {code}).")
    logger.info("Base project created in %s", root)

    add_dev_requirements(root / "composer.json")

    update = app.runner.run(
        ["composer", "update", "--ignore-platform-reqs", "--optimize-autoloader"],
        timeout=timeouts.composer_update,
        cwd=root,
    )
    if not update.succeeded:
        click.secho(
            "⚠️  composer update did not finish, run it again before installing the environment.",
            fg="yellow",
        )

    local_install = app.runner.run(
        ["composer", "exec", "docker-local-install"],
        timeout=timeouts.composer_update,
        cwd=root,
    )
    if not local_install.succeeded:
        click.secho(f"⚠️  docker-local-install failed: {local_install.stderr.strip()}", fg="yellow")

    write_gitignore(root)
    scaffold_directories(root)

    click.secho("✅ Your project has been created, you can now use the install command.", fg="green", bold=True)


@click.command(
    cls=GatedCommand,
    prerequisites=CommandPrerequisites(binary=DOCKER_BINARIES, service=["Docker"]),
    context_settings={"ignore_unknown_options": True},
)
@click.argument("arguments", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def magento(ctx: click.Context, arguments: tuple[str, ...]) -> None:
    """Run bin/magento in the app container.

    Examples:

        magedock magento cache:flush

        magedock magento setup:upgrade --keep-generated
    """
    app = get_app(ctx)
    command = shlex.join(["bin/magento", *arguments])
    result = app.compose.execute_command(app.settings.app_container, command)
    assert isinstance(result, ProcessResult)

    if result.stdout:
        click.echo(result.stdout.rstrip("\n"))
    if result.stderr:
        click.echo(result.stderr.rstrip("\n"), err=True)
    if not result.succeeded:
        ctx.exit(result.exit_code)
