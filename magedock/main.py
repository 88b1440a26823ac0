"""
magedock — CLI entrypoint.

Usage:
    python -m magedock.main --help
    magedock install
    magedock magento cache:flush
"""

from __future__ import annotations

from pathlib import Path

import click

from magedock import __version__
from magedock.core.config.loader import find_config_file, load_settings, project_root
from magedock.core.context import AppContext
from magedock.core.exceptions import MagedockError
from magedock.core.observability.logging_config import setup_from_environment
from magedock.ui.cli.base import CODE_ERROR


@click.group()
@click.version_option(version=__version__, prog_name="magedock")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help="Path to magedock.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: Path | None,
) -> None:
    """magedock — local Magento 2 environments on Docker Compose."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    setup_from_environment(debug, verbose, quiet)

    # Tests inject their own context.
    if "app" in ctx.obj:
        return

    try:
        settings = load_settings(config_path)
    except MagedockError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        ctx.exit(CODE_ERROR)

    root = project_root(config_path or find_config_file())
    ctx.obj["app"] = AppContext.build(root, settings)


# ── Register commands from magedock/ui/cli/ ──────────────────────

from magedock.ui.cli.environment import (  # noqa: E402
    import_database,
    install,
    restart,
    start,
    status,
    stop,
    terminal,
)
from magedock.ui.cli.magento import create, magento  # noqa: E402

cli.add_command(install)
cli.add_command(create)
cli.add_command(start)
cli.add_command(stop)
cli.add_command(status)
cli.add_command(terminal)
cli.add_command(restart)
cli.add_command(import_database)
cli.add_command(magento)


if __name__ == "__main__":
    cli()
