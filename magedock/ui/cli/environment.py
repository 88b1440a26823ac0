"""
CLI commands for the Docker environment of a Magento project.

install, start, stop, status, terminal, restart, import — thin wrappers
over ``magedock.core.services`` and the compose adapter.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

import click

from magedock.core.context import AppContext
from magedock.core.exceptions import (
    EnvironmentException,
    EnvironmentNotReady,
    MagedockError,
    ProcessException,
    ProcessFailure,
)
from magedock.core.models.prerequisite import CommandPrerequisites, Prerequisite
from magedock.core.services.env_config import (
    add_host,
    find_database_dumps,
    has_host,
    host_name,
    image_flavour,
    php_images,
    replace_server_name,
    section_settings,
    server_name,
    set_env_value,
)
from magedock.ui.cli.base import (
    DOCKER_BINARIES,
    GatedCommand,
    fail,
    get_app,
)

logger = logging.getLogger(__name__)

HOSTS_FILE = Path("/etc/hosts")

_RUNNING_ENV = CommandPrerequisites(binary=DOCKER_BINARIES, service=["Docker"])


def _section(title: str) -> None:
    click.echo()
    click.secho(title, fg="cyan", bold=True)
    click.secho("─" * len(title), fg="cyan")


# ── Install ─────────────────────────────────────────────────────


def _report(prerequisites: dict[str, Prerequisite], ok: str, missing: str) -> list[Prerequisite]:
    blocking = []
    for name, prerequisite in prerequisites.items():
        if prerequisite.status:
            click.secho(f"   ✓ {name} {ok}", fg="green")
        elif prerequisite.mandatory:
            click.secho(f"   ✗ {name} {missing}", fg="red")
            blocking.append(prerequisite)
        else:
            click.secho(f"   ⚠ {name} {missing} (optional)", fg="yellow")
    return blocking


def _check_environment(app: AppContext) -> None:
    """Print every prerequisite; raise on the first mandatory one missing."""
    _section("Environment check")
    blocking = _report(app.system.binary_prerequisites(), "is installed.", "is missing.")
    blocking += _report(app.system.service_prerequisites(), "is running.", "must be started.")
    if blocking:
        raise EnvironmentNotReady(blocking[0])


def _configure_section(content: str, section: str) -> str:
    settings = section_settings(content, section)
    if not settings:
        click.secho(
            f"⚠️  Type {section} has no configuration, maybe it is not supported yet "
            "or there's nothing to configure.",
            fg="yellow",
        )
        return content

    for key, value in settings:
        answer = click.prompt(key, default=value, show_default=True)
        if answer != "" and answer != value:
            content = set_env_value(content, key, answer)
    return content


def _prepare_docker_env(app: AppContext) -> None:
    environment = app.environment
    if environment.dist_env is None:
        raise EnvironmentException(
            "env.dist does not exist. Ensure emakinafr/docker-magento2 is present in dependencies."
        )
    if environment.php_dockerfile is None:
        raise EnvironmentException(
            "PHP Dockerfile does not exist. Ensure emakinafr/docker-magento2 is present in dependencies."
        )

    target = environment.local_env_path
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(environment.dist_env, target)
    content = target.read_text(encoding="utf-8")

    images = php_images(environment.php_dockerfile.read_text(encoding="utf-8"))
    if not images:
        raise EnvironmentException(f"No PHP image found in {environment.php_dockerfile}.")
    image = click.prompt(
        "Select the image you want to use",
        type=click.Choice(images),
        default=images[0],
    )
    content = set_env_value(content, "DOCKER_PHP_IMAGE", image)
    environment.php_image = image

    flavour = image_flavour(image)
    if flavour and click.confirm(f"Do you want to configure {flavour}?", default=True):
        content = _configure_section(content, flavour)

    if click.confirm("Do you want to configure MySQL?", default=True):
        content = _configure_section(content, "mysql")

    target.write_text(content, encoding="utf-8")
    environment.auto_locate()
    logger.info("Wrote %s with image %s", target, image)


def _choose_server_name(app: AppContext) -> str:
    nginx = app.environment.nginx_conf
    if nginx is None:
        raise EnvironmentException(
            "nginx.conf does not exist. Ensure emakinafr/docker-magento2 is present in dependencies."
        )
    content = nginx.read_text(encoding="utf-8")
    name = server_name(content)
    if click.confirm(f"The server name is currently {name}, do you want to change it?", default=False):
        name = click.prompt("Specify the server name", default=name)
        nginx.write_text(replace_server_name(content, name), encoding="utf-8")
    return name


def _setup_host(name: str) -> None:
    try:
        hosts = HOSTS_FILE.read_text(encoding="utf-8")
    except OSError as e:
        click.secho(f"⚠️  Cannot read {HOSTS_FILE}: {e}", fg="yellow")
        return

    if has_host(hosts, name):
        return
    if not click.confirm("It seems like this host is not in your hosts file yet, do you want to add it?", default=True):
        return
    try:
        HOSTS_FILE.write_text(add_host(hosts, name), encoding="utf-8")
    except OSError as e:
        click.secho(
            f"⚠️  Cannot write {HOSTS_FILE} ({e}). Add '127.0.0.1   {host_name(name)}' manually.",
            fg="yellow",
        )
        return
    click.echo("   Server added in your hosts file.")


def _prepare_environment(app: AppContext) -> str:
    _section("Configuring docker environment")
    if app.environment.dist_env is None:
        click.echo("   Creating docker local directory")
        app.installation.docker_local_install()

    configure = app.environment.local_env is None or click.confirm(
        "An existing docker .env file already exist, do you want to override it?",
        default=False,
    )
    if configure:
        _prepare_docker_env(app)

    name = _choose_server_name(app)
    _setup_host(name)
    return name


def _build(app: AppContext) -> None:
    _section("Building containers")
    try:
        app.installation.build()
    except ProcessFailure:
        click.echo()
        click.secho("   Ensure you're not using a deleted branch for package emakinafr/docker-magento2.", fg="yellow")
        click.secho(
            "   This issue may come from a missing package in the PHP dockerfile after a version upgrade.",
            fg="yellow",
        )
        raise


def _start(app: AppContext) -> None:
    _section("Starting environment")
    result = app.installation.start()
    if not result.timed_out:
        return

    # Containers are up, files are still syncing.
    app.installation.start_sync()
    click.echo("   Containers are up.")
    _section("File synchronization")
    synced = app.mutagen.monitor_until_synced(
        on_status=lambda statuses: click.echo(f"   {', '.join(statuses) or 'waiting…'}"),
        timeout=app.settings.timeouts.sync,
    )
    if not synced:
        raise ProcessException(
            "Something happened during the sync, check the situation with mutagen monitor."
        )


def _pick_dump(app: AppContext) -> Path | None:
    dumps = find_database_dumps(app.root)
    if not dumps:
        click.echo("   No compatible file found.")
        return None
    if len(dumps) > 1:
        choices = [str(d.relative_to(app.root)) for d in dumps]
        picked = click.prompt(
            "Multiple compatible files found, please select the correct one",
            type=click.Choice(choices),
        )
        return app.root / picked
    relative = dumps[0].relative_to(app.root)
    if click.confirm(f"{relative} is going to be imported, ok?", default=True):
        return dumps[0]
    return None


def _import_database(app: AppContext) -> bool:
    _section("Database")
    if click.confirm("Would you like to import a database?", default=True):
        dump = _pick_dump(app)
        if dump is not None:
            database = app.environment.database()
            if database:
                try:
                    app.installation.import_database(database, dump)
                    return True
                except MagedockError as e:
                    click.secho(f"❌ {e}", fg="red")
            else:
                click.echo(f"   No database found in {app.environment.local_env_path}.")
    click.echo("   If you want to import a database later, you can use the import command.")
    return False


def _update_urls(app: AppContext, name: str) -> bool:
    if not click.confirm("Do you want to update the urls?", default=True):
        return False
    database = app.environment.database()
    if not database:
        return False
    try:
        result = app.installation.update_urls(database, name)
    except MagedockError as e:
        click.secho(f"❌ {e}", fg="red")
        return False
    if not result.succeeded:
        click.secho(result.stdout.strip(), fg="red")
        click.secho(result.stderr.strip(), fg="red")
        return False
    return True


@click.command(cls=GatedCommand, catch_all=True)
@click.pass_context
def install(ctx: click.Context) -> None:
    """Install the Magento 2 project environment in the current directory."""
    app = get_app(ctx)

    _check_environment(app)

    _section("Installing dependencies")
    app.installation.composer_install()

    name = _prepare_environment(app)
    _build(app)
    _start(app)

    imported = _import_database(app)
    if imported:
        _update_urls(app, name)

    click.echo()
    click.secho("✅ Your environment has been successfully installed.", fg="green", bold=True)
    url = f"https://{host_name(name)}"
    if imported and app.environment.has_magento_env():
        click.secho(f"   Your project is ready, you can access it on {url}", fg="green")
        return

    if not app.environment.has_magento_env():
        click.secho(
            "⚠️  The file app/etc/env.php is missing. Install Magento or retrieve it from another project.",
            fg="yellow",
        )
    if not imported:
        click.secho("⚠️  No database has been imported, install Magento or import the database.", fg="yellow")
    click.secho(f"   Your project is almost ready, it will be available on {url}", fg="green")


# ── Lifecycle ───────────────────────────────────────────────────


@click.command(cls=GatedCommand, prerequisites=CommandPrerequisites(binary=[*DOCKER_BINARIES, "make"], service=["Docker"]))
@click.pass_context
def start(ctx: click.Context) -> None:
    """Start the environment."""
    _start(get_app(ctx))
    click.secho("✅ Environment started.", fg="green")


@click.command(cls=GatedCommand, prerequisites=CommandPrerequisites(binary=[*DOCKER_BINARIES, "make"], service=["Docker"]))
@click.pass_context
def stop(ctx: click.Context) -> None:
    """Stop the environment."""
    get_app(ctx).installation.stop()
    click.secho("✅ Environment stopped.", fg="green")


@click.command(cls=GatedCommand, prerequisites=CommandPrerequisites(binary=DOCKER_BINARIES))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show prerequisites and which containers are running."""
    app = get_app(ctx)
    prerequisites = [*app.system.binary_prerequisites().values(), *app.system.service_prerequisites().values()]
    containers = {name: app.compose.is_container_up(name) for name in app.settings.containers}

    if as_json:
        click.echo(json.dumps({
            "prerequisites": [p.model_dump(mode="json") for p in prerequisites],
            "containers": containers,
        }, indent=2))
        return

    click.secho("\n🧰 Prerequisites", fg="cyan", bold=True)
    for p in prerequisites:
        icon = "✓" if p.status else ("✗" if p.mandatory else "⚠")
        color = "green" if p.status else ("red" if p.mandatory else "yellow")
        click.secho(f"   {icon} {p.name} ({p.kind.value})", fg=color)

    click.secho("\n📦 Containers", fg="cyan", bold=True)
    for name, up in containers.items():
        icon = "🟢" if up else "🔴"
        click.echo(f"   {icon} {name:<20} {'running' if up else 'stopped'}")
    click.echo()


# ── Containers ──────────────────────────────────────────────────


@click.command(cls=GatedCommand, prerequisites=_RUNNING_ENV)
@click.argument("container", required=False)
@click.option("--user", "-u", default=None, help="User to log in as (default: the app user for the app container).")
@click.pass_context
def terminal(ctx: click.Context, container: str | None, user: str | None) -> None:
    """Open a shell in a container (default: the app container)."""
    app = get_app(ctx)
    container = container or app.settings.app_container
    if user is None:
        user = app.settings.app_user if container == app.settings.app_container else ""
    code = app.compose.open_terminal(container, user)
    ctx.exit(code)


@click.command(cls=GatedCommand, prerequisites=_RUNNING_ENV)
@click.argument("container")
@click.pass_context
def restart(ctx: click.Context, container: str) -> None:
    """Restart a container."""
    if not get_app(ctx).compose.restart_container(container):
        fail(f"The container {container} could not be restarted.")
    click.secho(f"✅ {container} restarted.", fg="green")


@click.command("import", cls=GatedCommand, prerequisites=_RUNNING_ENV)
@click.argument("dump", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--database", "-d", default=None, help="Target database (default: MYSQL_DATABASE from the docker .env).")
@click.pass_context
def import_database(ctx: click.Context, dump: Path, database: str | None) -> None:
    """Import a SQL dump (.sql, .sql.gz, .sql.zip) into the database container."""
    app = get_app(ctx)
    database = database or app.environment.database()
    if not database:
        fail(f"No database found in {app.environment.local_env_path}.")
        return
    app.installation.import_database(database, dump.resolve())
    click.secho(f"✅ {dump.name} imported into {database}.", fg="green")
