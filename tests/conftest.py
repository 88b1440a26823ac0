"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from magedock.core.context import AppContext
from magedock.core.models.settings import Settings
from tests.fakes import ALL_SATISFIED, FakeRunner


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A Magento project with the docker-magento2 local files in place."""
    docker = tmp_path / "docker" / "local"
    (docker / "php").mkdir(parents=True)
    (docker / "docker-compose.yml").write_text("services: {}\n")
    (docker / ".env.dist").write_text(textwrap.dedent("""\
        DOCKER_PHP_IMAGE=magento2_php
        MYSQL_ROOT_PASSWORD=root
        MYSQL_DATABASE=magento
        MYSQL_USER=magento
        BLACKFIRE_CLIENT_ID=
    """))
    (docker / "php" / "Dockerfile").write_text(textwrap.dedent("""\
        FROM php:7.3-fpm-alpine as magento2_php
        RUN echo base
        FROM magento2_php as magento2_php_blackfire
        RUN echo blackfire
    """))
    (docker / "nginx.conf").write_text(textwrap.dedent("""\
        server {
            listen 443 ssl;
            server_name magento.localhost;
        }
    """))
    (tmp_path / "composer.json").write_text('{"name": "acme/shop", "require": {}}\n')
    return tmp_path


@pytest.fixture
def make_app(runner: FakeRunner):
    """Build an AppContext over *root* with the fake runner."""

    def _make(root: Path, system=ALL_SATISFIED, settings: Settings | None = None) -> AppContext:
        app = AppContext.build(root, settings or Settings(), runner=runner)
        app.system = system
        return app

    return _make
