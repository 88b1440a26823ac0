"""
Tests for locating a project's docker files.
"""

from pathlib import Path

import pytest

from magedock.core.exceptions import EnvironmentNotDefined
from magedock.core.models.settings import Settings
from magedock.core.services.environment import (
    VENDOR_PACKAGE_DIR,
    Environment,
    compose_project_name,
    read_env_values,
)


class TestReadEnvValues:
    def test_parses_pairs(self, tmp_path: Path):
        env = tmp_path / ".env"
        env.write_text(
            "# comment\n"
            "\n"
            "MYSQL_DATABASE=magento\n"
            "MYSQL_PASSWORD=\"sec ret\"\n"
            "EMPTY=\n"
            "not a pair\n"
        )
        assert read_env_values(env) == {
            "MYSQL_DATABASE": "magento",
            "MYSQL_PASSWORD": "sec ret",
            "EMPTY": "",
        }

    def test_missing_file(self, tmp_path: Path):
        assert read_env_values(tmp_path / ".env") == {}


class TestComposeProjectName:
    def test_normalised(self):
        assert compose_project_name(Path("/work/My.Shop")) == "myshop"

    def test_fallback(self):
        assert compose_project_name(Path("/work/...")) == "magento"


class TestLocate:
    def test_docker_dir_files(self, project: Path):
        env = Environment(project)
        docker = project / "docker" / "local"
        assert env.dist_env == docker / ".env.dist"
        assert env.php_dockerfile == docker / "php" / "Dockerfile"
        assert env.nginx_conf == docker / "nginx.conf"
        assert env.compose_file == docker / "docker-compose.yml"
        assert env.local_env is None
        assert env.local_env_path == docker / ".env"

    def test_empty_project(self, tmp_path: Path):
        env = Environment(tmp_path)
        assert env.dist_env is None
        assert env.compose_file is None

    def test_vendor_fallback(self, tmp_path: Path):
        vendor = tmp_path / VENDOR_PACKAGE_DIR / "docker"
        (vendor / "local").mkdir(parents=True)
        (vendor / "php").mkdir()
        (vendor / "local" / ".env.dist").write_text("A=1\n")
        (vendor / "php" / "Dockerfile").write_text("FROM php as magento2_php\n")
        env = Environment(tmp_path)
        assert env.dist_env == vendor / "local" / ".env.dist"
        assert env.php_dockerfile == vendor / "php" / "Dockerfile"

    def test_auto_locate_picks_up_new_files(self, project: Path):
        env = Environment(project)
        env.local_env_path.write_text("MYSQL_DATABASE=shop\n")
        assert env.local_env is None
        env.auto_locate()
        assert env.local_env == env.local_env_path

    def test_custom_docker_dir(self, tmp_path: Path):
        (tmp_path / "ops").mkdir()
        (tmp_path / "ops" / "docker-compose.yml").write_text("services: {}\n")
        env = Environment(tmp_path, Settings(docker_dir="ops"))
        assert env.compose_file == tmp_path / "ops" / "docker-compose.yml"


class TestDockerVariables:
    def test_requires_compose_file(self, tmp_path: Path):
        with pytest.raises(EnvironmentNotDefined):
            Environment(tmp_path).docker_variables()

    def test_compose_variables(self, project: Path):
        variables = Environment(project).docker_variables()
        assert variables["COMPOSE_FILE"] == str(project / "docker" / "local" / "docker-compose.yml")
        assert variables["COMPOSE_PROJECT_NAME"] == compose_project_name(project)

    def test_local_env_values_included(self, project: Path):
        env = Environment(project)
        env.local_env_path.write_text("MYSQL_DATABASE=shop\nCOMPOSE_PROJECT_NAME=acme\n")
        env.auto_locate()
        variables = env.docker_variables()
        assert variables["MYSQL_DATABASE"] == "shop"
        assert variables["COMPOSE_PROJECT_NAME"] == "acme"


class TestDatabase:
    def test_from_local_env(self, project: Path):
        env = Environment(project)
        env.local_env_path.write_text("MYSQL_DATABASE=shop\n")
        env.auto_locate()
        assert env.database() == "shop"

    def test_none_without_local_env(self, project: Path):
        assert Environment(project).database() is None

    def test_has_magento_env(self, project: Path):
        env = Environment(project)
        assert env.has_magento_env() is False
        (project / "app" / "etc").mkdir(parents=True)
        (project / "app" / "etc" / "env.php").write_text("<?php return [];\n")
        assert env.has_magento_env() is True
