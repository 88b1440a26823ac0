"""
Project environment — locate the docker files of a Magento project.

The docker-magento2 package drops its files either in the project's
docker directory (after ``composer exec docker-local-install``) or
leaves them under vendor/. ``Environment`` finds them and derives the
variables every compose/docker invocation needs.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from magedock.core.exceptions import EnvironmentNotDefined
from magedock.core.models.settings import Settings

logger = logging.getLogger(__name__)

VENDOR_PACKAGE_DIR = "vendor/emakinafr/docker-magento2"
MAGENTO_ENV_FILE = "app/etc/env.php"


def read_env_values(env_path: Path) -> dict[str, str]:
    """Read raw key=value pairs from a .env file."""
    if not env_path.exists():
        return {}
    values: dict[str, str] = {}
    for line in env_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if (
            len(value) >= 2
            and value[0] == value[-1]
            and value[0] in ('"', "'")
        ):
            value = value[1:-1]
        values[key] = value
    return values


def compose_project_name(root: Path) -> str:
    """Compose project name derived from the directory name."""
    return re.sub(r"[^a-z0-9_-]", "", root.name.lower()) or "magento"


class Environment:
    """Paths of the docker files of the project rooted at *root*.

    Attributes are ``None`` until ``auto_locate`` finds the file.
    """

    def __init__(self, root: Path, settings: Settings | None = None):
        self.root = root
        self.settings = settings or Settings()
        self.dist_env: Path | None = None
        self.local_env: Path | None = None
        self.php_dockerfile: Path | None = None
        self.nginx_conf: Path | None = None
        self.compose_file: Path | None = None
        self.php_image: str | None = None
        self.auto_locate()

    @property
    def docker_dir(self) -> Path:
        return self.root / self.settings.docker_dir

    @property
    def local_env_path(self) -> Path:
        """Where the local .env lives, whether it exists yet or not."""
        return self.docker_dir / ".env"

    def _first(self, *candidates: str) -> Path | None:
        for candidate in candidates:
            path = self.root / candidate
            if path.is_file():
                return path
        return None

    def auto_locate(self) -> None:
        """Look up every known file again."""
        docker_dir = self.settings.docker_dir
        self.dist_env = self._first(
            f"{docker_dir}/.env.dist",
            f"{VENDOR_PACKAGE_DIR}/docker/local/.env.dist",
        )
        self.local_env = self._first(f"{docker_dir}/.env")
        self.php_dockerfile = self._first(
            f"{docker_dir}/php/Dockerfile",
            f"{VENDOR_PACKAGE_DIR}/docker/php/Dockerfile",
        )
        self.nginx_conf = self._first(
            f"{docker_dir}/nginx.conf",
            f"{docker_dir}/nginx/nginx.conf",
            f"{VENDOR_PACKAGE_DIR}/docker/local/nginx.conf",
        )
        self.compose_file = self._first(
            f"{docker_dir}/docker-compose.yml",
            f"{docker_dir}/docker-compose.yaml",
            "docker-compose.yml",
            "compose.yml",
        )
        logger.debug(
            "Located environment: dist_env=%s local_env=%s dockerfile=%s nginx=%s compose=%s",
            self.dist_env, self.local_env, self.php_dockerfile, self.nginx_conf, self.compose_file,
        )

    def env_values(self) -> dict[str, str]:
        if self.local_env is None:
            return {}
        return read_env_values(self.local_env)

    def docker_variables(self) -> dict[str, str]:
        """Variables injected into every docker/compose invocation.

        Raises:
            EnvironmentNotDefined: No compose file could be located.
        """
        if self.compose_file is None:
            raise EnvironmentNotDefined()
        variables = self.env_values()
        variables["COMPOSE_FILE"] = str(self.compose_file)
        variables.setdefault("COMPOSE_PROJECT_NAME", compose_project_name(self.root))
        return variables

    def database(self) -> str | None:
        """Database name configured in the local .env, if any."""
        return self.env_values().get("MYSQL_DATABASE") or None

    def has_magento_env(self) -> bool:
        return (self.root / MAGENTO_ENV_FILE).is_file()
