"""Magento project scaffolding used by ``magedock create``."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from magedock.core.exceptions import ComposerException

logger = logging.getLogger(__name__)

COMMUNITY_PACKAGE = "magento/project-community-edition"
ENTERPRISE_PACKAGE = "magento/project-enterprise-edition"
MAGENTO_REPOSITORY = "https://repo.magento.com/"

DEV_REQUIREMENTS: dict[str, str] = {
    "bitexpert/phpstan-magento": "dev-master",
    "emakinafr/docker-magento2": "^3.0",
    "friendsofphp/php-cs-fixer": "3.0.x-dev",
    "roave/security-advisories": "dev-master",
    "sensiolabs/security-checker": "^5.0",
}

GITIGNORE = """\
/app/*
!/app/code/
!/app/design/
!/app/etc
!/app/etc/config.php
/dev/*
/dev/tools/*
/dev/tools/grunt/*
/dev/tools/grunt/configs/*
!/dev/tools
!/dev/tools/grunt
!/dev/tools/grunt/configs
!/dev/tools/grunt/configs/babel.*
!/dev/tools/grunt/configs/local-themes.js
!/dev/tools/grunt/configs/postcss.*
!/docker/local
/.github
/.htaccess
/.htaccess.sample
/.magento.env.yaml.dist
/.php_cs.cache
/.php_cs.dist
/.travis.yml
/.travis.yml.sample
/.user.ini
/app/design/*/Magento
/app/etc/*
/auth.json.sample
/backup.tar
/bin/.htaccess
/bin/magento
/CHANGELOG.md
/COPYING.txt
/docker/*
/docker/local/.env
/generated/
/grunt-config.json.sample
/Gruntfile.js.sample
/index.php
/lib/
/LICENSE*
/nginx.conf.sample
/node_modules
/package.json.sample
/php.ini.sample
/phpserver/
/pub/
/SECURITY.md
/setup/
/update/*
/var/
/vendor/
!/yarn.lock
/yarn-error.log
"""


def package_name(enterprise: bool = False, patch: str | None = None) -> str:
    """Composer package spec for ``create-project``, e.g. ``...-edition=2.3.3-p1``."""
    package = ENTERPRISE_PACKAGE if enterprise else COMMUNITY_PACKAGE
    if patch:
        package += f"={patch}"
    return package


def create_project_command(package: str) -> list[str]:
    return [
        "composer",
        "create-project",
        "--ignore-platform-reqs",
        f"--repository={MAGENTO_REPOSITORY}",
        package,
        ".",
    ]


def add_dev_requirements(
    composer_json: Path,
    requirements: dict[str, str] | None = None,
) -> dict:
    """Merge the development packages into composer.json's require-dev.

    Raises:
        ComposerException: composer.json is missing or not valid JSON.
    """
    try:
        data = json.loads(composer_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ComposerException(f"The composer.json cannot be read: {e}") from e
    if not isinstance(data, dict):
        raise ComposerException("The composer.json cannot be read: not an object.")

    require_dev = data.setdefault("require-dev", {})
    require_dev.update(requirements or DEV_REQUIREMENTS)
    composer_json.write_text(json.dumps(data, indent=4) + "\n", encoding="utf-8")
    logger.info("Added %d dev requirements to %s", len(requirements or DEV_REQUIREMENTS), composer_json)
    return data


def write_gitignore(root: Path) -> Path:
    path = root / ".gitignore"
    path.write_text(GITIGNORE, encoding="utf-8")
    return path


def scaffold_directories(root: Path) -> list[Path]:
    """Create app/code and keep the tracked app directories in git."""
    (root / "app" / "code").mkdir(parents=True, exist_ok=True)
    created = []
    for sub in ("code", "design", "etc"):
        directory = root / "app" / sub
        directory.mkdir(parents=True, exist_ok=True)
        keep = directory / ".gitkeep"
        keep.touch()
        created.append(keep)
    return created
