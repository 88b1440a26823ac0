"""
Tests for Magento project scaffolding.
"""

import json
from pathlib import Path

import pytest

from magedock.core.exceptions import ComposerException
from magedock.core.services.magento_project import (
    COMMUNITY_PACKAGE,
    DEV_REQUIREMENTS,
    ENTERPRISE_PACKAGE,
    MAGENTO_REPOSITORY,
    add_dev_requirements,
    create_project_command,
    package_name,
    scaffold_directories,
    write_gitignore,
)


class TestPackageName:
    def test_community(self):
        assert package_name() == COMMUNITY_PACKAGE

    def test_enterprise_with_patch(self):
        assert package_name(enterprise=True, patch="2.3.3-p1") == f"{ENTERPRISE_PACKAGE}=2.3.3-p1"

    def test_create_project_command(self):
        argv = create_project_command(COMMUNITY_PACKAGE)
        assert argv[:2] == ["composer", "create-project"]
        assert f"--repository={MAGENTO_REPOSITORY}" in argv
        assert argv[-2:] == [COMMUNITY_PACKAGE, "."]


class TestAddDevRequirements:
    def test_merges_require_dev(self, tmp_path: Path):
        path = tmp_path / "composer.json"
        path.write_text(json.dumps({"name": "acme/shop", "require-dev": {"phpunit/phpunit": "^9"}}))
        add_dev_requirements(path)
        data = json.loads(path.read_text())
        assert data["require-dev"]["phpunit/phpunit"] == "^9"
        for package, version in DEV_REQUIREMENTS.items():
            assert data["require-dev"][package] == version
        assert path.read_text().startswith("{\n    ")

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ComposerException):
            add_dev_requirements(tmp_path / "composer.json")

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "composer.json"
        path.write_text("{nope")
        with pytest.raises(ComposerException):
            add_dev_requirements(path)


class TestScaffold:
    def test_gitignore(self, tmp_path: Path):
        path = write_gitignore(tmp_path)
        content = path.read_text()
        assert "/vendor/" in content
        assert "/docker/local/.env" in content

    def test_directories(self, tmp_path: Path):
        created = scaffold_directories(tmp_path)
        assert created == [tmp_path / "app" / sub / ".gitkeep" for sub in ("code", "design", "etc")]
        assert all(path.is_file() for path in created)

    def test_directories_idempotent(self, tmp_path: Path):
        scaffold_directories(tmp_path)
        assert len(scaffold_directories(tmp_path)) == 3
