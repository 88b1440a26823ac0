"""
Tests for the .env, nginx.conf and hosts text edits.
"""

from pathlib import Path

import pytest

from magedock.core.exceptions import EnvironmentException
from magedock.core.services.env_config import (
    HOSTS_MARKER,
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

DOCKERFILE = """\
FROM php:7.3-fpm-alpine as magento2_php
RUN echo base
FROM magento2_php AS magento2_php_blackfire
RUN echo blackfire
FROM magento2_php as magento2_php_xdebug
"""

ENV = """\
DOCKER_PHP_IMAGE=magento2_php
MYSQL_ROOT_PASSWORD=root
MYSQL_DATABASE=magento
BLACKFIRE_CLIENT_ID=
BLACKFIRE_CLIENT_TOKEN=
"""


class TestPhpImages:
    def test_stage_names(self):
        assert php_images(DOCKERFILE) == [
            "magento2_php",
            "magento2_php_blackfire",
            "magento2_php_xdebug",
        ]

    def test_no_stages(self):
        assert php_images("FROM php:7.3\n") == []


class TestImageFlavour:
    @pytest.mark.parametrize("image,flavour", [
        ("magento2_php", None),
        ("magento2_php_blackfire", "blackfire"),
        ("php", None),
    ])
    def test_flavour(self, image, flavour):
        assert image_flavour(image) == flavour


class TestSetEnvValue:
    def test_replaces_existing(self):
        updated = set_env_value(ENV, "DOCKER_PHP_IMAGE", "magento2_php_blackfire")
        assert "DOCKER_PHP_IMAGE=magento2_php_blackfire\n" in updated
        assert updated.count("DOCKER_PHP_IMAGE") == 1

    def test_replaces_empty_value(self):
        updated = set_env_value(ENV, "BLACKFIRE_CLIENT_ID", "abc")
        assert "BLACKFIRE_CLIENT_ID=abc\n" in updated
        assert "BLACKFIRE_CLIENT_TOKEN=\n" in updated

    def test_appends_missing(self):
        updated = set_env_value("A=1", "B", "2")
        assert updated == "A=1\nB=2\n"


class TestSectionSettings:
    def test_blackfire(self):
        assert section_settings(ENV, "blackfire") == [
            ("BLACKFIRE_CLIENT_ID", ""),
            ("BLACKFIRE_CLIENT_TOKEN", ""),
        ]

    def test_mysql(self):
        keys = [key for key, _ in section_settings(ENV, "MYSQL_")]
        assert keys == ["MYSQL_ROOT_PASSWORD", "MYSQL_DATABASE"]


class TestServerName:
    def test_read(self):
        assert server_name("server {\n    server_name magento.localhost;\n}\n") == "magento.localhost"

    def test_missing(self):
        with pytest.raises(EnvironmentException):
            server_name("server { listen 80; }")

    def test_replace(self):
        conf = "server {\n    server_name magento.localhost;\n}\n"
        assert "server_name shop.test;" in replace_server_name(conf, "shop.test")
        assert "magento.localhost" not in replace_server_name(conf, "shop.test")


class TestHosts:
    def test_host_name(self):
        assert host_name("shop.test") == "www.shop.test"
        assert host_name("www.shop.test") == "www.shop.test"

    def test_has_host(self):
        hosts = "127.0.0.1 localhost\n127.0.0.1   www.shop.test\n"
        assert has_host(hosts, "shop.test")
        assert not has_host(hosts, "other.test")

    def test_has_host_needs_whole_name(self):
        assert not has_host("127.0.0.1   www.shop.test.local\n", "shop.test")
        assert not has_host("127.0.0.1   www.myshop.test\n", "shop.test")

    def test_has_host_ignores_comments(self):
        hosts = "# 127.0.0.1 www.shop.test\n127.0.0.1 localhost # www.shop.test\n"
        assert not has_host(hosts, "shop.test")

    def test_has_host_among_aliases(self):
        assert has_host("127.0.0.1\tlocalhost WWW.Shop.Test\n", "shop.test")

    def test_add_host(self):
        updated = add_host("127.0.0.1 localhost", "shop.test")
        assert updated == f"127.0.0.1 localhost\n{HOSTS_MARKER}\n127.0.0.1   www.shop.test\n"
        assert has_host(updated, "shop.test")


class TestFindDatabaseDumps:
    def test_root_and_one_level(self, tmp_path: Path):
        (tmp_path / "dump.sql").write_text("")
        (tmp_path / "backups").mkdir()
        (tmp_path / "backups" / "prod.sql.gz").write_bytes(b"")
        (tmp_path / "backups" / "deep").mkdir()
        (tmp_path / "backups" / "deep" / "old.sql").write_text("")
        (tmp_path / "notes.txt").write_text("")
        assert find_database_dumps(tmp_path) == [
            tmp_path / "backups" / "prod.sql.gz",
            tmp_path / "dump.sql",
        ]

    def test_none(self, tmp_path: Path):
        assert find_database_dumps(tmp_path) == []
