"""
Settings model — how magedock talks to a project's Docker environment.

Loaded from an optional magedock.yml; every field has a default that
matches the docker-magento2 layout, so most projects need no file.
"""

from __future__ import annotations

import shlex

from pydantic import BaseModel, Field, field_validator


class Timeouts(BaseModel):
    """Install-time timeouts, in seconds."""

    composer_create: int = 900
    composer_update: int = 90
    composer_install: int = 900
    build: int = 1200
    start: int = 300
    database_import: int = 3600
    sync: int = 1800


class Settings(BaseModel):
    """Project-level settings for the environment commands."""

    compose_command: list[str] = Field(default_factory=lambda: ["docker-compose"])
    app_container: str = "php"
    app_user: str = "www-data:www-data"
    database_container: str = "mysql"
    docker_dir: str = "docker/local"
    containers: list[str] = Field(
        default_factory=lambda: ["php", "mysql", "nginx", "redis", "elasticsearch"]
    )
    timeouts: Timeouts = Field(default_factory=Timeouts)
    sync_start_command: list[str] = Field(
        default_factory=lambda: ["mutagen", "project", "start"]
    )

    @field_validator("compose_command", "sync_start_command", mode="before")
    @classmethod
    def _split_command(cls, value: object) -> object:
        # "docker compose" in YAML is accepted as well as a list
        if isinstance(value, str):
            return shlex.split(value)
        return value

    @field_validator("compose_command", "sync_start_command")
    @classmethod
    def _not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("command must not be empty")
        return value
