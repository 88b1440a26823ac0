"""
Environment configuration edits — docker .env, nginx.conf, /etc/hosts.

Pure text in, text out. The install command reads the files, asks the
user, and writes back what these helpers return.
"""

from __future__ import annotations

import re
from pathlib import Path

from magedock.core.exceptions import EnvironmentException

HOSTS_MARKER = "# Added by magedock"
DUMP_SUFFIXES = (".sql", ".sql.zip", ".sql.gz", ".sql.gzip")

_STAGE_RE = re.compile(r"^FROM .* as (\w+)", re.MULTILINE | re.IGNORECASE)
_SERVER_NAME_RE = re.compile(r"server_name (\S*);")


def php_images(dockerfile: str) -> list[str]:
    """Build stage names of the PHP Dockerfile, one per selectable image."""
    return _STAGE_RE.findall(dockerfile)


def image_flavour(image: str) -> str | None:
    """Extra service an image ships with, e.g. ``blackfire`` in ``php_7_3_blackfire``."""
    parts = image.split("_")
    if len(parts) > 2:
        return parts[-1]
    return None


def set_env_value(content: str, key: str, value: str) -> str:
    """Set ``KEY=value`` in a .env text, appending the line if the key is absent."""
    pattern = re.compile(rf"^({re.escape(key)}=)(\S*)", re.MULTILINE | re.IGNORECASE)
    if pattern.search(content):
        return pattern.sub(lambda m: f"{m.group(1)}{value}", content, count=1)
    if content and not content.endswith("\n"):
        content += "\n"
    return f"{content}{key}={value}\n"


def section_settings(content: str, section: str) -> list[tuple[str, str]]:
    """``(key, value)`` pairs whose key starts with *section*, case-insensitive."""
    pattern = re.compile(
        rf"^({re.escape(section)}\w+)=(\w*)", re.MULTILINE | re.IGNORECASE
    )
    return [(m.group(1), m.group(2)) for m in pattern.finditer(content)]


def server_name(nginx_conf: str) -> str:
    match = _SERVER_NAME_RE.search(nginx_conf)
    if match is None:
        raise EnvironmentException("No server_name found in the nginx configuration.")
    return match.group(1)


def replace_server_name(nginx_conf: str, name: str) -> str:
    return re.sub(
        r"(server_name )(\S+)",
        lambda m: f"{m.group(1)}{name};",
        nginx_conf,
        flags=re.IGNORECASE,
    )


def host_name(name: str) -> str:
    return name if name.startswith("www.") else f"www.{name}"


def has_host(hosts: str, name: str) -> bool:
    """Whether a hosts file text maps *name* on an active line."""
    wanted = host_name(name).lower()
    for line in hosts.splitlines():
        fields = line.split("#", 1)[0].split()
        if wanted in (alias.lower() for alias in fields[1:]):
            return True
    return False


def add_host(hosts: str, name: str) -> str:
    """Append a loopback entry for *name* to a hosts file text."""
    if hosts and not hosts.endswith("\n"):
        hosts += "\n"
    return f"{hosts}{HOSTS_MARKER}\n127.0.0.1   {host_name(name)}\n"


def find_database_dumps(root: Path) -> list[Path]:
    """SQL dumps at the project root or one directory below it."""
    found: set[Path] = set()
    for pattern in ("*", "*/*"):
        for path in root.glob(pattern):
            if path.is_file() and path.name.lower().endswith(DUMP_SUFFIXES):
                found.add(path)
    return sorted(found)
