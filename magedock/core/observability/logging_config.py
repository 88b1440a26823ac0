"""
Logging configuration — set up once by the CLI entrypoint.

Every module logs through ``logging.getLogger(__name__)``; user-facing
output goes through click, so the console handler stays quiet unless a
verbosity flag or MAGEDOCK_LOG_LEVEL asks for more.

Level precedence:
    --debug  >  --verbose  >  --quiet  >  MAGEDOCK_LOG_LEVEL  >  WARNING

A log file (MAGEDOCK_LOG_FILE) always gets full detail, at
MAGEDOCK_LOG_FILE_LEVEL or the console level.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

ENV_LEVEL = "MAGEDOCK_LOG_LEVEL"
ENV_FILE = "MAGEDOCK_LOG_FILE"
ENV_FILE_LEVEL = "MAGEDOCK_LOG_FILE_LEVEL"

_CONSOLE_FORMATS = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Console level name from the CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    environ = os.environ if environ is None else environ
    return environ.get(ENV_LEVEL) or "WARNING"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root handlers with a stderr handler and an optional file.

    Args:
        level: Console level name; unknown names fall back to WARNING.
        log_file: Path of a log file to append to.
        log_file_level: Level of the file handler (default: ``level``).
    """
    console_level = _parse_level(level)
    fmt, datefmt = _console_format(console_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)
    logging.raiseExceptions = False


def setup_from_environment(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Configure logging from CLI flags and MAGEDOCK_* variables; return the console level."""
    environ = os.environ if environ is None else environ
    level = resolve_level(debug, verbose, quiet, environ)
    setup_logging(
        level=level,
        log_file=environ.get(ENV_FILE) or None,
        log_file_level=environ.get(ENV_FILE_LEVEL) or None,
    )
    return level


def _console_format(level: int) -> tuple[str, str | None]:
    for threshold in (logging.DEBUG, logging.INFO):
        if level <= threshold:
            return _CONSOLE_FORMATS[threshold]
    return "%(message)s", None


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value, WARNING when unknown."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
