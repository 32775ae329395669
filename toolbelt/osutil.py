"""Environment, PATH and filesystem helpers."""

from __future__ import annotations

import logging
import os
import stat
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path

DEFAULT_DIR_MODE = 0o755
DEFAULT_FILE_MODE = 0o644

_DOCKERENV = "/.dockerenv"

_logger = logging.getLogger(__name__)


def clean_path(path: str, *clean_paths: str) -> str:
    """Remove every entry equal to one of ``clean_paths`` from a PATH-like string."""
    _logger.debug("path: %s", path)
    _logger.debug("cleaning env path: %s", list(clean_paths))

    if not clean_paths:
        result = path
    else:
        removed = set(clean_paths)
        result = os.pathsep.join(p for p in path.split(os.pathsep) if p not in removed)

    _logger.debug("clean path: %s", result)
    return result


def add_before_path(path: str, *paths: str) -> str:
    """Prepend ``paths`` to a PATH-like string."""
    if not paths:
        return path
    return os.pathsep.join([*paths, path])


def env_map_to_list(env_map: Mapping[str, str]) -> list[str]:
    """Turn a mapping into ``KEY=VALUE`` strings."""
    return [f"{k}={v}" for k, v in env_map.items()]


def merge_env_as_map(env: Iterable[str], additional: Mapping[str, str]) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into a dict and overlay ``additional``."""
    result: dict[str, str] = {}
    for entry in env:
        key, sep, value = entry.partition("=")
        if not sep:
            raise ValueError(f"environment entry without '=': {entry!r}")
        result[key] = value
    result.update(additional)
    return result


def is_regular_file(path: str | os.PathLike[str]) -> bool:
    """Return True if ``path`` exists and is a regular file."""
    try:
        info = os.stat(path)
    except OSError as err:
        _logger.debug("fail get file info error=%s", err)
        return False
    return stat.S_ISREG(info.st_mode)


def pwd() -> str:
    return os.getcwd()


def user_home_dir() -> str:
    return str(Path.home())


def executable_dir() -> str:
    """Directory holding the program that is currently running."""
    program = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    return os.path.dirname(os.path.realpath(program))


def is_running_in_docker_container() -> bool:
    """Guess whether the process runs inside a container."""
    if os.environ.get("KUBERNETES_PORT"):
        return True
    return os.path.exists(_DOCKERENV)