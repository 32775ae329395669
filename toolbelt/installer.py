"""Installing tool dependencies described in a JSON document."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from toolbelt import log
from toolbelt.builder_exec import new_go_install
from toolbelt.execution import (
    ExecuteCommandError,
    IncludePrevArgs,
    with_rerun,
    with_restore_args_include_previous,
)
from toolbelt.option import Option, apply_options

_logger = logging.getLogger(__name__)

_OPTION_DEPENDENCIES_KEY = "dependencies"

VERSION_LATEST = "latest"


@dataclass(frozen=True)
class ModuleVersion:
    """A module path with an optional version."""

    path: str = ""
    version: str = ""

    def __str__(self) -> str:
        if not self.version:
            return self.path
        return f"{self.path}@{self.version}"


@dataclass(frozen=True)
class GithubDependency:
    owner: str = ""
    repo: str = ""
    version: str = ""


@dataclass
class Dependencies:
    go_dependencies: dict[str, ModuleVersion] = field(default_factory=dict)
    github_dependencies: dict[str, GithubDependency] = field(default_factory=dict)


def _field(obj: dict[str, Any], name: str) -> Any:
    if name in obj:
        return obj[name]
    lowered = name.lower()
    for key, value in obj.items():
        if key.lower() == lowered:
            return value
    return None


def _object(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"cannot read {what}: expected a JSON object")
    return value


def _string(value: Any, what: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"cannot read {what}: expected a string")
    return value


def parse_dependencies(data: Union[bytes, str]) -> Dependencies:
    """Parse the ``go_install`` and ``github_install`` sections of a JSON document."""
    document = _object(json.loads(data), "dependencies")

    go_deps = {}
    for name, raw in _object(_field(document, "go_install"), "go_install").items():
        entry = _object(raw, name)
        go_deps[name] = ModuleVersion(
            path=_string(_field(entry, "Path"), f"{name}.Path"),
            version=_string(_field(entry, "Version"), f"{name}.Version"),
        )

    github_deps = {}
    for name, raw in _object(_field(document, "github_install"), "github_install").items():
        entry = _object(raw, name)
        github_deps[name] = GithubDependency(
            owner=_string(_field(entry, "owner"), f"{name}.owner"),
            repo=_string(_field(entry, "repo"), f"{name}.repo"),
            version=_string(_field(entry, "version"), f"{name}.version"),
        )

    return Dependencies(go_dependencies=go_deps, github_dependencies=github_deps)


class _DependenciesOption(Option):
    def __init__(self, file_path: str = "", data: Union[bytes, str] = b"") -> None:
        self._file_path = file_path
        self._data = data

    def key(self) -> str:
        return _OPTION_DEPENDENCIES_KEY

    def apply(self, obj: "Installer") -> None:
        data = self._data
        if self._file_path:
            _logger.debug("using dependencies file: %s", self._file_path)
            data = Path(self._file_path).read_bytes()

        obj.dependencies = parse_dependencies(data) if data else Dependencies()


def with_json_data(data: Union[bytes, str]) -> Option:
    """Read dependencies from a JSON document."""
    return _DependenciesOption(data=data)


def with_file(file_path: str) -> Option:
    """Read dependencies from a JSON file."""
    return _DependenciesOption(file_path=str(file_path))


class Installer:
    """Installs the dependencies it was configured with."""

    def __init__(self, console: Any, *args: Option) -> None:
        self.console = console
        self.dependencies = Dependencies()
        apply_options(self, args, None)

    def install(self) -> None:
        self._install_go()

    def _install_go(self) -> None:
        go_install = new_go_install(self.console)

        for name, dependency in self.dependencies.go_dependencies.items():
            _logger.info("install Go dependency: %s [%s]", name, dependency.version)
            try:
                go_install.execute(
                    with_rerun(),
                    with_restore_args_include_previous(IncludePrevArgs.BEFORE, str(dependency)),
                )
            except ExecuteCommandError as err:
                _logger.error("fail install dependency: %s %s", name, log.attr_error(err))