"""Package arguments and preconfigured ``go`` tool executables."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from toolbelt.execution import Executable, with_args, with_console_out
from toolbelt.option import Option

USE_ARG_PACKAGES = " [<packages>] "
USE_ARG_PATH = " [<path>] "

DEFAULT_PATH = "."
DEFAULT_PACKAGES = DEFAULT_PATH + "/..."

_GO = "go"


def arg_packages(default_packages: str, args: Sequence[str]) -> str:
    """Return the last argument, or ``default_packages`` when there is none."""
    if not args:
        return default_packages
    return args[-1]


def new_go_executable(*args: Option) -> Executable:
    """An executable for the ``go`` tool configured with ``args``."""
    return Executable(_GO, *args)


def _go_subcommand(subcommand: str, console: Any) -> Executable:
    return new_go_executable(with_args(subcommand), with_console_out(console))


def new_go_install(console: Any) -> Executable:
    return _go_subcommand("install", console)


def new_go_get(console: Any) -> Executable:
    return _go_subcommand("get", console)


def new_go_mod(console: Any) -> Executable:
    return _go_subcommand("mod", console)


def new_go_tool(console: Any) -> Executable:
    return _go_subcommand("tool", console)


def new_go_generate(console: Any) -> Executable:
    return _go_subcommand("generate", console)


def new_go_build(console: Any) -> Executable:
    return _go_subcommand("build", console)


def new_go_run(console: Any) -> Executable:
    return _go_subcommand("run", console)