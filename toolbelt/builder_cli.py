"""The builder command: generate, lint and update a Go module."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import Any, Optional

import click

from toolbelt import cli
from toolbelt.builder_exec import (
    DEFAULT_PACKAGES,
    USE_ARG_PACKAGES,
    arg_packages,
    new_go_generate,
    new_go_get,
    new_go_mod,
)
from toolbelt.execution import (
    ExecuteCommandError,
    Executable,
    IncludePrevArgs,
    with_args,
    with_console_out,
    with_restore_args_include_previous,
)
from toolbelt.osutil import is_regular_file

_ROOT_NAME = "toolbelt-builder"
_EDITORCONFIG_CHECKER = "editorconfig-checker"
_LINTER = "go" "langci-lint"


def _console() -> Any:
    return click.get_current_context().find_root().command


def _packages(packages: Optional[str]) -> str:
    return arg_packages(DEFAULT_PACKAGES, [packages] if packages else [])


def _args(packages: Optional[str]) -> list[str]:
    return [packages] if packages else []


def _usage(name: str) -> str:
    return cli.build_use(name, USE_ARG_PACKAGES)


@click.command("generate", options_metavar=_usage("generate"))
@click.argument("packages", required=False)
def _generate(packages: Optional[str]) -> None:
    cli.log_command("generate", _args(packages))
    try:
        new_go_generate(_console()).execute(
            with_restore_args_include_previous(IncludePrevArgs.BEFORE, _packages(packages)),
        )
    except ExecuteCommandError as err:
        cli.fatal(err)


@click.command("lint", options_metavar=_usage("lint"))
@click.option(
    f"--skip-{_EDITORCONFIG_CHECKER}", "skip_checker", is_flag=True, default=False, help="skip editor config checker"
)
@click.option(f"--skip-{_LINTER}", "skip_linter", is_flag=True, default=False, help=f"skip {_LINTER}")
@click.argument("packages", required=False)
def _lint(skip_checker: bool, skip_linter: bool, packages: Optional[str]) -> None:
    cli.log_command("lint", _args(packages))
    console = _console()

    try:
        if not skip_checker and is_regular_file(".editorconfig"):
            Executable(_EDITORCONFIG_CHECKER, with_console_out(console)).execute()

        if not skip_linter:
            Executable(
                _LINTER,
                with_args("run", _packages(packages)),
                with_console_out(console),
            ).execute()
    except ExecuteCommandError as err:
        cli.fatal(err)


@click.command("update", short_help="update dependencies", options_metavar=_usage("update"))
@click.argument("packages", required=False)
def _update(packages: Optional[str]) -> None:
    """update dependencies"""
    cli.log_command("update", _args(packages))
    console = _console()
    try:
        new_go_mod(console).execute(
            with_restore_args_include_previous(IncludePrevArgs.BEFORE, "tidy"),
        )
        new_go_get(console).execute(
            with_restore_args_include_previous(
                IncludePrevArgs.BEFORE, "-t", "-v", "-u", _packages(packages)
            ),
        )
    except ExecuteCommandError as err:
        cli.fatal(err)


def create_app() -> cli.App:
    """Build the builder application with all of its commands."""
    cmd_root = cli.init_default_cmd_root(_ROOT_NAME)
    for command in (_update, _generate, _lint):
        cmd_root.add_command(command)
    return cli.App(cmd_root)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the builder; without ``argv`` the process arguments are used."""
    app = create_app()
    if argv:
        return app.run(*argv)
    return app.run()


if __name__ == "__main__":
    sys.exit(main())