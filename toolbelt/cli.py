"""Root command scaffolding, command options and the application runner."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Sequence
from typing import IO, Any, Optional

import click

from toolbelt import log
from toolbelt.option import Option, apply_options

UNVERSIONED = "unversioned"

_version = UNVERSIONED
_flag_debug = "debug"

_OPTION_VERSION_KEY = "option-version"
_OPTION_OUT_KEY = "option-out"
_OPTION_ERR_KEY = "option-err"
_OPTION_DEBUG_FLAG_KEY = "option-debug-flag"

_ParamFactory = Callable[[], click.Parameter]


class _RootGroup(click.Group):
    """A group with its own output streams and flags inherited by subcommands."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.version: Optional[str] = None
        self._out: Optional[IO[str]] = None
        self._err: Optional[IO[str]] = None
        self._persistent: list[_ParamFactory] = []

    @property
    def out(self) -> IO[str]:
        return self._out if self._out is not None else sys.stdout

    @property
    def err(self) -> IO[str]:
        return self._err if self._err is not None else sys.stderr

    def add_command(self, cmd: click.Command, name: Optional[str] = None) -> None:
        super().add_command(cmd, name)
        for factory in self._persistent:
            _attach(cmd, factory)


def _attach(cmd: click.Command, factory: _ParamFactory) -> None:
    cmd.params.append(factory())
    if isinstance(cmd, click.Group):
        for sub in cmd.commands.values():
            _attach(sub, factory)


def _root_of(ctx: Optional[click.Context]) -> Optional[_RootGroup]:
    if ctx is None:
        return None
    root = ctx.find_root().command
    return root if isinstance(root, _RootGroup) else None


def build_use(*args: str) -> str:
    """Join usage parts, trimming each one."""
    return "".join(arg.strip() + " " for arg in args).strip()


def multiple_actions(*args: Optional[Callable[..., Any]]) -> Callable[..., None]:
    """Combine callables into one that calls each non-None one in order."""

    def run(*call_args: Any, **call_kwargs: Any) -> None:
        for action in args:
            if action is not None:
                action(*call_args, **call_kwargs)

    return run


def default_version() -> str:
    return _version


class _VersionOption(Option):
    def __init__(self, version: str) -> None:
        self._version = version

    def key(self) -> str:
        return _OPTION_VERSION_KEY

    def apply(self, obj: click.Command) -> None:
        version = self._version
        obj.version = version

        def show(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
            if not value or ctx.resilient_parsing:
                return
            root = _root_of(ctx)
            out = root.out if root is not None else sys.stdout
            click.echo(f"{ctx.find_root().info_name} version {version}", file=out)
            ctx.exit()

        obj.params.append(
            click.Option(
                ["-v", "--version"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=show,
                help="version",
            )
        )


def with_default_version() -> Option:
    return _VersionOption(default_version())


def with_custom_version(version: Any) -> Option:
    return _VersionOption(str(version))


class _OutOption(Option):
    def __init__(self, stream: Optional[IO[str]]) -> None:
        self._stream = stream

    def key(self) -> str:
        return _OPTION_OUT_KEY

    def apply(self, obj: _RootGroup) -> None:
        obj._out = self._stream


class _ErrOption(Option):
    def __init__(self, stream: Optional[IO[str]]) -> None:
        self._stream = stream

    def key(self) -> str:
        return _OPTION_ERR_KEY

    def apply(self, obj: _RootGroup) -> None:
        obj._err = self._stream


def with_default_out() -> Option:
    """Write normal output to standard output."""
    return _OutOption(None)


def with_default_err() -> Option:
    """Write error output to standard output as well."""
    return _ErrOption(sys.stdout)


def _debug_callback(_ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if value:
        log.set_root_log_level(logging.DEBUG)


class _DebugFlagOption(Option):
    def __init__(self, name: str, persistent: bool) -> None:
        self._name = name
        self._persistent = persistent

    def key(self) -> str:
        return _OPTION_DEBUG_FLAG_KEY

    def _make_param(self) -> click.Parameter:
        return click.Option(
            [f"--{self._name}"],
            is_flag=True,
            default=False,
            expose_value=False,
            callback=_debug_callback,
            help="debug mode",
        )

    def apply(self, obj: click.Command) -> None:
        obj.params.append(self._make_param())
        if self._persistent and isinstance(obj, click.Group):
            if isinstance(obj, _RootGroup):
                obj._persistent.append(self._make_param)
            for sub in obj.commands.values():
                _attach(sub, self._make_param)


def with_default_flag_debug() -> Option:
    return with_flag_debug(_flag_debug, True)


def with_flag_debug(name: str, persistent: bool) -> Option:
    """Add a ``--<name>`` flag that switches logging to debug level."""
    global _flag_debug
    _flag_debug = name
    return _DebugFlagOption(name, persistent)


def init_default_cmd_root(short_name: str, *args: Option) -> click.Group:
    """Create a root command group, applying ``args`` and then the defaults."""
    group = _RootGroup(help=short_name, short_help=short_name)
    apply_options(
        group,
        args,
        {
            _OPTION_VERSION_KEY: with_default_version,
            _OPTION_OUT_KEY: with_default_out,
            _OPTION_ERR_KEY: with_default_err,
            _OPTION_DEBUG_FLAG_KEY: with_default_flag_debug,
        },
    )
    return group


def log_command(name: str, args: Sequence[str]) -> None:
    log.debug("execute command", log.attr_command(name, *args))


def fatal(message: Any) -> None:
    """Print ``message`` to the command's error stream and exit with status 1."""
    root = _root_of(click.get_current_context(silent=True))
    stream = root.err if root is not None else sys.stderr
    click.echo(str(message), file=stream)
    raise SystemExit(1)


def require_no_error(err: Optional[BaseException]) -> None:
    """Call :func:`fatal` when ``err`` is set."""
    if err is not None:
        fatal(err)


class App:
    """Runs a root command with console logging set up."""

    def __init__(self, cmd_root: click.Command) -> None:
        self._cmd_root = cmd_root
        out = cmd_root.out if isinstance(cmd_root, _RootGroup) else sys.stdout
        log.init_default_logger_with_console(out)

    def run(self, *args: str) -> int:
        """Run with ``args``, or the process arguments when none are given.

        Returns the exit status instead of exiting.
        """
        err = self._cmd_root.err if isinstance(self._cmd_root, _RootGroup) else sys.stderr
        try:
            self._cmd_root.main(args=list(args) if args else None, standalone_mode=False)
        except click.ClickException as exc:
            exc.show(file=err)
            return exc.exit_code
        except click.Abort:
            click.echo("Aborted!", file=err)
            return 1
        return 0