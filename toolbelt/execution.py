"""Running external programs configured through keyed options."""

from __future__ import annotations

import enum
import io
import logging
import shutil
import subprocess
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import IO, Any, Optional, Union

from toolbelt import log
from toolbelt.option import Option, RestoreOption, apply_options, apply_restore_options
from toolbelt.osutil import env_map_to_list, merge_env_as_map

_logger = logging.getLogger(__name__)

_OPTION_ARGS_KEY = "option-args"
_OPTION_ENV_KEY = "option-env"
_OPTION_IN_KEY = "option-in"
_OPTION_OUT_KEY = "option-out"
_OPTION_RERUN_KEY = "option-rerun"

_MSG_EXECUTE_FAILED = "execute command failed"


class IncludePrevArgs(enum.IntEnum):
    """Where the command's current arguments go relative to new ones."""

    NO = 0
    BEFORE = 1
    AFTER = 2


class UnsupportedIncludePrevArgsError(ValueError):
    """Raised for an include-previous-arguments mode that is not known."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"unsupported IncludePrevArgs: {int(value)}")
        self.value = value


class ExecuteCommandError(Exception):
    """Raised when an external program cannot be run or fails."""

    def __init__(self, detail: str = "", returncode: Optional[int] = None) -> None:
        message = f"{_MSG_EXECUTE_FAILED}: {detail}" if detail else _MSG_EXECUTE_FAILED
        super().__init__(message)
        self.detail = detail
        self.returncode = returncode


@dataclass
class Command:
    """A program to run: its path, full argument vector, environment and streams.

    ``args`` holds the whole argument vector, program name first; when left
    empty it becomes ``[path]``.
    """

    path: str
    args: list[str] = field(default_factory=list)
    env: Optional[list[str]] = None
    stdin: Optional[IO[Any]] = None
    stdout: Optional[IO[Any]] = None
    stderr: Optional[IO[Any]] = None
    process_state: Optional[subprocess.CompletedProcess] = None

    def __post_init__(self) -> None:
        if not self.args:
            self.args = [self.path]


class _ArgsOption(RestoreOption):
    def __init__(self, include_prev_args: Union[IncludePrevArgs, int], args: tuple[str, ...], restore: bool) -> None:
        self._include_prev_args = include_prev_args
        self._args = list(args)
        self._restore = restore
        self._prev: Optional[list[str]] = None

    def key(self) -> str:
        return _OPTION_ARGS_KEY

    def apply(self, obj: Command) -> None:
        try:
            mode = IncludePrevArgs(self._include_prev_args)
        except ValueError:
            raise UnsupportedIncludePrevArgsError(self._include_prev_args) from None

        if mode is IncludePrevArgs.NO:
            obj.args = [obj.path, *self._args]
        elif mode is IncludePrevArgs.BEFORE:
            obj.args = [*obj.args, *self._args]
        else:
            obj.args = [obj.path, *self._args, *obj.args[1:]]

        log.debug("applied args", log.attr_slice_with_separator("args", " ", obj.args))

    def save(self, obj: Command) -> None:
        if self._restore:
            self._prev = obj.args

    def restore(self, obj: Command) -> None:
        if self._restore:
            obj.args = self._prev if self._prev is not None else [obj.path]


def with_args(*args: str) -> Option:
    """Replace the command's arguments."""
    return _ArgsOption(IncludePrevArgs.NO, args, restore=False)


def with_args_include_previous(include_prev_args: Union[IncludePrevArgs, int], *args: str) -> Option:
    """Add arguments, keeping the current ones before or after them."""
    return _ArgsOption(include_prev_args, args, restore=False)


def with_restore_args(*args: str) -> RestoreOption:
    """Replace the arguments for one run, then put the old ones back."""
    return _ArgsOption(IncludePrevArgs.NO, args, restore=True)


def with_restore_args_include_previous(include_prev_args: Union[IncludePrevArgs, int], *args: str) -> RestoreOption:
    """Add arguments for one run, then put the old ones back."""
    return _ArgsOption(include_prev_args, args, restore=True)


class _EnvOption(RestoreOption):
    def __init__(self, env: list[str], restore: bool) -> None:
        self._env = list(env)
        self._restore = restore
        self._prev: Optional[list[str]] = None

    def key(self) -> str:
        return _OPTION_ENV_KEY

    def apply(self, obj: Command) -> None:
        obj.env = list(self._env)

    def save(self, obj: Command) -> None:
        if self._restore:
            self._prev = obj.env

    def restore(self, obj: Command) -> None:
        if self._restore:
            obj.env = self._prev


def with_env(env: list[str]) -> Option:
    """Run with exactly these ``KEY=VALUE`` environment entries."""
    return _EnvOption(env, restore=False)


def with_env_as_map(env: Mapping[str, str]) -> Option:
    """Run with exactly this environment, given as a mapping."""
    return _EnvOption(env_map_to_list(env), restore=False)


def with_restore_env(env: list[str]) -> RestoreOption:
    """Use this environment for one run, then put the old one back."""
    return _EnvOption(env, restore=True)


class _InOption(Option):
    def __init__(self, stream: Optional[IO[Any]]) -> None:
        self._stream = stream

    def key(self) -> str:
        return _OPTION_IN_KEY

    def apply(self, obj: Command) -> None:
        obj.stdin = self._stream


def with_custom_in(stream: Optional[IO[Any]]) -> Option:
    return _InOption(stream)


def with_std_in() -> Option:
    return _InOption(sys.stdin)


class _OutOption(Option):
    def __init__(self, out: Optional[IO[Any]], err: Optional[IO[Any]]) -> None:
        self._out = out
        self._err = err

    def key(self) -> str:
        return _OPTION_OUT_KEY

    def apply(self, obj: Command) -> None:
        obj.stdout = self._out
        obj.stderr = self._err


def with_custom_out(out: Optional[IO[Any]], err: Optional[IO[Any]]) -> Option:
    return _OutOption(out, err)


def with_std_out() -> Option:
    return _OutOption(sys.stdout, sys.stderr)


def with_console_out(console: Any) -> Option:
    """Send output to ``console.out`` and ``console.err``, or the standard streams."""
    out = getattr(console, "out", None) or sys.stdout
    err = getattr(console, "err", None) or sys.stderr
    return _OutOption(out, err)


class _RerunOption(RestoreOption):
    def key(self) -> str:
        return _OPTION_RERUN_KEY

    def apply(self, obj: Command) -> None:
        return None

    def save(self, obj: Command) -> None:
        return None

    def restore(self, obj: Command) -> None:
        obj.process_state = None


def with_rerun() -> RestoreOption:
    """Allow the command to be run again after this run."""
    return _RerunOption()


def _fileno(stream: Any) -> Optional[int]:
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _output_target(stream: Optional[IO[Any]]) -> Any:
    if stream is None:
        return subprocess.DEVNULL
    fd = _fileno(stream)
    if fd is None:
        return subprocess.PIPE
    flush = getattr(stream, "flush", None)
    if flush is not None:
        flush()
    return fd


def _write_captured(stream: Optional[IO[Any]], data: Optional[bytes]) -> None:
    if stream is None or not data:
        return
    try:
        stream.write(data)
    except TypeError:
        stream.write(data.decode(errors="replace"))


def _run(cmd: Command) -> None:
    if cmd.process_state is not None:
        raise ExecuteCommandError("exec: already started")

    log.debug("execute external program", log.attr_command(cmd.path, *cmd.args[1:]))

    stdin_arg: Any = subprocess.DEVNULL
    input_data: Optional[bytes] = None
    if cmd.stdin is not None:
        fd = _fileno(cmd.stdin)
        if fd is not None:
            stdin_arg = fd
        else:
            data = cmd.stdin.read()
            input_data = data.encode() if isinstance(data, str) else data
            stdin_arg = None

    stdout_arg = _output_target(cmd.stdout)
    stderr_arg = _output_target(cmd.stderr)
    env = merge_env_as_map(cmd.env, {}) if cmd.env is not None else None

    try:
        result = subprocess.run(
            cmd.args,
            executable=cmd.path,
            stdin=stdin_arg,
            input=input_data,
            stdout=stdout_arg,
            stderr=stderr_arg,
            env=env,
            check=False,
        )
    except OSError as err:
        raise ExecuteCommandError(str(err)) from err

    cmd.process_state = result
    if stdout_arg == subprocess.PIPE:
        _write_captured(cmd.stdout, result.stdout)
    if stderr_arg == subprocess.PIPE:
        _write_captured(cmd.stderr, result.stderr)

    if result.returncode != 0:
        raise ExecuteCommandError(f"exit status {result.returncode}", returncode=result.returncode)


class Executable:
    """An external program with its standing configuration."""

    def __init__(self, cli: str, *args: Option) -> None:
        self._command = Command(shutil.which(cli) or cli, [cli])
        apply_options(
            self._command,
            args,
            {_OPTION_IN_KEY: with_std_in, _OPTION_OUT_KEY: with_std_out},
        )

    @property
    def command(self) -> Command:
        return self._command

    def execute(self, *args: RestoreOption) -> None:
        """Run the program with per-run options; raise ExecuteCommandError on failure."""
        apply_restore_options(self._command, args, lambda: _run(self._command))