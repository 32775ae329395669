import io
import os
import sys
import types

import pytest

from toolbelt.execution import (
    Command,
    ExecuteCommandError,
    Executable,
    IncludePrevArgs,
    UnsupportedIncludePrevArgsError,
    with_args,
    with_args_include_previous,
    with_console_out,
    with_custom_in,
    with_custom_out,
    with_env,
    with_env_as_map,
    with_rerun,
    with_restore_args,
    with_restore_args_include_previous,
    with_restore_env,
)
from toolbelt.option import apply_options, apply_restore_options

PATH = "test_path"


@pytest.mark.parametrize(
    "args, option_args, want",
    [
        (["arg0"], [], [PATH]),
        (["arg0"], ["arg1"], [PATH, "arg1"]),
    ],
)
def test_with_args_simple(args, option_args, want):
    cmd = Command(PATH, [PATH, *args])
    apply_options(cmd, [with_args(*option_args)], None)
    assert cmd.path == PATH
    assert cmd.args == want


@pytest.mark.parametrize(
    "include, args, option_args, want",
    [
        (IncludePrevArgs.BEFORE, ["arg0"], [], [PATH, "arg0"]),
        (IncludePrevArgs.BEFORE, ["arg0"], ["arg1"], [PATH, "arg0", "arg1"]),
        (IncludePrevArgs.AFTER, ["arg0"], ["arg1"], [PATH, "arg1", "arg0"]),
    ],
)
def test_with_args_include_previous(include, args, option_args, want):
    cmd = Command(PATH, [PATH, *args])
    apply_options(cmd, [with_args_include_previous(include, *option_args)], None)
    assert cmd.path == PATH
    assert cmd.args == want


@pytest.mark.parametrize(
    "args, option_args, want",
    [
        (["arg0"], [], [PATH]),
        (["arg0"], ["arg1"], [PATH, "arg1"]),
    ],
)
def test_with_restore_args_simple(args, option_args, want):
    cmd = Command(PATH, [PATH, *args])
    seen = []
    apply_restore_options(cmd, [with_restore_args(*option_args)], lambda: seen.append(list(cmd.args)))
    assert seen == [want]
    assert cmd.path == PATH
    assert cmd.args == [PATH, *args]


@pytest.mark.parametrize(
    "include, args, option_args, want",
    [
        (IncludePrevArgs.NO, ["arg0"], [], [PATH]),
        (IncludePrevArgs.NO, ["arg0"], ["arg1"], [PATH, "arg1"]),
        (IncludePrevArgs.BEFORE, ["arg0"], [], [PATH, "arg0"]),
        (IncludePrevArgs.BEFORE, ["arg0"], ["arg1"], [PATH, "arg0", "arg1"]),
        (IncludePrevArgs.AFTER, ["arg0"], ["arg1"], [PATH, "arg1", "arg0"]),
    ],
)
def test_with_restore_args_include_previous(include, args, option_args, want):
    cmd = Command(PATH, [PATH, *args])
    seen = []
    apply_restore_options(
        cmd,
        [with_restore_args_include_previous(include, *option_args)],
        lambda: seen.append(list(cmd.args)),
    )
    assert seen == [want]
    assert cmd.path == PATH
    assert cmd.args == [PATH, *args]


def test_unsupported_include_prev_args():
    cmd = Command(PATH)
    with pytest.raises(UnsupportedIncludePrevArgsError) as info:
        apply_options(cmd, [with_args_include_previous(7, "x")], None)
    assert str(info.value) == "unsupported IncludePrevArgs: 7"


def test_command_defaults_args_to_path():
    assert Command(PATH).args == [PATH]


def test_env_options():
    cmd = Command(PATH)
    apply_options(cmd, [with_env_as_map({"A": "1"})], None)
    assert cmd.env == ["A=1"]

    other = Command(PATH)
    apply_options(other, [with_env(["B=2"])], None)
    assert other.env == ["B=2"]


def test_restore_env():
    cmd = Command(PATH, env=["OLD=1"])
    seen = []
    apply_restore_options(cmd, [with_restore_env(["NEW=2"])], lambda: seen.append(cmd.env))
    assert seen == [["NEW=2"]]
    assert cmd.env == ["OLD=1"]


def test_console_out():
    out, err = io.StringIO(), io.StringIO()
    cmd = Command(PATH)
    apply_options(cmd, [with_console_out(types.SimpleNamespace(out=out, err=err))], None)
    assert cmd.stdout is out
    assert cmd.stderr is err


def test_execute_writes_output():
    out, err = io.StringIO(), io.StringIO()
    exe = Executable(sys.executable, with_args("-c", "print('hello')"), with_custom_out(out, err))
    exe.execute()
    assert out.getvalue().strip() == "hello"


def test_execute_reads_input():
    out = io.StringIO()
    exe = Executable(
        sys.executable,
        with_args("-c", "import sys; print(sys.stdin.read().upper())"),
        with_custom_in(io.StringIO("hello")),
        with_custom_out(out, io.StringIO()),
    )
    exe.execute()
    assert out.getvalue().strip() == "HELLO"


def test_execute_uses_env():
    out = io.StringIO()
    exe = Executable(
        sys.executable,
        with_args("-c", "import os; print(os.environ['TOOLBELT_PROBE'])"),
        with_env_as_map({**os.environ, "TOOLBELT_PROBE": "probe"}),
        with_custom_out(out, io.StringIO()),
    )
    exe.execute()
    assert out.getvalue().strip() == "probe"


def test_execute_failure_carries_returncode():
    exe = Executable(
        sys.executable,
        with_args("-c", "import sys; sys.exit(3)"),
        with_custom_out(io.StringIO(), io.StringIO()),
    )
    with pytest.raises(ExecuteCommandError) as info:
        exe.execute()
    assert info.value.returncode == 3


def test_execute_twice_needs_rerun():
    out = io.StringIO()
    exe = Executable(sys.executable, with_args("-c", "print('x')"), with_custom_out(out, io.StringIO()))
    exe.execute(with_rerun())
    exe.execute(with_rerun())
    assert out.getvalue().split() == ["x", "x"]

    exe.execute()
    with pytest.raises(ExecuteCommandError):
        exe.execute()


def test_execute_restores_args():
    out = io.StringIO()
    exe = Executable(sys.executable, with_args("-c"), with_custom_out(out, io.StringIO()))
    before = list(exe.command.args)
    exe.execute(
        with_rerun(),
        with_restore_args_include_previous(IncludePrevArgs.BEFORE, "print('y')"),
    )
    assert out.getvalue().strip() == "y"
    assert exe.command.args == before


def test_missing_program_raises():
    exe = Executable("toolbelt-no-such-program-xyz", with_custom_out(io.StringIO(), io.StringIO()))
    with pytest.raises(ExecuteCommandError):
        exe.execute()