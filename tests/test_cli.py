import logging

import click
import pytest
from click.testing import CliRunner

from toolbelt import log
from toolbelt.cli import (
    App,
    build_use,
    default_version,
    fatal,
    init_default_cmd_root,
    log_command,
    multiple_actions,
    require_no_error,
    with_custom_version,
    with_default_out,
    with_flag_debug,
)
from toolbelt.option import OptionAlreadyAppliedError


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    log.set_root_log_level(logging.INFO)
    with_flag_debug("debug", True)


@pytest.mark.parametrize(
    "args, want",
    [
        (["test"], "test"),
        (["test", "test1"], "test test1"),
        (["test ", "test1"], "test test1"),
        ([" test", "test1"], "test test1"),
        (["test ", " test1"], "test test1"),
    ],
)
def test_build_use(args, want):
    assert build_use(*args) == want


def test_multiple_actions_calls_in_order_skipping_none():
    calls = []
    action = multiple_actions(lambda *a: calls.append(("first", a)), None, lambda *a: calls.append(("second", a)))
    action("cmd", ["x"])
    assert calls == [("first", ("cmd", ["x"])), ("second", ("cmd", ["x"]))]


def test_default_version():
    assert default_version() == "unversioned"


def test_version_flag_default():
    group = init_default_cmd_root("short")
    result = CliRunner().invoke(group, ["--version"], prog_name="tool")
    assert result.exit_code == 0
    assert result.output.strip() == "tool version unversioned"


def test_version_flag_custom():
    group = init_default_cmd_root("short", with_custom_version("1.2.3"))
    result = CliRunner().invoke(group, ["--version"], prog_name="tool")
    assert result.output.strip() == "tool version 1.2.3"


def test_duplicate_option_rejected():
    with pytest.raises(OptionAlreadyAppliedError):
        init_default_cmd_root("short", with_default_out(), with_default_out())


def test_persistent_debug_flag_on_subcommand():
    group = init_default_cmd_root("short")
    ran = []

    @group.command("sub")
    def sub():
        ran.append(True)

    result = CliRunner().invoke(group, ["sub", "--debug"], prog_name="tool")
    assert result.exit_code == 0
    assert ran == [True]
    assert logging.getLogger().level == logging.DEBUG


def test_non_persistent_debug_flag():
    group = init_default_cmd_root("short", with_flag_debug("verbose", False))

    @group.command("sub")
    def sub():
        pass

    runner = CliRunner()
    assert runner.invoke(group, ["sub", "--verbose"], prog_name="tool").exit_code == 2
    assert runner.invoke(group, ["--verbose", "sub"], prog_name="tool").exit_code == 0
    assert logging.getLogger().level == logging.DEBUG


def test_log_command(caplog):
    caplog.set_level(logging.DEBUG)
    log_command("build", ["a", "b"])
    assert "execute command" in caplog.text
    assert "cmd=build" in caplog.text
    assert "args=a b" in caplog.text


def test_fatal_exits_with_one(capsys):
    with pytest.raises(SystemExit) as info:
        fatal("boom")
    assert info.value.code == 1
    assert "boom" in capsys.readouterr().err


def test_require_no_error_with_error(capsys):
    with pytest.raises(SystemExit) as info:
        require_no_error(ValueError("bad thing"))
    assert info.value.code == 1
    assert "bad thing" in capsys.readouterr().err


def test_require_no_error_inside_command_uses_root_err():
    group = init_default_cmd_root("short")

    @group.command("sub")
    def sub():
        require_no_error(RuntimeError("broken"))

    result = CliRunner().invoke(group, ["sub"], prog_name="tool")
    assert result.exit_code == 1
    assert "broken" in result.output


def test_app_runs_subcommand():
    group = init_default_cmd_root("short")
    ran = []

    @group.command("hello")
    @click.argument("name")
    def hello(name):
        ran.append(name)

    app = App(group)
    assert app.run("hello", "world") == 0
    assert ran == ["world"]


def test_app_unknown_command():
    group = init_default_cmd_root("short")

    @group.command("hello")
    def hello():
        pass

    assert App(group).run("nope") == 2