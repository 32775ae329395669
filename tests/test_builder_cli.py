import io
import subprocess
import sys
from unittest import mock

import pytest

from toolbelt.builder_cli import create_app, main

LINTER = "go" "langci-lint"


@pytest.fixture(autouse=True)
def quiet_stdin(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))


def _ok():
    return mock.patch("subprocess.run", return_value=subprocess.CompletedProcess([], 0))


def test_generate_default_packages():
    with _ok() as run:
        code = create_app().run("generate")
    assert code == 0
    assert run.call_count == 1
    assert run.call_args.args[0][1:] == ["generate", "./..."]


def test_generate_given_packages():
    with _ok() as run:
        code = create_app().run("generate", "./pkg/...")
    assert code == 0
    assert run.call_args.args[0][1:] == ["generate", "./pkg/..."]


def test_generate_too_many_arguments_is_usage_error():
    with _ok() as run:
        code = create_app().run("generate", "a", "b")
    assert code == 2
    assert run.call_count == 0


def test_generate_failure_exits_with_one():
    with mock.patch("subprocess.run", return_value=subprocess.CompletedProcess([], 1)):
        with pytest.raises(SystemExit) as info:
            create_app().run("generate")
    assert info.value.code == 1


def test_update_runs_tidy_then_get():
    with _ok() as run:
        code = create_app().run("update", "./pkg/...")
    assert code == 0
    calls = [c.args[0][1:] for c in run.call_args_list]
    assert calls == [["mod", "tidy"], ["get", "-t", "-v", "-u", "./pkg/..."]]


def test_lint_skips_everything():
    with _ok() as run:
        code = create_app().run("lint", "--skip-editorconfig-checker", f"--skip-{LINTER}")
    assert code == 0
    assert run.call_count == 0


def test_lint_runs_linter(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with _ok() as run:
        code = create_app().run("lint")
    assert code == 0
    assert run.call_count == 1
    assert run.call_args.args[0][1:] == ["run", "./..."]


def test_lint_runs_editorconfig_checker_when_config_exists(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".editorconfig").write_text("root = true\n")
    with _ok() as run:
        code = create_app().run("lint", f"--skip-{LINTER}")
    assert code == 0
    assert run.call_count == 1
    assert run.call_args.args[0] == ["editorconfig-checker"]


def test_debug_flag_is_accepted_by_subcommands():
    with _ok() as run:
        code = create_app().run("generate", "--debug")
    assert code == 0
    assert run.call_count == 1


def test_main_returns_usage_error_code():
    with _ok() as run:
        assert main(["update", "a", "b"]) == 2
    assert run.call_count == 0