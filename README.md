# toolbelt

A small set of building blocks for command-line build tools, plus a
ready-made builder command for Go projects.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## The builder command

Installing the package provides `toolbelt-builder`, which drives the usual
steps of a Go project by running the `go` tool and linters:

```
toolbelt-builder generate [<packages>]
toolbelt-builder lint [<packages>]
toolbelt-builder update [<packages>]
toolbelt-builder --version
```

When no packages are given, `./...` is used. Every command accepts
`--debug` to switch the root logger to debug level.

- `generate` runs `go generate` on the packages.
- `lint` runs `editorconfig-checker` when a `.editorconfig` file is present,
  then the linters aggregator's `run` step on the packages. The flag
  `--skip-editorconfig-checker` skips the first step and a second `--skip-...`
  flag skips the linters; `toolbelt-builder lint --help` lists both.
- `update` runs `go mod tidy`, then `go get -t -v -u` on the packages.

A failing step prints the error and exits with status 1.

### What the builder does not do

The builder has only the three commands above. It has no command to run
tests, build binaries or install tool dependencies. `toolbelt.installer` can
be used from Python to install `go install` dependencies, but dependencies
listed under `github_install` are only read, never downloaded.

## Library

- `toolbelt.option`: apply `Option` objects to a target, with defaults
  filled in lazily, and `RestoreOption` objects that are undone after an
  action (`apply_options`, `apply_restore_options`). A repeated key raises
  `OptionAlreadyAppliedError`.
- `toolbelt.execution`: `Executable` wraps an external program; options such
  as `with_args`, `with_args_include_previous`, `with_env`, `with_custom_out`
  and `with_rerun` shape each run. A failed run raises `ExecuteCommandError`.
- `toolbelt.log`: structured attributes (`Attr`, `attr_slice`, `attr_map`,
  `attr_command`, ...) and root log level control (`set_root_log_level`).
- `toolbelt.osutil`: `PATH` manipulation (`clean_path`, `add_before_path`)
  and environment helpers (`env_map_to_list`, `merge_env_as_map`).
- `toolbelt.envconfig`: `read_env_config` fills a dataclass from environment
  variables and raises `EnvConfigError` when it cannot.
- `toolbelt.builder_exec`: preconfigured `go` executables (`new_go_get`,
  `new_go_mod`, `new_go_generate`, ...) and `arg_packages`.
- `toolbelt.installer`: `parse_dependencies` reads a JSON dependencies
  document; `Installer` installs its Go dependencies.
- `toolbelt.cli`: root command scaffolding (`init_default_cmd_root`, `App`,
  `build_use`).
- `toolbelt.auth` and `toolbelt.jwt_token`: a `SessionUser` model with a
  per-context current user (`with_session_user`, `get_session_user`), and
  `JwtToken`, which creates and parses HMAC-signed session tokens.

```python
from toolbelt.osutil import add_before_path, clean_path

clean_path("a:b:a:c", "a")      # "b:c" on POSIX systems
add_before_path("a:b:c", "d")   # "d:a:b:c"
```

```python
from toolbelt.execution import Executable, with_args, with_restore_args_include_previous, IncludePrevArgs

go = Executable("go", with_args("mod"))
go.execute(with_restore_args_include_previous(IncludePrevArgs.BEFORE, "tidy"))
```

```python
from datetime import timedelta
from toolbelt.auth import SessionUser
from toolbelt.jwt_token import JwtToken

tokens = JwtToken("secret", "HS256", timedelta(minutes=15), timedelta(days=7))
signed, expires_at = tokens.create_access_token(SessionUser(username="alice", email="alice@example.com"))
tokens.parse(signed).email      # "alice@example.com"
```