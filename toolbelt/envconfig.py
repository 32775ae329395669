"""Reading dataclass configurations from environment variables."""

import dataclasses
import logging
import os
import types
import typing
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, TypeVar

_logger = logging.getLogger(__name__)

_MSG_FAILED = "failed to read configuration from environment"

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}

_NAMED_TYPES = {"str": str, "int": int, "float": float, "bool": bool, "Path": Path}

T = TypeVar("T")


class EnvConfigError(Exception):
    """Raised when a configuration cannot be read from the environment."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(_MSG_FAILED)
        self.detail = detail


def _parse_bool(raw: str) -> bool:
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"invalid boolean: {raw!r}")


def _resolve(tp: Any) -> Any:
    if isinstance(tp, str):
        try:
            return _NAMED_TYPES[tp]
        except KeyError:
            raise TypeError(f"unsupported type: {tp!r}") from None
    return tp


def _convert(raw: str, tp: Any) -> Any:
    tp = _resolve(tp)
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        inner = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(inner) != 1:
            raise TypeError(f"unsupported type: {tp!r}")
        return _convert(raw, inner[0])
    if origin in (list, tuple):
        item_args = typing.get_args(tp)
        item_type = item_args[0] if item_args else str
        items = [_convert(part, item_type) for part in raw.split(",")]
        return items if origin is list else tuple(items)
    if tp is bool:
        return _parse_bool(raw)
    if tp in (str, int, float):
        return tp(raw)
    if tp is Path:
        return Path(raw)
    raise TypeError(f"unsupported type: {tp!r}")


def _parse(config_type: type, environ: Mapping[str, str], prefix: str) -> Any:
    if not (isinstance(config_type, type) and dataclasses.is_dataclass(config_type)):
        raise TypeError("configuration type must be a dataclass")

    values: dict[str, Any] = {}

    for f in dataclasses.fields(config_type):
        if not f.init:
            continue
        tp = f.type
        if isinstance(tp, type) and dataclasses.is_dataclass(tp):
            values[f.name] = _parse(tp, environ, prefix + f.metadata.get("env_prefix", ""))
            continue

        name = prefix + f.metadata.get("env", f.name.upper())
        raw = environ.get(name)
        if raw is None:
            if f.metadata.get("required"):
                raise ValueError(f'required environment variable "{name}" is not set')
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                raise ValueError(f'environment variable "{name}" is not set')
            continue

        try:
            values[f.name] = _convert(raw, tp)
        except ValueError as err:
            raise ValueError(f'parse error on field "{f.name}": {err}') from err

    return config_type(**values)


def read_env_config(
    config_type: "type[T]",
    environ: Optional[Mapping[str, str]] = None,
    prefix: str = "",
) -> T:
    """Build a ``config_type`` dataclass from environment variables.

    A field reads the variable ``prefix`` + its ``env`` metadata, or its name in
    upper case. Missing variables fall back to the field default; fields with
    ``required`` metadata or no default must be set.
    """
    env = os.environ if environ is None else environ
    _logger.debug("reading config... config=%s prefix=%s", getattr(config_type, "__name__", config_type), prefix)

    try:
        config = _parse(config_type, env, prefix)
    except (TypeError, ValueError) as err:
        _logger.error("failed to parse config error=%s", err)
        raise EnvConfigError(str(err)) from err

    _logger.debug("read config.")
    return config