"""Logging setup and structured attribute helpers."""

from __future__ import annotations

import contextlib
import contextvars
import logging
import uuid
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import IO, Any, Optional

MSG_RECEIVE_REQUEST = "Receive request"

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
}

_COLORS = {
    logging.DEBUG: "\033[90m",
    logging.INFO: "\033[36m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
}
_RESET = "\033[0m"

_level = logging.INFO
_console_handler: Optional[logging.Handler] = None
_current_logger: contextvars.ContextVar[Optional[logging.Logger]] = contextvars.ContextVar(
    "toolbelt_logger", default=None
)


def _value_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if isinstance(value, tuple) and all(isinstance(a, Attr) for a in value):
        return "[" + " ".join(str(a) for a in value) + "]"
    return str(value)


@dataclass(frozen=True)
class Attr:
    """A key/value pair attached to a log record; a tuple of Attrs is a group."""

    key: str
    value: Any

    def __str__(self) -> str:
        return f"{self.key}={_value_string(self.value)}"


def _level_name(level: int) -> str:
    return _LEVEL_NAMES.get(level, logging.getLevelName(level))


def _render(msg: str, args: Iterable[Any]) -> str:
    return " ".join([msg, *(str(a) for a in args)])


def attr_slice(key: str, value: Iterable[Any]) -> Attr:
    """Join the items of ``value`` with no separator."""
    return attr_slice_with_separator(key, "", value)


def attr_slice_with_separator(key: str, separator: str, value: Iterable[Any]) -> Attr:
    """Join the items of ``value`` with ``separator`` into one string attribute."""
    return Attr(key, separator.join(_value_string(v) for v in value))


def attr_map(key: str, value: Mapping[Any, Any]) -> Attr:
    """Turn a mapping into a group attribute keyed by each entry's key."""
    return Attr(key, tuple(Attr(_value_string(k), v) for k, v in value.items()))


def attr_command(command: str, *args: str) -> Attr:
    """Describe an external command and its arguments."""
    return Attr(
        "command",
        (Attr("cmd", command), attr_slice_with_separator("args", " ", args)),
    )


def attr_error(err: BaseException) -> Attr:
    return Attr("error", str(err))


def attr_file_path(file_path: str) -> Attr:
    return Attr("filePath", file_path)


def attr_uuid(key: str, value: uuid.UUID) -> Attr:
    if not isinstance(value, uuid.UUID):
        log_panic("failed to marshal UUID value", Attr("error", f"not a UUID: {value!r}"))
    return Attr(key, str(value))


class _ConsoleFormatter(logging.Formatter):
    def __init__(self, color: bool) -> None:
        super().__init__(datefmt="%H:%M:%S")
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        level = _level_name(record.levelno)
        if self._color:
            level = f"{_COLORS.get(record.levelno, '')}{level}{_RESET}"
        return f"[{self.formatTime(record, self.datefmt)}] {level}: {record.getMessage()}"


def init_default_logger_with_console(output: IO[str]) -> None:
    """Send the root logger's records to ``output`` and set the level to INFO."""
    global _console_handler

    root = logging.getLogger()
    if _console_handler is not None:
        root.removeHandler(_console_handler)

    isatty = getattr(output, "isatty", None)
    handler = logging.StreamHandler(output)
    handler.setFormatter(_ConsoleFormatter(color=bool(isatty and isatty())))
    root.addHandler(handler)
    root.setLevel(_level)
    _console_handler = handler

    set_root_log_level(logging.INFO)


def set_root_log_level(level: int) -> None:
    """Change the root level, logging a warning when it actually changes."""
    global _level

    old_level = _level
    if old_level == level:
        return

    _level = level
    logging.getLogger().setLevel(level)
    logging.getLogger().warning(
        _render(
            "change root logger level",
            [Attr("prev_level", _level_name(old_level)), Attr("new_level", _level_name(level))],
        )
    )


@contextlib.contextmanager
def with_logger(logger: logging.Logger) -> Iterator[logging.Logger]:
    """Make ``logger`` the current logger within the block."""
    token = _current_logger.set(logger)
    try:
        yield logger
    finally:
        _current_logger.reset(token)


def get_logger() -> logging.Logger:
    """Return the current logger, or the root logger if none was set."""
    logger = _current_logger.get()
    return logger if logger is not None else logging.getLogger()


def debug(msg: str, *args: Any) -> None:
    get_logger().debug(_render(msg, args))


def log_panic(msg: str, *args: Any) -> None:
    """Log ``msg`` as an error and raise :class:`RuntimeError`."""
    logging.getLogger().error(_render(msg, args))
    raise RuntimeError(msg)