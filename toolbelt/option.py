"""Keyed options that configure an object, with optional save/restore."""

from __future__ import annotations

import abc
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Optional

_logger = logging.getLogger(__name__)

_MSG_ALREADY = "option has already been applied"
_MSG_ALREADY_BEFORE = "the option has already been applied before"
_MSG_ALREADY_AND_IGNORED = "the option has already been applied before and will be ignored"


class OptionAlreadyAppliedError(Exception):
    """Raised when two options with the same key are applied together."""

    def __init__(self, key: str = "") -> None:
        super().__init__(_MSG_ALREADY)
        self.key = key


class Option(abc.ABC):
    """A named change applied to an object."""

    @abc.abstractmethod
    def key(self) -> str:
        """Return the key identifying this kind of option."""

    @abc.abstractmethod
    def apply(self, obj: Any) -> None:
        """Apply the option to ``obj``."""


class RestoreOption(Option):
    """An option that can save the object's state and put it back afterwards."""

    @abc.abstractmethod
    def save(self, obj: Any) -> None:
        """Remember the part of ``obj`` this option changes."""

    @abc.abstractmethod
    def restore(self, obj: Any) -> None:
        """Put back what :meth:`save` remembered."""


def _ensure_new_key(keys: set[str], key: str) -> None:
    if key in keys:
        _logger.debug("%s option_key=%s", _MSG_ALREADY, key)
        raise OptionAlreadyAppliedError(key)
    _logger.debug("key not found option_key=%s", key)


def apply_options(
    obj: Any,
    opts: Iterable[Option],
    defaults: Optional[Mapping[str, Callable[[], Option]]],
) -> None:
    """Apply ``opts`` to ``obj``, then every default whose key was not used.

    A repeated key among ``opts`` raises :class:`OptionAlreadyAppliedError`;
    defaults whose key is already taken are skipped silently.
    """
    keys: set[str] = set()

    for opt in opts:
        key = opt.key()
        try:
            _ensure_new_key(keys, key)
        except OptionAlreadyAppliedError:
            _logger.error("%s option_key=%s", _MSG_ALREADY_BEFORE, key)
            raise
        _logger.debug("apply option option_key=%s", key)
        keys.add(key)
        opt.apply(obj)

    for factory in (defaults or {}).values():
        opt = factory()
        key = opt.key()
        if key in keys:
            _logger.debug("%s option_key=%s", _MSG_ALREADY_AND_IGNORED, key)
            continue
        _logger.debug("apply option option_key=%s", key)
        keys.add(key)
        opt.apply(obj)


def apply_restore_options(
    obj: Any,
    opts: Iterable[RestoreOption],
    action: Callable[[], Any],
) -> Any:
    """Save and apply each option, run ``action``, then restore in reverse order.

    Returns whatever ``action`` returns.
    """
    keys: set[str] = set()
    applied: list[RestoreOption] = []

    for opt in opts:
        key = opt.key()
        try:
            _ensure_new_key(keys, key)
        except OptionAlreadyAppliedError:
            _logger.error("%s option_key=%s", _MSG_ALREADY_BEFORE, key)
            raise
        keys.add(key)
        opt.save(obj)
        opt.apply(obj)
        applied.append(opt)

    try:
        return action()
    finally:
        for opt in reversed(applied):
            opt.restore(obj)