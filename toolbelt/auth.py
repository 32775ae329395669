"""Authenticated session users and the session user of the current context."""

from __future__ import annotations

import contextlib
import contextvars
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Optional

from toolbelt import log

HEADER_AUTHORIZE = "authorization"
AUTH_SCHEMA_BEARER = "bearer"

MSG_AUTH_HEADER_FOUND = "authentication token was found"
MSG_AUTH_HEADER_NOT_FOUND = "authentication token was not found"

NIL_UUID = uuid.UUID(int=0)


class SessionWithoutAuthError(Exception):
    """Raised when a session carries no authentication."""

    def __init__(self, message: str = "session without authentication") -> None:
        super().__init__(message)


class SessionUserNotFoundError(LookupError):
    """Raised when no valid session user is set for the current context."""

    def __init__(self, message: str = "session user not found or invalid") -> None:
        super().__init__(message)


class SessionUserInvalidError(TypeError):
    """Raised when a session is given something that is not a session user."""

    def __init__(self, message: str = "session contains an invalid user object") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class SessionUser:
    """The user an authenticated session belongs to."""

    uid: uuid.UUID = NIL_UUID
    username: str = ""
    email: str = ""
    has_guest: bool = False


_current_session_user: contextvars.ContextVar[Optional[SessionUser]] = contextvars.ContextVar(
    "toolbelt_session_user", default=None
)


@contextlib.contextmanager
def with_session_user(session_user: SessionUser) -> Iterator[SessionUser]:
    """Make ``session_user`` the session user within the block."""
    if not isinstance(session_user, SessionUser):
        raise SessionUserInvalidError()
    token = _current_session_user.set(session_user)
    try:
        yield session_user
    finally:
        _current_session_user.reset(token)


def get_session_user() -> SessionUser:
    """Return the session user of the current context."""
    logger = log.get_logger()
    session_user = _current_session_user.get()
    if not isinstance(session_user, SessionUser):
        logger.debug("session user not found in context")
        raise SessionUserNotFoundError()

    logger.debug("session user found in context %s", attr_session_user(session_user))
    return session_user


def attr_session_user(session_user: SessionUser) -> log.Attr:
    """Describe a session user as a group attribute."""
    return log.Attr(
        "session_user",
        (
            log.attr_uuid("uid", session_user.uid),
            log.Attr("username", session_user.username),
            log.Attr("email", session_user.email),
            log.Attr("guest", session_user.has_guest),
        ),
    )


def attr_session_user_uid(session_user: SessionUser) -> log.Attr:
    return log.attr_uuid("session_user_uid", session_user.uid)