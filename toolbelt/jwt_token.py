"""Signed session tokens: creating them for a user and parsing them back."""

from __future__ import annotations

import abc
import math
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

import jwt

from toolbelt import log
from toolbelt.auth import NIL_UUID, SessionUser, attr_session_user

ERR_MSG_IS_EMPTY = "is empty"

_MSG_PARSING_CLAIMS = "failed to parse Claims"
_MSG_CREATING_TOKEN = "error creating token"

_HMAC_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})

Clock = Callable[[], datetime]


class TokenError(Exception):
    """Base class of token errors."""

    default_message = "token error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class ParsingClaimsError(TokenError):
    default_message = _MSG_PARSING_CLAIMS


class UnsupportedSigningMethodError(TokenError):
    default_message = "unsupported signing method"


class TokenInvalidError(TokenError):
    default_message = "the token has an invalid"


class UnsupportedTypeError(TokenError):
    default_message = "unsupported claims type"


class TokenInvalidUIDError(TokenError):
    default_message = "token has invalid UID"


class TokenInvalidEmailError(TokenError):
    default_message = "token has invalid email"


class TokenInvalidIssuerError(TokenError):
    default_message = "token has invalid issuer"


class CreatingTokenError(TokenError):
    default_message = _MSG_CREATING_TOKEN


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _numeric_date(value: datetime) -> int:
    return math.floor(_as_utc(value).timestamp())


def _string_claim(data: Mapping[str, Any], name: str) -> str:
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"claim {name!r} must be a string")
    return value


def _date_claim(data: Mapping[str, Any], name: str) -> Optional[datetime]:
    value = data.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"claim {name!r} must be a number")
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _audience_claim(data: Mapping[str, Any]) -> list[str]:
    value = data.get("aud")
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError("claim 'aud' must be a string or a list of strings")


@dataclass
class SessionUserClaims:
    """Claims carried by a session token: the user plus the registered claims."""

    uid: uuid.UUID = NIL_UUID
    email: str = ""
    issuer: str = ""
    subject: str = ""
    audience: list[str] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    not_before: Optional[datetime] = None
    issued_at: Optional[datetime] = None
    id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """The JSON payload, leaving out empty claims other than the UID."""
        data: dict[str, Any] = {"uid": str(self.uid)}
        if self.email:
            data["email"] = self.email
        if self.issuer:
            data["iss"] = self.issuer
        if self.subject:
            data["sub"] = self.subject
        if self.audience:
            data["aud"] = list(self.audience)
        for name, value in (("exp", self.expires_at), ("nbf", self.not_before), ("iat", self.issued_at)):
            if value is not None:
                data[name] = _numeric_date(value)
        if self.id:
            data["jti"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionUserClaims":
        """Read claims from a JSON payload; raise ValueError on malformed claims."""
        raw_uid = data.get("uid")
        if raw_uid is None:
            uid = NIL_UUID
        elif isinstance(raw_uid, str):
            uid = uuid.UUID(raw_uid)
        else:
            raise ValueError("claim 'uid' must be a string")

        return cls(
            uid=uid,
            email=_string_claim(data, "email"),
            issuer=_string_claim(data, "iss"),
            subject=_string_claim(data, "sub"),
            audience=_audience_claim(data),
            expires_at=_date_claim(data, "exp"),
            not_before=_date_claim(data, "nbf"),
            issued_at=_date_claim(data, "iat"),
            id=_string_claim(data, "jti"),
        )


def attr_claims(claims: SessionUserClaims) -> log.Attr:
    return log.Attr("claims", claims)


def attr_secret_key(secret_key: Union[str, bytes]) -> log.Attr:
    if isinstance(secret_key, (bytes, bytearray)):
        value = bytes(secret_key).decode(errors="replace")
    elif isinstance(secret_key, str):
        value = secret_key
    else:
        log.get_logger().warning("unsupported type secretKey: %s", type(secret_key).__name__)
        value = str(secret_key)
    return log.Attr("secret_key", value)


def attr_token(token: str) -> log.Attr:
    return log.Attr("token", token)


class JwtTokenParser(abc.ABC):
    """Turns a raw token into the session user it was issued for."""

    @abc.abstractmethod
    def parse(self, raw_token: str) -> SessionUser:
        """Return the session user of ``raw_token``."""


class JwtToken(JwtTokenParser):
    """Creates and parses HMAC-signed session tokens."""

    def __init__(
        self,
        secret_key: Union[str, bytes],
        signing_method: str,
        access_token_duration: timedelta,
        refresh_token_duration: timedelta,
        clock: Optional[Clock] = None,
    ) -> None:
        self._secret_key = secret_key.encode() if isinstance(secret_key, str) else bytes(secret_key)
        self._signing_method = signing_method
        self._access_token_duration = access_token_duration
        self._refresh_token_duration = refresh_token_duration
        self._clock: Clock = clock if clock is not None else _utc_now

    def parse(self, raw_token: str) -> SessionUser:
        """Verify ``raw_token`` and return its session user."""
        logger = log.get_logger()
        logger.debug("receive token %s", attr_token(raw_token))

        try:
            header = jwt.get_unverified_header(raw_token)
        except jwt.PyJWTError as err:
            raise self._parsing_error(f"token is malformed: {err}") from err

        alg = header.get("alg")
        if alg not in _HMAC_ALGORITHMS:
            msg = f"unsupported token signing algorithm: {alg}"
            cause = UnsupportedSigningMethodError(f"{msg}: {UnsupportedSigningMethodError.default_message}")
            logger.error("%s %s", msg, log.attr_error(cause))
            raise self._parsing_error(f"token is unverifiable: error while executing keyfunc: {cause}") from cause

        logger.debug("found method %s %s", log.Attr("method", alg), attr_secret_key(self._secret_key))

        try:
            payload = jwt.decode(
                raw_token,
                self._secret_key,
                algorithms=[alg],
                options={
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    "verify_aud": False,
                },
            )
        except jwt.PyJWTError as err:
            raise self._parsing_error(str(err)) from err

        if not isinstance(payload, dict):
            error = UnsupportedTypeError(f"{UnsupportedTypeError.default_message}: found type: {type(payload).__name__}")
            logger.error("%s %s", error, log.attr_error(error))
            raise error

        try:
            claims = SessionUserClaims.from_dict(payload)
        except ValueError as err:
            raise self._parsing_error(f"token is malformed: {err}") from err

        self._validate_times(claims)
        return self._enrich_session_user(claims)

    def _parsing_error(self, detail: str) -> ParsingClaimsError:
        error = ParsingClaimsError(f"{_MSG_PARSING_CLAIMS}: {detail}")
        log.get_logger().error("%s %s", error, log.attr_error(error))
        return error

    def _validate_times(self, claims: SessionUserClaims) -> None:
        now = _as_utc(self._clock())
        if claims.expires_at is not None and not now < claims.expires_at:
            raise self._parsing_error("token has invalid claims: token is expired")
        if claims.not_before is not None and now < claims.not_before:
            raise self._parsing_error("token has invalid claims: token is not valid yet")

    def _enrich_session_user(self, claims: SessionUserClaims) -> SessionUser:
        logger = log.get_logger()
        logger.debug("receive claims for enrich %s", attr_claims(claims))

        if claims.uid != NIL_UUID:
            logger.debug("UID is valid")
        else:
            logger.warning("UID is empty %s", log.attr_error(TokenInvalidUIDError()))

        if not claims.issuer:
            error = TokenInvalidIssuerError(f"{ERR_MSG_IS_EMPTY}: {TokenInvalidIssuerError.default_message}")
            logger.error("%s %s", ERR_MSG_IS_EMPTY, log.attr_error(error))
            raise error

        if not claims.email:
            error = TokenInvalidEmailError(f"{ERR_MSG_IS_EMPTY}: {TokenInvalidEmailError.default_message}")
            logger.error("%s %s", ERR_MSG_IS_EMPTY, log.attr_error(error))
            raise error

        return SessionUser(uid=claims.uid, username=claims.issuer, email=claims.email)

    def create_access_token(self, session_user: SessionUser) -> tuple[str, datetime]:
        """A token valid for the access-token duration, with its expiry time."""
        return self.create_token_custom_duration(session_user, self._access_token_duration)

    def create_refresh_token(self, session_user: SessionUser) -> tuple[str, datetime]:
        """A token valid for the refresh-token duration, with its expiry time."""
        return self.create_token_custom_duration(session_user, self._refresh_token_duration)

    def create_token_custom_duration(self, session_user: SessionUser, duration: timedelta) -> tuple[str, datetime]:
        """A signed token for ``session_user`` expiring after ``duration``."""
        logger = log.get_logger()
        logger.debug("creating token... %s", attr_session_user(session_user))

        now = _as_utc(self._clock())
        expired_at = now + duration
        logger.debug("expiredAt: %s", expired_at)

        claims = SessionUserClaims(
            uid=session_user.uid,
            email=session_user.email,
            issuer=session_user.username,
            issued_at=now,
            expires_at=expired_at,
        )
        logger.debug("claims: %s", claims)

        if self._signing_method not in _HMAC_ALGORITHMS:
            error = CreatingTokenError(f"key is of invalid type for {self._signing_method}: {_MSG_CREATING_TOKEN}")
            logger.error("token signing error %s", log.attr_error(error))
            raise error

        try:
            signed = jwt.encode(claims.to_dict(), self._secret_key, algorithm=self._signing_method)
        except (jwt.PyJWTError, ValueError, TypeError, NotImplementedError) as err:
            error = CreatingTokenError(f"{err}: {_MSG_CREATING_TOKEN}")
            logger.error("token signing error %s", log.attr_error(error))
            raise error from err

        logger.debug("signed token: %s", signed)
        return signed, expired_at