"""
HS256 session token management.

A session token is a self-contained JWT binding a user id to a validity
window ``[iat, exp)``. Nothing is stored server-side, so a token stays
valid until it expires; deleting the cookie is the only logout.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

DEFAULT_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["user_id", "iat", "exp"]


class TokenError(Exception):
    """Base class for every token verification failure."""

    reason = "invalid"


class InvalidSignatureError(TokenError):
    """The signature does not match the signing key."""

    reason = "invalid_signature"


class TokenExpiredError(TokenError):
    """The current time is at or past ``exp``."""

    reason = "expired"


class TokenNotYetValidError(TokenError):
    """The current time is before ``iat``."""

    reason = "not_yet_valid"


class MalformedTokenError(TokenError):
    """The token cannot be decoded or is missing required claims."""

    reason = "malformed"


@dataclass(frozen=True)
class SessionClaims:
    """Decoded contents of a verified session token."""

    user_id: str
    issued_at: datetime
    expires_at: datetime


def _to_timestamp(value: datetime | int) -> int:
    if isinstance(value, datetime):
        return int(value.timestamp())
    return int(value)


def issue_token(
    user_id: str,
    issued_at: datetime | int,
    expires_at: datetime | int,
    signing_key: str,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """
    Encode and sign ``{user_id, iat, exp}``.

    Timestamps are truncated to whole seconds, so identical inputs and
    key always produce the identical token.

    Args:
        user_id: The user's opaque id.
        issued_at: Start of the validity window.
        expires_at: End of the validity window (exclusive).
        signing_key: Shared HMAC secret.
        algorithm: Keyed-MAC JWT algorithm.

    Returns:
        Encoded JWT string.
    """
    iat = _to_timestamp(issued_at)
    exp = _to_timestamp(expires_at)
    if exp <= iat:
        msg = "expires_at must be later than issued_at"
        raise ValueError(msg)
    payload: dict[str, Any] = {"user_id": user_id, "iat": iat, "exp": exp}
    return jwt.encode(payload, signing_key, algorithm=algorithm)


def issue_session_token(
    user_id: str,
    signing_key: str,
    ttl: timedelta,
    algorithm: str = DEFAULT_ALGORITHM,
) -> tuple[str, datetime]:
    """Issue a token valid from now for ``ttl``. Returns the token and its expiry."""
    now = datetime.now(timezone.utc).replace(microsecond=0)
    expires_at = now + ttl
    return issue_token(user_id, now, expires_at, signing_key, algorithm), expires_at


def verify_token(
    token: str,
    signing_key: str,
    algorithm: str = DEFAULT_ALGORITHM,
) -> SessionClaims:
    """
    Verify the signature and validity window of a session token.

    Raises:
        InvalidSignatureError: The token was signed with another key.
        TokenExpiredError: ``exp`` has passed.
        TokenNotYetValidError: ``iat`` is in the future.
        MalformedTokenError: The token is not a decodable JWT with the expected claims.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            options={"require": _REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError(str(e)) from e
    except jwt.ImmatureSignatureError as e:
        raise TokenNotYetValidError(str(e)) from e
    except jwt.InvalidSignatureError as e:
        raise InvalidSignatureError(str(e)) from e
    except jwt.InvalidTokenError as e:
        raise MalformedTokenError(str(e)) from e

    user_id = payload["user_id"]
    if not isinstance(user_id, str) or not user_id:
        msg = "user_id claim must be a non-empty string"
        raise MalformedTokenError(msg)

    return SessionClaims(
        user_id=user_id,
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
