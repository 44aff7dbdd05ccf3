"""Session token primitives (signed JWT carried in a cookie)."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from questlog.auth.exceptions import InvalidTokenError, TokenExpiredError
from questlog.config.settings import get_settings


ALGORITHM = "HS256"
_JWT_KEY_PURPOSE = "jwt"
_SESSION_KEY_PURPOSE = "session"


@dataclass(frozen=True)
class SessionPayload:
    """Claims carried by a session token."""

    open_id: str
    name: str


def _derive_secret_key(secret_key: str, purpose: str) -> str:
    """Derive deterministic sub-keys for auth contexts from a shared secret."""
    return hmac.new(secret_key.encode("utf-8"), purpose.encode("utf-8"), hashlib.sha256).hexdigest()


def get_jwt_signing_key() -> str:
    """Return JWT signing key derived from AUTH_SECRET_KEY."""
    secret_key = get_settings().AUTH_SECRET_KEY.get_secret_value()
    return _derive_secret_key(secret_key, _JWT_KEY_PURPOSE)


def get_session_signing_key() -> str:
    """Return session middleware key derived from AUTH_SECRET_KEY."""
    secret_key = get_settings().AUTH_SECRET_KEY.get_secret_value()
    return _derive_secret_key(secret_key, _SESSION_KEY_PURPOSE)


def create_session_token(open_id: str, *, name: str = "", expires_delta: timedelta | None = None) -> str:
    """Create a signed session token for cookie transport."""
    if expires_delta is None:
        expires_delta = timedelta(days=get_settings().SESSION_TTL_DAYS)
    now = datetime.now(UTC)
    to_encode = {"sub": open_id, "name": name, "iat": now, "nbf": now, "exp": now + expires_delta}
    return jwt.encode(to_encode, get_jwt_signing_key(), algorithm=ALGORITHM)


def verify_session_token(token: str) -> SessionPayload:
    """Decode a session token.

    Raises
    ------
        TokenExpiredError: if the token is past its ``exp`` claim.
        InvalidTokenError: for any other signature or claim problem.
    """
    try:
        claims = jwt.decode(
            token,
            get_jwt_signing_key(),
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError from e
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError from e

    open_id = claims.get("sub")
    if not isinstance(open_id, str) or not open_id:
        raise InvalidTokenError
    return SessionPayload(open_id=open_id, name=claims.get("name") or "")
