"""Identity resolution for incoming requests."""

import logging

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from questlog.auth.exceptions import InvalidTokenError, MissingTokenError, UnknownAuthProviderError
from questlog.auth.security import verify_session_token
from questlog.config.settings import get_settings
from questlog.users.models import User
from questlog.users.service import get_user_by_open_id, upsert_user


logger = logging.getLogger(__name__)

# Identity used for every request in single-user mode
DEFAULT_OPEN_ID = "local-user"
DEFAULT_USER_NAME = "Adventurer"


def _extract_token_from_request(request: Request) -> str | None:
    """Extract the session token from the Authorization header or the session cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.removeprefix("Bearer ")

    return request.cookies.get(get_settings().SESSION_COOKIE_NAME) or None


async def get_local_user(session: AsyncSession) -> User:
    """Return the single-user mode account, creating it on first use."""
    user = await get_user_by_open_id(session, DEFAULT_OPEN_ID)
    if user is not None:
        return user
    return await upsert_user(session, DEFAULT_OPEN_ID, name=DEFAULT_USER_NAME, login_method="local")


async def get_current_user(request: Request, session: AsyncSession) -> User:
    """Resolve the authenticated user for ``request``.

    Single-user mode: always the local account.
    Session mode: a valid session token for a known user, or 401.
    """
    settings = get_settings()

    if settings.AUTH_PROVIDER == "none":
        if settings.ENVIRONMENT == "production":
            logger.error("AUTH_PROVIDER='none' is not allowed in production!")
            msg = "Single-user mode (AUTH_PROVIDER='none') is not allowed in production."
            raise ValueError(msg)
        return await get_local_user(session)

    if settings.AUTH_PROVIDER == "session":
        token = _extract_token_from_request(request)
        if not token:
            raise MissingTokenError

        payload = verify_session_token(token)
        user = await get_user_by_open_id(session, payload.open_id)
        if user is None:
            logger.warning("Session token for unknown user %s", payload.open_id)
            raise InvalidTokenError
        return user

    logger.error("Unknown auth provider: %s", settings.AUTH_PROVIDER)
    raise UnknownAuthProviderError(settings.AUTH_PROVIDER)
