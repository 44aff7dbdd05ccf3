"""User directory: sign-in upserts, lookups and profile edits."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from questlog.config.settings import get_settings
from questlog.database.base import utcnow
from questlog.database.upsert import dialect_insert
from questlog.exceptions import ResourceNotFoundError, StoreUnavailableError
from questlog.users.models import User
from questlog.users.schemas import ProfileUpdate


logger = logging.getLogger(__name__)


async def upsert_user(
    session: AsyncSession,
    open_id: str,
    *,
    name: str | None = None,
    email: str | None = None,
    login_method: str | None = None,
    avatar: str | None = None,
) -> User:
    """Create the user on first sign-in, otherwise refresh profile fields.

    Only fields that are provided are written; ``last_signed_in`` is always
    refreshed. The configured owner is promoted to ``admin``.
    """
    if not open_id:
        msg = "User open_id is required for upsert"
        raise ValueError(msg)

    now = utcnow()
    values: dict[str, object] = {"open_id": open_id, "last_signed_in": now}
    update_set: dict[str, object] = {"last_signed_in": now, "updated_at": now}

    for field, value in (("name", name), ("email", email), ("login_method", login_method), ("avatar", avatar)):
        if value is not None:
            values[field] = value
            update_set[field] = value

    owner_open_id = get_settings().OWNER_OPEN_ID
    if owner_open_id and open_id == owner_open_id:
        values["role"] = "admin"
        update_set["role"] = "admin"

    stmt = (
        dialect_insert(session, User)
        .values(**values)
        .on_conflict_do_update(index_elements=["open_id"], set_=update_set)
    )
    try:
        await session.execute(stmt)
        await session.commit()
    except OperationalError as e:
        await session.rollback()
        raise StoreUnavailableError("upsert_user") from e

    user = await get_user_by_open_id(session, open_id)
    if user is None:
        raise ResourceNotFoundError("User", open_id)
    return user


async def get_user_by_open_id(session: AsyncSession, open_id: str) -> User | None:
    """Look up a user by external identity."""
    result = await session.execute(
        select(User).where(User.open_id == open_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: int) -> User:
    """Get a user by id or raise."""
    user = await session.get(User, user_id)
    if user is None:
        raise ResourceNotFoundError("User", user_id)
    return user


async def update_profile(session: AsyncSession, user_id: int, update: ProfileUpdate) -> User:
    """Change the display name and, if given, the avatar."""
    user = await get_user(session, user_id)
    user.name = update.name
    if update.avatar is not None:
        user.avatar = update.avatar

    try:
        await session.commit()
    except OperationalError as e:
        await session.rollback()
        raise StoreUnavailableError("update_profile") from e

    logger.info("Updated profile for user %s", user_id)
    return user
