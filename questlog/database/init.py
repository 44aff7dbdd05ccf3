"""Database initialization - creates tables and the single-user account."""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

# Import all models to register them with Base metadata
from questlog.achievements.models import Achievement  # noqa: F401
from questlog.config.settings import get_settings
from questlog.courses.models import Course  # noqa: F401
from questlog.progress.models import UserProgress  # noqa: F401
from questlog.users.models import User  # noqa: F401

from .base import Base
from .session import async_session_maker


logger = logging.getLogger(__name__)


async def init_database(db_engine: AsyncEngine) -> None:
    """Create all tables, then make sure the single-user account exists."""
    async with db_engine.begin() as conn:
        logger.info("Creating database tables from models...")
        await conn.run_sync(Base.metadata.create_all)
        logger.info("All tables created successfully")

    if get_settings().AUTH_PROVIDER == "none":
        await _ensure_default_user()


async def _ensure_default_user() -> None:
    """Create the local account used when AUTH_PROVIDER=none."""
    from questlog.auth.config import get_local_user

    async with async_session_maker() as session:
        user = await get_local_user(session)
        logger.info("Default user ready (id=%s)", user.id)
