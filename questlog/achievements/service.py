"""Achievement unlock bookkeeping."""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from questlog.achievements.models import DEFAULT_ACHIEVEMENT_ICON, Achievement
from questlog.database.upsert import dialect_insert
from questlog.exceptions import ResourceNotFoundError, StoreUnavailableError


logger = logging.getLogger(__name__)

FIRST_COURSE_TITLE = "First Steps"
FIRST_COURSE_DESCRIPTION = "Complete your first course"


@dataclass
class UnlockResult:
    achievement: Achievement
    created: bool


def course_completion_title(course_title: str) -> str:
    """Badge title granted for finishing a specific course."""
    return f"Completed: {course_title}"[:255]


class AchievementService:
    """Service for listing and unlocking achievements."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_achievements(self, user_id: int) -> list[Achievement]:
        """List the user's unlocked achievements, oldest first.

        Reads degrade to an empty list when the store is unreachable.
        """
        query = (
            select(Achievement)
            .where(Achievement.user_id == user_id)
            .order_by(Achievement.unlocked_at, Achievement.id)
        )
        try:
            result = await self.session.execute(query)
        except OperationalError:
            logger.warning("Achievements unavailable for user %s, returning empty list", user_id, exc_info=True)
            await self.session.rollback()
            return []
        return list(result.scalars().all())

    async def unlock(
        self,
        user_id: int,
        title: str,
        description: str | None = None,
        icon: str | None = None,
        *,
        commit: bool = True,
    ) -> UnlockResult:
        """Unlock ``title`` for the user.

        Idempotent per ``(user_id, title)``: a second unlock returns the
        existing row with ``created=False``.
        """
        stmt = (
            dialect_insert(self.session, Achievement)
            .values(
                user_id=user_id,
                title=title,
                description=description,
                icon=icon or DEFAULT_ACHIEVEMENT_ICON,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "title"])
            .returning(Achievement.id)
        )
        try:
            result = await self.session.execute(stmt)
            created = result.scalar_one_or_none() is not None
            achievement = await self._get_by_title(user_id, title)
            if commit:
                await self.session.commit()
        except OperationalError as e:
            await self.session.rollback()
            raise StoreUnavailableError("unlock_achievement") from e

        if created:
            logger.info("User %s unlocked achievement %r", user_id, title)
        return UnlockResult(achievement=achievement, created=created)

    async def _get_by_title(self, user_id: int, title: str) -> Achievement:
        result = await self.session.execute(
            select(Achievement).where(Achievement.user_id == user_id, Achievement.title == title)
        )
        achievement = result.scalar_one_or_none()
        if achievement is None:
            raise ResourceNotFoundError("Achievement", title)
        return achievement
