"""Business logic for experience and levels."""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from questlog.config.settings import get_settings
from questlog.database.upsert import dialect_insert
from questlog.exceptions import ConflictError, ResourceNotFoundError, StoreUnavailableError
from questlog.progress.engine import AwardResult, LevelState, apply_award
from questlog.progress.models import UserProgress


logger = logging.getLogger(__name__)


@dataclass
class AwardOutcome:
    """Stored progress row after an award, plus what the award did."""

    progress: UserProgress
    result: AwardResult


def to_level_state(progress: UserProgress) -> LevelState:
    """Project a progress row onto the engine's state."""
    return LevelState(
        current_level=progress.current_level,
        current_experience=progress.current_experience,
        experience_to_next_level=progress.experience_to_next_level,
        total_experience=progress.total_experience,
    )


class ProgressService:
    """Service for reading and awarding experience."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize progress service."""
        self.session = session

    async def get_progress(self, user_id: int) -> UserProgress:
        """Return the user's progress, creating the initial row on first access."""
        try:
            progress = await self._get_or_create(user_id, for_update=False)
            await self.session.commit()
        except OperationalError as e:
            await self.session.rollback()
            raise StoreUnavailableError("get_progress") from e
        return progress

    async def award_experience(self, user_id: int, amount: int, *, commit: bool = True) -> AwardOutcome:
        """Add ``amount`` experience to the user's progress.

        With ``commit=False`` the write is flushed but the transaction is left
        open for the caller, which lets a course completion commit the course
        row, the award and its achievements together.
        """
        return await self._award(user_id, amount, completed_course=False, commit=commit)

    async def record_course_completion(self, user_id: int, xp: int, *, commit: bool = True) -> AwardOutcome:
        """Award the completion bonus and bump ``courses_completed`` in one write.

        A bonus of zero (base XP and multiplier floor to nothing) only bumps the
        counter.
        """
        return await self._award(user_id, xp, completed_course=True, commit=commit)

    async def _award(self, user_id: int, amount: int, *, completed_course: bool, commit: bool) -> AwardOutcome:
        settings = get_settings()
        try:
            progress = await self._get_or_create(user_id, for_update=True)
            if completed_course and amount <= 0:
                # A completion worth no experience still counts as completed
                result = AwardResult(state=to_level_state(progress), amount=0, levels_gained=0)
            else:
                result = apply_award(to_level_state(progress), amount, multi_level=settings.PROGRESS_MULTI_LEVEL)

            progress.current_level = result.state.current_level
            progress.current_experience = result.state.current_experience
            progress.experience_to_next_level = result.state.experience_to_next_level
            progress.total_experience = result.state.total_experience
            if completed_course:
                progress.courses_completed += 1

            await self.session.flush()
            if commit:
                await self.session.commit()
        except StaleDataError as e:
            await self.session.rollback()
            msg = "Progress was updated concurrently, please retry"
            raise ConflictError(msg) from e
        except OperationalError as e:
            await self.session.rollback()
            raise StoreUnavailableError("award_experience") from e

        if result.leveled_up:
            logger.info(
                "User %s reached level %s (+%s levels, %s xp awarded)",
                user_id,
                progress.current_level,
                result.levels_gained,
                amount,
            )
        else:
            logger.debug("Awarded %s xp to user %s", amount, user_id)

        return AwardOutcome(progress=progress, result=result)

    async def _get_or_create(self, user_id: int, *, for_update: bool) -> UserProgress:
        """Insert the initial row if missing, then load it.

        The insert is ``ON CONFLICT (user_id) DO NOTHING`` so two first requests
        racing each other converge on the same row instead of failing.
        """
        insert_stmt = (
            dialect_insert(self.session, UserProgress)
            .values(user_id=user_id)
            .on_conflict_do_nothing(index_elements=["user_id"])
        )
        await self.session.execute(insert_stmt)

        query = (
            select(UserProgress)
            .where(UserProgress.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()

        result = await self.session.execute(query)
        progress = result.scalar_one_or_none()
        if progress is None:
            raise ResourceNotFoundError("Progress", user_id)
        return progress
