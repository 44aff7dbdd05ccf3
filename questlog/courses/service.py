"""Course lifecycle: creation, hour updates and completion rewards."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from questlog.achievements.models import Achievement
from questlog.achievements.service import (
    FIRST_COURSE_DESCRIPTION,
    FIRST_COURSE_TITLE,
    AchievementService,
    course_completion_title,
)
from questlog.config.settings import get_settings
from questlog.courses.lifecycle import completion_xp, derive_status, validate_completed_hours
from questlog.courses.models import Course
from questlog.courses.schemas import CourseCreate
from questlog.database.base import utcnow
from questlog.exceptions import ResourceNotFoundError, StoreUnavailableError
from questlog.progress.models import UserProgress
from questlog.progress.service import ProgressService


logger = logging.getLogger(__name__)


@dataclass
class CourseUpdateResult:
    """A course after an hour update, with whatever its completion granted."""

    course: Course
    xp_awarded: int = 0
    levels_gained: int = 0
    achievements: list[Achievement] = field(default_factory=list)
    progress: UserProgress | None = None


class CourseService:
    """Service for a single user's courses."""

    def __init__(self, session: AsyncSession, user_id: int) -> None:
        """Initialize the course service.

        Args:
            session: Database session
            user_id: Authenticated owner of every course touched
        """
        self.session = session
        self.user_id = user_id
        self.progress_service = ProgressService(session)
        self.achievement_service = AchievementService(session)

    async def list_courses(self) -> list[Course]:
        """List the user's courses in creation order.

        Reads degrade to an empty list when the store is unreachable.
        """
        query = select(Course).where(Course.user_id == self.user_id).order_by(Course.id)
        try:
            result = await self.session.execute(query)
        except OperationalError:
            logger.warning("Courses unavailable for user %s, returning empty list", self.user_id, exc_info=True)
            await self.session.rollback()
            return []
        return list(result.scalars().all())

    async def create_course(self, data: CourseCreate) -> Course:
        """Create a course with no hours logged."""
        course = Course(
            user_id=self.user_id,
            title=data.title,
            description=data.description,
            category=data.category,
            icon=data.icon,
            total_hours=data.total_hours,
            completed_hours=0,
            status="not_started",
        )
        self.session.add(course)
        try:
            await self.session.commit()
        except OperationalError as e:
            await self.session.rollback()
            raise StoreUnavailableError("create_course") from e

        logger.info(
            "Created course %s (%s, %sh) for user %s", course.id, course.category, course.total_hours, self.user_id
        )
        return course

    async def get_course(self, course_id: int, *, for_update: bool = False) -> Course:
        """Load a course owned by the user or raise ResourceNotFoundError."""
        query = (
            select(Course)
            .where(Course.id == course_id, Course.user_id == self.user_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()

        try:
            result = await self.session.execute(query)
        except OperationalError as e:
            await self.session.rollback()
            raise StoreUnavailableError("get_course") from e

        course = result.scalar_one_or_none()
        if course is None:
            raise ResourceNotFoundError("Course", course_id)
        return course

    async def apply_hour_update(self, course_id: int, new_completed_hours: int) -> CourseUpdateResult:
        """Set completed hours, derive the status and reward a first completion.

        Out-of-range hours raise ValidationError and nothing is written. The
        first time a course reaches ``completed`` the user receives the
        completion XP, the ``courses_completed`` counter is bumped and the
        completion badges are unlocked, all in the same transaction as the
        hour update.
        """
        return await self._update_hours(course_id, lambda _course: new_completed_hours)

    async def increment_by_one_hour(self, course_id: int) -> CourseUpdateResult:
        """Log one more hour, never going past ``total_hours``.

        The new value is computed from the locked row, so concurrent
        increments each count.
        """
        return await self._update_hours(
            course_id,
            lambda course: min(course.completed_hours + 1, course.total_hours),
        )

    async def _update_hours(
        self,
        course_id: int,
        next_hours: Callable[[Course], int],
    ) -> CourseUpdateResult:
        course = await self.get_course(course_id, for_update=True)
        new_completed_hours = next_hours(course)
        validate_completed_hours(new_completed_hours, course.total_hours)

        previous_status = course.status
        course.completed_hours = new_completed_hours
        course.status = derive_status(new_completed_hours, course.total_hours)
        update = CourseUpdateResult(course=course)

        try:
            if course.status == "completed" and course.completed_at is None:
                await self._reward_completion(update)
            await self.session.commit()
        except OperationalError as e:
            await self.session.rollback()
            raise StoreUnavailableError("apply_hour_update") from e

        if previous_status != course.status:
            logger.info("Course %s moved %s -> %s", course.id, previous_status, course.status)
        return update

    async def _reward_completion(self, update: CourseUpdateResult) -> None:
        settings = get_settings()
        course = update.course
        course.completed_at = utcnow()

        xp = completion_xp(course.category, settings.COURSE_COMPLETION_XP, settings.CATEGORY_XP_MULTIPLIERS)
        outcome = await self.progress_service.record_course_completion(self.user_id, xp, commit=False)
        update.xp_awarded = outcome.result.amount
        update.levels_gained = outcome.result.levels_gained
        update.progress = outcome.progress

        unlocks = [(course_completion_title(course.title), course.description)]
        if outcome.progress.courses_completed == 1:
            unlocks.append((FIRST_COURSE_TITLE, FIRST_COURSE_DESCRIPTION))

        for title, description in unlocks:
            unlocked = await self.achievement_service.unlock(self.user_id, title, description, commit=False)
            if unlocked.created:
                update.achievements.append(unlocked.achievement)

        logger.info("User %s completed course %s: +%s xp", self.user_id, course.id, update.xp_awarded)
