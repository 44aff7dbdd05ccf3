"""Courses API router."""

import logging

from fastapi import APIRouter, Depends, status

from questlog.achievements.schemas import AchievementResponse
from questlog.auth import CurrentAuth
from questlog.courses.schemas import CourseCreate, CourseResponse, CourseUpdateResponse, HourUpdate
from questlog.courses.service import CourseService, CourseUpdateResult
from questlog.middleware.security import write_route_limit
from questlog.progress.schemas import ProgressResponse


router = APIRouter(
    prefix="/api/v1/courses",
    tags=["courses"],
    responses={404: {"description": "Not found"}},
)

logger = logging.getLogger(__name__)


def get_course_service(auth: CurrentAuth) -> CourseService:
    """Get course service instance scoped to the current user."""
    return CourseService(auth.session, auth.user_id)


def _to_update_response(update: CourseUpdateResult) -> CourseUpdateResponse:
    return CourseUpdateResponse(
        course=CourseResponse.model_validate(update.course),
        xp_awarded=update.xp_awarded,
        levels_gained=update.levels_gained,
        achievements_unlocked=[AchievementResponse.model_validate(a) for a in update.achievements],
        progress=ProgressResponse.model_validate(update.progress) if update.progress is not None else None,
    )


@router.get("")
async def list_courses(service: CourseService = Depends(get_course_service)) -> list[CourseResponse]:
    """List the current user's courses."""
    courses = await service.list_courses()
    return [CourseResponse.model_validate(course) for course in courses]


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(write_route_limit)])
async def create_course(
    request: CourseCreate,
    service: CourseService = Depends(get_course_service),
) -> CourseResponse:
    """Create a course."""
    course = await service.create_course(request)
    return CourseResponse.model_validate(course)


@router.get("/{course_id}")
async def get_course(course_id: int, service: CourseService = Depends(get_course_service)) -> CourseResponse:
    """Get a single course."""
    course = await service.get_course(course_id)
    return CourseResponse.model_validate(course)


@router.patch("/{course_id}/progress", dependencies=[Depends(write_route_limit)])
async def update_course_hours(
    course_id: int,
    request: HourUpdate,
    service: CourseService = Depends(get_course_service),
) -> CourseUpdateResponse:
    """Set the completed hours of a course."""
    update = await service.apply_hour_update(course_id, request.completed_hours)
    return _to_update_response(update)


@router.post("/{course_id}/increment", dependencies=[Depends(write_route_limit)])
async def increment_course_hours(
    course_id: int,
    service: CourseService = Depends(get_course_service),
) -> CourseUpdateResponse:
    """Log one more completed hour."""
    update = await service.increment_by_one_hour(course_id)
    return _to_update_response(update)
