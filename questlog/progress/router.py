"""Progress API endpoints."""

import logging

from fastapi import APIRouter, Depends

from questlog.auth import CurrentAuth
from questlog.middleware.security import write_route_limit

from .schemas import ExperienceAward, ExperienceAwardResponse, ProgressResponse
from .service import ProgressService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/progress", tags=["progress"])


@router.get("")
async def get_progress(auth: CurrentAuth) -> ProgressResponse:
    """Get the current user's level and experience (created on first access)."""
    service = ProgressService(auth.session)
    progress = await service.get_progress(auth.user_id)
    return ProgressResponse.model_validate(progress)


@router.post("/experience", dependencies=[Depends(write_route_limit)])
async def award_experience(award: ExperienceAward, auth: CurrentAuth) -> ExperienceAwardResponse:
    """Grant experience to the current user."""
    service = ProgressService(auth.session)
    outcome = await service.award_experience(auth.user_id, award.amount)

    return ExperienceAwardResponse(
        amount=outcome.result.amount,
        levels_gained=outcome.result.levels_gained,
        leveled_up=outcome.result.leveled_up,
        progress=ProgressResponse.model_validate(outcome.progress),
    )
