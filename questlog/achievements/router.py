"""Achievement API endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from questlog.auth import CurrentAuth
from questlog.middleware.security import write_route_limit

from .schemas import AchievementResponse, AchievementUnlock, AchievementUnlockResponse
from .service import AchievementService


router = APIRouter(prefix="/api/v1/achievements", tags=["achievements"])


@router.get("")
async def list_achievements(auth: CurrentAuth) -> list[AchievementResponse]:
    """List the current user's unlocked achievements."""
    service = AchievementService(auth.session)
    achievements = await service.list_achievements(auth.user_id)
    return [AchievementResponse.model_validate(a) for a in achievements]


@router.post(
    "",
    dependencies=[Depends(write_route_limit)],
    responses={200: {"description": "Already unlocked"}, 201: {"description": "Unlocked"}},
)
async def unlock_achievement(request: AchievementUnlock, auth: CurrentAuth) -> JSONResponse:
    """Unlock an achievement for the current user."""
    service = AchievementService(auth.session)
    result = await service.unlock(auth.user_id, request.title, request.description)

    body = AchievementUnlockResponse(
        achievement=AchievementResponse.model_validate(result.achievement),
        created=result.created,
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        content=body.model_dump(mode="json"),
    )
