"""UserContext and the FastAPI dependency that builds it.

Every service receives the authenticated user id and the request's
AsyncSession explicitly through this context; nothing reads identity from
global state.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from questlog.auth.config import get_current_user
from questlog.database.session import DbSession
from questlog.users.models import User


class UserContext:
    """Request-scoped pairing of the authenticated user and the DB session."""

    def __init__(self, user: User, session: AsyncSession) -> None:
        self.user = user
        self.user_id: int = user.id
        self.session = session


async def get_auth_context(request: Request, session: DbSession) -> UserContext:
    """Resolve the current user and pair it with the request session."""
    user = await get_current_user(request, session)
    request.state.user_id = user.id
    return UserContext(user, session)


CurrentAuth = Annotated[UserContext, Depends(get_auth_context)]
