"""Authentication routes: session info, profile, logout and sign-in flows."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse

from questlog.auth.context import CurrentAuth
from questlog.auth.exceptions import AuthProviderNotConfiguredError
from questlog.auth.oauth import (
    GOOGLE_SCOPES,
    consume_google_oauth_state,
    exchange_google_code_for_identity,
    get_google_client,
    new_google_oauth_flow,
)
from questlog.auth.security import create_session_token
from questlog.config.settings import get_settings
from questlog.database.session import DbSession
from questlog.middleware.security import auth_route_limit
from questlog.users.schemas import ProfileUpdate, UserResponse
from questlog.users.service import update_profile, upsert_user


router = APIRouter(prefix="/api/v1/auth", tags=["auth"])
logger = logging.getLogger(__name__)

DEV_OPEN_ID = "dev_user_123"


def set_session_cookie(response: Response, token: str) -> None:
    """Set the httpOnly session cookie."""
    settings = get_settings()
    is_production = settings.ENVIRONMENT == "production"
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=is_production,
        samesite="lax",
        max_age=settings.SESSION_TTL_DAYS * 24 * 60 * 60,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    """Clear the session cookie on logout."""
    settings = get_settings()
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
        path="/",
    )


def _google_redirect_uri(request: Request) -> str:
    return str(request.url_for("google_callback"))


@router.get("/me")
async def me(auth: CurrentAuth) -> UserResponse:
    """Return the signed-in user."""
    return UserResponse.model_validate(auth.user)


@router.post("/logout")
async def logout(response: Response) -> dict[str, bool]:
    """Clear the session cookie."""
    clear_session_cookie(response)
    return {"success": True}


@router.patch("/profile")
async def edit_profile(update: ProfileUpdate, auth: CurrentAuth) -> UserResponse:
    """Change the signed-in user's name and avatar."""
    user = await update_profile(auth.session, auth.user_id, update)
    return UserResponse.model_validate(user)


@router.get("/dev", dependencies=[Depends(auth_route_limit)])
async def dev_login(session: DbSession) -> RedirectResponse:
    """Sign in as a fixed development user. Disabled unless DEV_AUTH_ENABLED."""
    settings = get_settings()
    if not settings.DEV_AUTH_ENABLED or settings.ENVIRONMENT == "production":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Dev auth is disabled")

    user = await upsert_user(session, DEV_OPEN_ID, name="Developer", email="dev@localhost", login_method="dev")
    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    set_session_cookie(response, create_session_token(user.open_id, name=user.name or ""))
    logger.info("Dev sign-in for %s", user.open_id)
    return response


@router.get("/google", dependencies=[Depends(auth_route_limit)])
async def google_login(request: Request) -> RedirectResponse:
    """Start the Google OAuth flow."""
    client = get_google_client()
    if client is None:
        raise AuthProviderNotConfiguredError("google")

    state, nonce = new_google_oauth_flow(request)
    url = await client.get_authorization_url(
        _google_redirect_uri(request),
        state=state,
        scope=GOOGLE_SCOPES,
        extras_params={"nonce": nonce},
    )
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.get("/google/callback", name="google_callback")
async def google_callback(
    request: Request,
    session: DbSession,
    code: str | None = None,
    state: str | None = None,
) -> RedirectResponse:
    """Finish the Google OAuth flow: upsert the user and issue the session cookie."""
    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="code is required")

    client = get_google_client()
    if client is None:
        raise AuthProviderNotConfiguredError("google")

    nonce = consume_google_oauth_state(request, received_state=state)
    identity = await exchange_google_code_for_identity(
        client,
        code=code,
        redirect_uri=_google_redirect_uri(request),
        expected_nonce=nonce,
    )

    user = await upsert_user(
        session,
        identity.open_id,
        name=identity.display_name,
        email=identity.email,
        login_method="google",
    )
    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    set_session_cookie(response, create_session_token(user.open_id, name=user.name or ""))
    logger.info("Google sign-in for user %s", user.id)
    return response
