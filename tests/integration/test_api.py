"""HTTP surface: routing, validation, error shape and auth modes."""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from questlog.auth.security import create_session_token
from questlog.config.settings import Settings
from questlog.exceptions import ConflictError
from questlog.progress.service import ProgressService
from questlog.users.service import upsert_user


async def _create_course(client: AsyncClient, **overrides: object) -> dict:
    body = {"title": "Intro to Python", "category": "course", "total_hours": 20} | overrides
    response = await client.post("/api/v1/courses", json=body)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_progress_for_new_user(client: AsyncClient) -> None:
    response = await client.get("/api/v1/progress")

    assert response.status_code == 200
    data = response.json()
    assert data["current_level"] == 1
    assert data["current_experience"] == 0
    assert data["total_experience"] == 0
    assert data["experience_to_next_level"] == 1000
    assert data["percent_to_next_level"] == 0.0


@pytest.mark.asyncio
async def test_award_experience(client: AsyncClient) -> None:
    response = await client.post("/api/v1/progress/experience", json={"amount": 1200})

    assert response.status_code == 200
    data = response.json()
    assert data["amount"] == 1200
    assert data["leveled_up"] is True
    assert data["levels_gained"] == 1
    assert data["progress"]["current_level"] == 2
    assert data["progress"]["current_experience"] == 200
    assert data["progress"]["experience_to_next_level"] == 1100


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -10, "100", 12.5])
async def test_award_rejects_bad_amounts(client: AsyncClient, amount: object) -> None:
    response = await client.post("/api/v1/progress/experience", json={"amount": amount})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["category"] == "VALIDATION_ERROR"
    assert error["code"] == "INVALID_INPUT"
    assert error["metadata"]["errors"]


@pytest.mark.asyncio
async def test_course_flow(client: AsyncClient) -> None:
    course = await _create_course(client)
    assert course["status"] == "not_started"
    assert course["progress_percentage"] == 0

    response = await client.patch(f"/api/v1/courses/{course['id']}/progress", json={"completed_hours": 10})
    assert response.status_code == 200
    assert response.json()["course"]["status"] == "in_progress"
    assert response.json()["course"]["progress_percentage"] == 50
    assert response.json()["xp_awarded"] == 0

    response = await client.patch(f"/api/v1/courses/{course['id']}/progress", json={"completed_hours": 20})
    data = response.json()
    assert data["course"]["status"] == "completed"
    assert data["xp_awarded"] == 500
    assert data["progress"]["total_experience"] == 500
    assert {a["title"] for a in data["achievements_unlocked"]} == {"Completed: Intro to Python", "First Steps"}

    listing = await client.get("/api/v1/courses")
    assert [c["id"] for c in listing.json()] == [course["id"]]

    achievements = await client.get("/api/v1/achievements")
    assert len(achievements.json()) == 2


@pytest.mark.asyncio
async def test_hours_above_total_return_400(client: AsyncClient) -> None:
    course = await _create_course(client)

    response = await client.patch(f"/api/v1/courses/{course['id']}/progress", json={"completed_hours": 25})

    assert response.status_code == 400
    assert response.json()["error"]["category"] == "VALIDATION_ERROR"
    stored = await client.get(f"/api/v1/courses/{course['id']}")
    assert stored.json()["completed_hours"] == 0
    assert stored.json()["status"] == "not_started"


@pytest.mark.asyncio
async def test_increment_endpoint(client: AsyncClient) -> None:
    course = await _create_course(client, total_hours=1, category="bootcamp")

    response = await client.post(f"/api/v1/courses/{course['id']}/increment")
    assert response.status_code == 200
    assert response.json()["course"]["status"] == "completed"
    assert response.json()["xp_awarded"] == 750

    again = await client.post(f"/api/v1/courses/{course['id']}/increment")
    assert again.json()["course"]["completed_hours"] == 1
    assert again.json()["xp_awarded"] == 0


@pytest.mark.asyncio
async def test_unknown_course_returns_404(client: AsyncClient) -> None:
    response = await client.patch("/api/v1/courses/424242/progress", json={"completed_hours": 1})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_create_course_validation(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/courses", json={"title": "Nope", "category": "podcast", "total_hours": 0}
    )

    assert response.status_code == 422
    fields = {e["field"] for e in response.json()["error"]["metadata"]["errors"]}
    assert "body -> category" in fields
    assert "body -> total_hours" in fields


@pytest.mark.asyncio
async def test_unlock_achievement_is_idempotent(client: AsyncClient) -> None:
    first = await client.post("/api/v1/achievements", json={"title": "Night Owl"})
    second = await client.post("/api/v1/achievements", json={"title": "Night Owl"})

    assert first.status_code == 201
    assert first.json()["created"] is True
    assert second.status_code == 200
    assert second.json()["created"] is False
    assert second.json()["achievement"]["id"] == first.json()["achievement"]["id"]
    assert second.json()["achievement"]["icon"] == "/badge-achievement.png"


@pytest.mark.asyncio
async def test_me_in_single_user_mode(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/me")

    assert response.status_code == 200
    assert response.json()["open_id"] == "local-user"
    assert response.json()["role"] == "user"


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient) -> None:
    response = await client.patch("/api/v1/auth/profile", json={"name": "Ranger", "avatar": "/avatars/ranger.png"})

    assert response.status_code == 200
    assert response.json()["name"] == "Ranger"
    assert response.json()["avatar"] == "/avatars/ranger.png"

    blank = await client.patch("/api/v1/auth/profile", json={"name": "   "})
    assert blank.status_code == 422


@pytest.mark.asyncio
async def test_logout_clears_cookie(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert "app_session_id=" in response.headers["set-cookie"]


@pytest.mark.asyncio
async def test_session_mode_requires_token(
    client: AsyncClient, settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "AUTH_PROVIDER", "session")

    response = await client.get("/api/v1/progress")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_REQUIRED"


@pytest.mark.asyncio
async def test_session_mode_rejects_bad_token(
    client: AsyncClient, settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "AUTH_PROVIDER", "session")

    response = await client.get("/api/v1/courses", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_session_mode_rejects_unknown_user(
    client: AsyncClient, settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "AUTH_PROVIDER", "session")
    token = create_session_token("google_never_signed_in")

    response = await client.get("/api/v1/auth/me", headers={"Cookie": f"app_session_id={token}"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_session_cookie_scopes_data_to_user(
    client: AsyncClient,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "AUTH_PROVIDER", "session")
    async with session_factory() as session:
        await upsert_user(session, "google_alice", name="alice", login_method="google")
        await upsert_user(session, "google_bob", name="bob", login_method="google")
    alice = {"Authorization": f"Bearer {create_session_token('google_alice')}"}
    bob = {"Authorization": f"Bearer {create_session_token('google_bob')}"}

    created = await client.post(
        "/api/v1/courses", json={"title": "Alice's", "category": "trail", "total_hours": 5}, headers=alice
    )
    assert created.status_code == 201

    me = await client.get("/api/v1/auth/me", headers=alice)
    assert me.json()["open_id"] == "google_alice"
    assert len((await client.get("/api/v1/courses", headers=alice)).json()) == 1
    assert (await client.get("/api/v1/courses", headers=bob)).json() == []

    response = await client.post(f"/api/v1/courses/{created.json()['id']}/increment", headers=bob)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_dev_login_disabled_by_default(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/dev", follow_redirects=False)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_dev_login_sets_session_cookie(
    client: AsyncClient, settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "DEV_AUTH_ENABLED", True)
    monkeypatch.setattr(settings, "AUTH_PROVIDER", "session")

    response = await client.get("/api/v1/auth/dev", follow_redirects=False)

    assert response.status_code == 302
    token = response.cookies["app_session_id"]
    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["open_id"] == "dev_user_123"
    assert me.json()["login_method"] == "dev"


@pytest.mark.asyncio
async def test_google_login_not_configured(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/google", follow_redirects=False)
    assert response.status_code == 500
    assert response.json()["error"]["category"] == "INTERNAL_ERROR"


@pytest.mark.asyncio
async def test_percent_to_next_level_is_capped(client: AsyncClient) -> None:
    response = await client.post("/api/v1/progress/experience", json={"amount": 2500})

    progress = response.json()["progress"]
    assert progress["current_experience"] == 1500
    assert progress["experience_to_next_level"] == 1100
    assert progress["percent_to_next_level"] == 100.0


@pytest.mark.asyncio
async def test_conflicting_award_returns_409(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def conflicting(self, user_id: int, amount: int, *, commit: bool = True):
        raise ConflictError("Progress was updated concurrently, please retry")

    monkeypatch.setattr(ProgressService, "award_experience", conflicting)

    response = await client.post("/api/v1/progress/experience", json={"amount": 10})

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["category"] == "CONFLICT_ERROR"
    assert error["code"] == "CONCURRENT_UPDATE"


@pytest.mark.asyncio
async def test_write_fails_with_503_when_store_unreachable(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    # Sign the local user in first so the only commit left is the course insert
    assert (await client.get("/api/v1/auth/me")).status_code == 200

    async def unreachable(self) -> None:
        raise OperationalError("COMMIT", {}, ConnectionRefusedError("connection refused to db-host:5432"))

    monkeypatch.setattr(AsyncSession, "commit", unreachable)

    response = await client.post("/api/v1/courses", json={"title": "Offline", "category": "course", "total_hours": 3})

    assert response.status_code == 503
    error = response.json()["error"]
    assert error["code"] == "DB_CONNECTION_FAILED"
    assert error["detail"] == "Service temporarily unavailable"
    assert "db-host" not in response.text
    assert "COMMIT" not in response.text
