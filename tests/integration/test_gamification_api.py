"""Gamification API tests: awards, progress, badges, leaderboard."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from edulingo.config import get_settings


@pytest.fixture
def internal_token(monkeypatch) -> dict[str, str]:
    monkeypatch.setenv("EDU_INTERNAL_API_TOKEN", "internal-secret")
    get_settings.cache_clear()
    return {"Authorization": "Bearer internal-secret"}


class TestCatalog:
    @pytest.mark.asyncio
    async def test_levels(self, client: AsyncClient):
        response = await client.get("/api/v1/gamification/levels")
        assert response.status_code == 200
        levels = response.json()["levels"]
        assert len(levels) == 8
        assert levels[1] == {"level": 2, "name": "Learner", "points_required": 100}

    @pytest.mark.asyncio
    async def test_badges(self, client: AsyncClient):
        response = await client.get("/api/v1/gamification/badges")
        ids = [b["id"] for b in response.json()["badges"]]
        assert ids[0] == "first_assignment"
        assert "helper" in ids


class TestAwardPointsEndpoint:
    @pytest.mark.asyncio
    async def test_points_derived_from_source(self, client: AsyncClient, make):
        student = await make.user()

        response = await client.post(
            "/api/v1/gamification/points", json={"user_id": student.id, "source": "assignment_complete"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["awarded"] is True
        assert data["points"] == 10
        assert data["progress"]["total_points"] == 10
        assert data["progress"]["current_streak"] == 1
        assert data["progress"]["points_to_next_level"] == 90

    @pytest.mark.asyncio
    async def test_grade_scored_points(self, client: AsyncClient, make):
        student = await make.user()

        response = await client.post(
            "/api/v1/gamification/points", json={"user_id": student.id, "source": "grade", "score": 92},
        )

        assert response.json()["points"] == 15

    @pytest.mark.asyncio
    async def test_grade_without_score_is_400(self, client: AsyncClient, make):
        student = await make.user()

        response = await client.post("/api/v1/gamification/points", json={"user_id": student.id, "source": "grade"})

        assert response.status_code == 400
        assert "score is required" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_negative_points_is_422(self, client: AsyncClient, make):
        student = await make.user()

        response = await client.post(
            "/api/v1/gamification/points", json={"user_id": student.id, "source": "bonus", "points": -1},
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    @pytest.mark.asyncio
    async def test_duplicate_key(self, client: AsyncClient, make):
        student = await make.user()
        body = {"user_id": student.id, "source": "class_attend", "idempotency_key": "attend:42"}

        await client.post("/api/v1/gamification/points", json=body)
        response = await client.post("/api/v1/gamification/points", json=body)

        data = response.json()
        assert data["awarded"] is False
        assert data["duplicate"] is True
        assert data["progress"] is None

    @pytest.mark.asyncio
    async def test_requires_internal_token_when_configured(self, client: AsyncClient, make, internal_token):
        student = await make.user()
        body = {"user_id": student.id, "source": "daily_login"}

        assert (await client.post("/api/v1/gamification/points", json=body)).status_code == 401
        wrong = {"Authorization": "Bearer nope"}
        assert (await client.post("/api/v1/gamification/points", json=body, headers=wrong)).status_code == 401
        ok = await client.post("/api/v1/gamification/points", json=body, headers=internal_token)
        assert ok.status_code == 200


class TestUserViews:
    @pytest.mark.asyncio
    async def test_progress_404_before_first_award(self, client: AsyncClient, make):
        student = await make.user()
        response = await client.get(f"/api/v1/gamification/users/{student.id}/progress")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_progress_and_history(self, client: AsyncClient, make):
        student = await make.user()
        uid = student.id
        await client.post("/api/v1/gamification/points", json={
            "user_id": uid, "source": "class_attend", "points": 120, "description": "Speaking club",
        })

        progress = (await client.get(f"/api/v1/gamification/users/{uid}/progress")).json()
        assert progress["current_level"] == 2
        assert progress["level_name"] == "Learner"
        assert progress["points_into_level"] == 20

        history = (await client.get(f"/api/v1/gamification/users/{uid}/points-history")).json()
        assert history["total"] == 1
        assert history["entries"][0]["description"] == "Speaking club"

    @pytest.mark.asyncio
    async def test_grant_and_list_badges(self, client: AsyncClient, make):
        student = await make.user()
        uid = student.id

        granted = await client.post(f"/api/v1/gamification/users/{uid}/badges/helper")
        again = await client.post(f"/api/v1/gamification/users/{uid}/badges/helper")
        badges = (await client.get(f"/api/v1/gamification/users/{uid}/badges")).json()

        assert granted.json() == {"badge_id": "helper", "awarded": True}
        assert again.json()["awarded"] is False
        assert badges["total_earned"] == 1
        assert badges["total_available"] == 8
        assert badges["earned"][0]["badge"]["name"] == "Helper"

    @pytest.mark.asyncio
    async def test_grant_unknown_badge_404(self, client: AsyncClient, make):
        student = await make.user()
        response = await client.post(f"/api/v1/gamification/users/{student.id}/badges/nope")
        assert response.status_code == 404


class TestLeaderboardEndpoint:
    @pytest.mark.asyncio
    async def test_group_leaderboard(self, client: AsyncClient, make):
        group = await make.group()
        ids = []
        for name, points in (("Ali", 30), ("Bobur", 70), ("Sevara", 50)):
            student = await make.user(full_name=name)
            await make.enroll(group, student)
            ids.append(student.id)
            await client.post("/api/v1/gamification/points", json={
                "user_id": student.id, "source": "class_attend", "points": points,
            })

        response = await client.get(f"/api/v1/groups/{group.id}/leaderboard", params={"limit": 2})

        data = response.json()
        assert data["group_id"] == group.id
        assert [e["user_name"] for e in data["entries"]] == ["Bobur", "Sevara"]
        assert data["entries"][0]["rank"] == 1

    @pytest.mark.asyncio
    async def test_limit_validated(self, client: AsyncClient, make):
        group = await make.group()
        response = await client.get(f"/api/v1/groups/{group.id}/leaderboard", params={"limit": 0})
        assert response.status_code == 422
