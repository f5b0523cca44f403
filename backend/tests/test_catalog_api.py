"""
API Integration Tests — Services, reviews, and the provider profile.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestServicesAPI:
    async def test_create_and_list_service(self, client: AsyncClient):
        create_resp = await client.post(
            "/api/v1/services/",
            json={"name": "Copywriting", "description": "Website and product copy"},
        )
        assert create_resp.status_code == 201
        service_id = create_resp.json()["id"]

        list_resp = await client.get("/api/v1/services/")
        assert service_id in [s["id"] for s in list_resp.json()]

    async def test_list_is_ordered_by_name(self, client: AsyncClient, seeded_db):
        names = [s["name"] for s in (await client.get("/api/v1/services/")).json()]
        assert names == sorted(names)
        assert len(names) == 8

    async def test_create_service_missing_name(self, client: AsyncClient):
        resp = await client.post("/api/v1/services/", json={"description": "nameless"})
        assert resp.status_code == 422


@pytest.mark.asyncio
class TestReviewsAPI:
    async def test_list_newest_first(self, client: AsyncClient, seeded_db):
        reviews = (await client.get("/api/v1/reviews/")).json()
        assert len(reviews) == 5
        dates = [r["date"] for r in reviews]
        assert dates == sorted(dates, reverse=True)
        assert reviews[0]["job_title"] == "Portfolio Website"

    async def test_create_review(self, client: AsyncClient, seeded_db):
        jobs = (await client.get("/api/v1/jobs/", params={"status": "completed"})).json()
        job = next(j for j in jobs if j["title"] == "Corporate Website")

        resp = await client.post(
            "/api/v1/reviews/",
            json={
                "job_id": job["id"],
                "customer_id": job["client_id"],
                "comment": "Second phase was just as great.",
                "date": "2024-12-01",
            },
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["job_title"] == "Corporate Website"
        assert body["client_name"] == "Acme Corporation"
        assert body["date"] == "2024-12-01"

    async def test_create_review_unknown_job(self, client: AsyncClient):
        resp = await client.post("/api/v1/reviews/", json={"job_id": 9999, "comment": "Who?"})
        assert resp.status_code == 404


@pytest.mark.asyncio
class TestProfileAPI:
    async def test_configured_provider(self, client: AsyncClient, seeded_db):
        resp = await client.get("/api/v1/profile/")
        assert resp.status_code == 200
        profile = resp.json()
        assert profile["name"] == "Alex Rivera"
        assert profile["hourly_rate"] == 75.0
        assert profile["is_default"] is False

    async def test_default_profile_when_missing(self, client: AsyncClient):
        resp = await client.get("/api/v1/profile/")
        assert resp.status_code == 200
        assert resp.json()["is_default"] is True
        assert resp.json()["name"] == "Demo Freelancer"

    async def test_update_profile(self, client: AsyncClient, seeded_db):
        resp = await client.patch(
            "/api/v1/profile/",
            json={"name": "Alex R. Rivera", "specialization": "Backend Development", "hourly_rate": 92.5},
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Alex R. Rivera"
        assert resp.json()["specialization"] == "Backend Development"
        assert resp.json()["hourly_rate"] == 92.5

        profile = (await client.get("/api/v1/profile/")).json()
        assert profile["hourly_rate"] == 92.5
        assert profile["email"] == "alex.rivera@freelancedesk.app"

    async def test_update_profile_taken_email(self, client: AsyncClient, seeded_db):
        resp = await client.patch("/api/v1/profile/", json={"email": "john.doe@email.com"})
        assert resp.status_code == 409

    async def test_update_profile_empty_body(self, client: AsyncClient, seeded_db):
        resp = await client.patch("/api/v1/profile/", json={})
        assert resp.status_code == 400

    async def test_update_profile_negative_rate(self, client: AsyncClient, seeded_db):
        resp = await client.patch("/api/v1/profile/", json={"hourly_rate": -1})
        assert resp.status_code == 422

    async def test_update_missing_provider(self, client: AsyncClient):
        resp = await client.patch("/api/v1/profile/", json={"name": "Nobody"})
        assert resp.status_code == 404


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
