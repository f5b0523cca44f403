"""
API Integration Tests — Job CRUD and the payment opened with each job.
"""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient


async def _client_id(client: AsyncClient, name: str) -> int:
    clients = (await client.get("/api/v1/clients/")).json()
    return next(c["id"] for c in clients if c["name"] == name)


async def _service_ids(client: AsyncClient, *names: str) -> list[int]:
    services = {s["name"]: s["id"] for s in (await client.get("/api/v1/services/")).json()}
    return [services[name] for name in names]


@pytest.mark.asyncio
class TestJobsAPI:
    async def test_create_job_opens_payment(self, client: AsyncClient, seeded_db):
        payload = {
            "title": "Booking Widget",
            "description": "Embeddable booking form",
            "total_amount": 2750.5,
            "start_datetime": "2024-12-01T09:00:00",
            "locations": ["Remote", "Denver", "Remote"],
            "client_id": await _client_id(client, "Acme Corporation"),
            "services": await _service_ids(client, "Web Development", "API Development"),
        }
        resp = await client.post("/api/v1/jobs/", json=payload)
        assert resp.status_code == 201
        job = resp.json()
        assert job["status"] == "ongoing"
        assert job["total_amount"] == 2750.5
        assert sorted(job["locations"]) == ["Denver", "Remote"]
        assert set(job["services"]) == {"Web Development", "API Development"}
        assert job["client_id"] == payload["client_id"]
        assert len(job["payment_ids"]) == 1

        payment = (await client.get(f"/api/v1/payments/{job['payment_ids'][0]}")).json()
        assert payment["status"] == "pending"
        assert payment["method"] == "bank_transfer"
        assert payment["amount"] == 2750.5
        assert payment["due_date"] == (date.today() + timedelta(days=30)).isoformat()
        assert payment["job_title"] == "Booking Widget"
        assert payment["client_name"] == "Acme Corporation"

    async def test_create_job_without_client(self, client: AsyncClient):
        resp = await client.post("/api/v1/jobs/", json={"title": "Internal Tooling", "total_amount": 100})
        assert resp.status_code == 201
        assert resp.json()["client_id"] is None
        assert resp.json()["services"] == []

    async def test_create_job_unknown_client(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/jobs/",
            json={"title": "Ghost Job", "total_amount": 100, "client_id": 9999},
        )
        assert resp.status_code == 404

    async def test_create_job_unknown_service(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/jobs/",
            json={"title": "Ghost Job", "total_amount": 100, "services": [9999]},
        )
        assert resp.status_code == 404

    async def test_create_job_rejects_non_positive_amount(self, client: AsyncClient):
        resp = await client.post("/api/v1/jobs/", json={"title": "Free Work", "total_amount": 0})
        assert resp.status_code == 422

    async def test_create_job_rejects_unknown_status(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/jobs/",
            json={"title": "Odd Job", "total_amount": 10, "status": "paused"},
        )
        assert resp.status_code == 422

    async def test_list_jobs_by_status(self, client: AsyncClient, seeded_db):
        resp = await client.get("/api/v1/jobs/", params={"status": "completed"})
        assert resp.status_code == 200
        jobs = resp.json()
        assert len(jobs) == 5
        assert all(j["status"] == "completed" for j in jobs)

    async def test_update_job_replaces_locations(self, client: AsyncClient):
        job_id = (
            await client.post(
                "/api/v1/jobs/",
                json={"title": "Landing Page", "total_amount": 900, "locations": ["Remote", "Austin"]},
            )
        ).json()["id"]

        resp = await client.patch(
            f"/api/v1/jobs/{job_id}",
            json={"status": "completed", "locations": ["Austin", "Dallas"]},
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"
        assert sorted(resp.json()["locations"]) == ["Austin", "Dallas"]

    async def test_delete_job_keeps_payment(self, client: AsyncClient):
        job = (await client.post("/api/v1/jobs/", json={"title": "Short Gig", "total_amount": 300})).json()

        del_resp = await client.delete(f"/api/v1/jobs/{job['id']}")
        assert del_resp.status_code == 204

        assert (await client.get(f"/api/v1/jobs/{job['id']}")).status_code == 404
        payment_resp = await client.get(f"/api/v1/payments/{job['payment_ids'][0]}")
        assert payment_resp.status_code == 200
        assert payment_resp.json()["job_id"] is None
