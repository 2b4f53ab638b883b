"""Tests for the admin HTTP surface."""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from jobqueue.commands.fail_job import fail_job
from jobqueue.domain.errors import ExecutionError
from jobqueue.main import create_app


@pytest_asyncio.fixture
async def queue(make_queue, clock):
    return make_queue(clock=clock)


@pytest_asyncio.fixture
async def client(queue):
    """Client without lifespan: workers stay stopped so job states are predictable."""
    app = create_app(queue)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


class TestJobEndpoints:
    @pytest.mark.asyncio
    async def test_create_job(self, client):
        response = await client.post("/api/v1/jobs", json={"type": "resize", "payload": {"w": 10}, "priority": 3})

        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "resize"
        assert data["status"] == "waiting"
        assert data["payload"] == {"w": 10}
        assert data["priority"] == 3
        assert data["attempts"] == 0

    @pytest.mark.asyncio
    async def test_create_job_with_empty_type(self, client):
        response = await client.post("/api/v1/jobs", json={"type": ""})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_jobs_in_dispatch_order(self, client):
        for priority in (1, 9, 5):
            await client.post("/api/v1/jobs", json={"type": "work", "priority": priority})

        response = await client.get("/api/v1/jobs", params={"status": "waiting", "limit": 2})

        assert response.status_code == 200
        assert [job["priority"] for job in response.json()] == [9, 5]

    @pytest.mark.asyncio
    async def test_get_job(self, client, queue):
        job = queue.add("work", {"a": 1})

        response = await client.get(f"/api/v1/jobs/{job.id}")

        assert response.status_code == 200
        assert response.json()["id"] == job.id

    @pytest.mark.asyncio
    async def test_get_missing_job(self, client):
        response = await client.get("/api/v1/jobs/does-not-exist")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_job(self, client, queue):
        job = queue.add("work", {})

        assert (await client.delete(f"/api/v1/jobs/{job.id}")).status_code == 204
        assert (await client.delete(f"/api/v1/jobs/{job.id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_active_job_conflicts(self, client, queue, clock):
        job = queue.add("work", {})
        queue.store.claim_next(clock.now())

        response = await client.delete(f"/api/v1/jobs/{job.id}")

        assert response.status_code == 409
        fail_job(queue.store, queue.events, clock, queue.retry_policy, job.id, ExecutionError("done"), retryable=False)
        assert (await client.delete(f"/api/v1/jobs/{job.id}")).status_code == 204


class TestAdminEndpoints:
    @pytest.mark.asyncio
    async def test_stats(self, client, queue):
        queue.add("a", {})
        queue.add("b", {}, delay=30)

        response = await client.get("/api/v1/admin/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == queue.name
        assert data["waiting"] == 2
        assert data["delayed"] == 1
        assert data["total_jobs"] == 2
        assert data["per_type"]["a"]["waiting"] == 1
        assert data["is_running"] is False

    @pytest.mark.asyncio
    async def test_sweep(self, client, queue, clock):
        job = queue.add("work", {}, max_retries=0)
        queue.store.claim_next(clock.now())
        fail_job(queue.store, queue.events, clock, queue.retry_policy, job.id, ExecutionError("boom"))
        clock.advance(100)

        response = await client.post("/api/v1/admin/sweep", params={"older_than_seconds": 50})

        assert response.status_code == 200
        assert response.json() == {"removed_count": 1}

    @pytest.mark.asyncio
    async def test_workers_empty_before_start(self, client):
        response = await client.get("/api/v1/workers")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_health_and_metrics(self, client, queue):
        queue.add("work", {})

        health = await client.get("/health")
        assert health.json() == {"status": "ok", "queue": queue.name, "running": False}

        metrics = await client.get("/metrics")
        assert metrics.status_code == 200
        assert "job_added_total" in metrics.text
