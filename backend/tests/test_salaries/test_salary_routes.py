"""Integration tests for the salary ledger and stats route handlers."""

import pytest
from httpx import AsyncClient


async def _upsert(test_client: AsyncClient, headers: dict, **fields) -> dict:
    body = {"username": "bo", "month": "2025-02", "total_salary": 1000, **fields}
    resp = await test_client.post("/api/salaries", json=body, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.mark.asyncio
class TestSalaryRoutes:

    async def test_requires_token(self, test_client: AsyncClient):
        resp = await test_client.get("/api/salaries")
        assert resp.status_code == 401

    async def test_upsert_overwrites(self, test_client: AsyncClient, user_headers):
        first = await _upsert(test_client, user_headers)
        second = await _upsert(test_client, user_headers, remaining_salary=400)
        assert first["id"] == second["id"]
        assert second["paid_salary"] == 600

        resp = await test_client.get("/api/salaries", params={"username": "bo"}, headers=user_headers)
        assert len(resp.json()) == 1

    async def test_invalid_month(self, test_client: AsyncClient, user_headers):
        resp = await test_client.post(
            "/api/salaries",
            json={"username": "bo", "month": "Feb", "total_salary": 10},
            headers=user_headers,
        )
        assert resp.status_code == 400

    async def test_update(self, test_client: AsyncClient, user_headers):
        row = await _upsert(test_client, user_headers)
        resp = await test_client.put(
            f"/api/salaries/{row['id']}", json={"note": "advance paid"}, headers=user_headers
        )
        assert resp.status_code == 200
        assert resp.json()["note"] == "advance paid"
        assert resp.json()["total_salary"] == 1000

    async def test_update_null_remaining(self, test_client: AsyncClient, user_headers):
        row = await _upsert(test_client, user_headers, remaining_salary=0)
        resp = await test_client.put(
            f"/api/salaries/{row['id']}", json={"remaining_salary": None}, headers=user_headers
        )
        assert resp.status_code == 200
        assert resp.json()["remaining_salary"] == 1000
        assert resp.json()["paid_salary"] == 0

    async def test_delete_admin_only(self, test_client: AsyncClient, user_headers, admin_headers):
        row = await _upsert(test_client, user_headers)
        forbidden = await test_client.delete(f"/api/salaries/{row['id']}", headers=user_headers)
        assert forbidden.status_code == 403

        resp = await test_client.delete(f"/api/salaries/{row['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["salary"]["username"] == "bo"

        again = await test_client.delete(f"/api/salaries/{row['id']}", headers=admin_headers)
        assert again.status_code == 404


@pytest.mark.asyncio
class TestStatsRoutes:

    async def test_empty_range(self, test_client: AsyncClient, user_headers):
        resp = await test_client.get("/api/stats/game-coins", params={"range": "month"}, headers=user_headers)
        assert resp.status_code == 200
        assert resp.json() == []

    async def test_unknown_range_rejected(self, test_client: AsyncClient, user_headers):
        resp = await test_client.get("/api/stats/game-coins", params={"range": "decade"}, headers=user_headers)
        assert resp.status_code == 422
