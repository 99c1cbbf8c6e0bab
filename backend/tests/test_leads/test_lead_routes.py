"""Integration tests for the Facebook lead routes and the storage error handler."""

from unittest.mock import patch

import pytest
from httpx import AsyncClient
from pymongo.errors import ServerSelectionTimeoutError


@pytest.mark.asyncio
class TestLeadRoutes:

    async def test_capture_and_list(self, test_client: AsyncClient, user_headers):
        resp = await test_client.post(
            "/api/facebook-leads",
            json={"name": "Dana", "email": "d@x.io", "contact_preference": "whatsapp"},
            headers=user_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["source"] == "facebook"

        listed = await test_client.get("/api/facebook-leads", headers=user_headers)
        assert [lead["name"] for lead in listed.json()] == ["Dana"]

    async def test_missing_identity(self, test_client: AsyncClient, user_headers):
        resp = await test_client.post(
            "/api/facebook-leads", json={"name": "Dana"}, headers=user_headers
        )
        assert resp.status_code == 400

    async def test_update(self, test_client: AsyncClient, user_headers):
        created = await test_client.post(
            "/api/facebook-leads", json={"name": "Dana", "email": "d@x.io"}, headers=user_headers
        )
        lead_id = created.json()["id"]
        resp = await test_client.put(
            f"/api/facebook-leads/{lead_id}",
            json={"name": "Dana", "email": "d@x.io", "phone": "555-0100"},
            headers=user_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["phone"] == "555-0100"

    async def test_export_csv(self, test_client: AsyncClient, user_headers, admin_headers):
        await test_client.post(
            "/api/facebook-leads", json={"name": "Dana", "email": "d@x.io"}, headers=user_headers
        )

        forbidden = await test_client.get("/api/facebook-leads/export", headers=user_headers)
        assert forbidden.status_code == 403

        resp = await test_client.get("/api/facebook-leads/export", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        disposition = resp.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="facebook_leads_')
        assert disposition.endswith('.csv"')
        lines = resp.text.splitlines()
        assert lines[0].startswith("Name,Email,Phone")
        assert lines[1].startswith("Dana,d@x.io")


@pytest.mark.asyncio
class TestStorageErrors:

    async def test_driver_failure_is_generic_503(self, test_client: AsyncClient, user_headers):
        with patch(
            "coinbook.services.payment_service.PaymentService.compute_totals",
            side_effect=ServerSelectionTimeoutError("mongo-0:27017 unreachable"),
        ):
            resp = await test_client.get("/api/payments/totals", headers=user_headers)
        assert resp.status_code == 503
        assert resp.json() == {"detail": "Storage unavailable"}
        assert "mongo-0" not in resp.text
