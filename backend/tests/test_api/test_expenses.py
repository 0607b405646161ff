"""Tests for expense endpoints."""

import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestExpenses:
    async def test_create_defaults(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post("/api/v1/expenses", json={"amount": "120.50"}, headers=auth_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["category"] == "maintenance"
        assert data["currency"] == "EGP"
        assert data["apartment_id"] is None
        assert Decimal(data["amount"]) == Decimal("120.50")

    async def test_amount_must_be_positive(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post("/api/v1/expenses", json={"amount": "0"}, headers=auth_headers)
        assert response.status_code == 422

    async def test_unknown_apartment(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            "/api/v1/expenses",
            json={"amount": "10", "apartment_id": str(uuid.uuid4())},
            headers=auth_headers,
        )
        assert response.status_code == 404

    async def test_filters(self, client: AsyncClient, auth_headers: dict, test_apartment: dict) -> None:
        await client.post(
            "/api/v1/expenses",
            json={"date": "2030-01-05", "amount": "100", "apartment_id": test_apartment["id"]},
            headers=auth_headers,
        )
        await client.post(
            "/api/v1/expenses",
            json={"date": "2030-02-05", "amount": "200", "category": "utility"},
            headers=auth_headers,
        )

        response = await client.get("/api/v1/expenses", params={"category": "utility"}, headers=auth_headers)
        assert response.json()["total"] == 1

        response = await client.get(
            "/api/v1/expenses", params={"apartment_id": test_apartment["id"]}, headers=auth_headers
        )
        assert response.json()["total"] == 1

        response = await client.get(
            "/api/v1/expenses", params={"date_from": "2030-02-01", "date_to": "2030-02-28"}, headers=auth_headers
        )
        assert [Decimal(e["amount"]) for e in response.json()["items"]] == [Decimal("200")]

    async def test_update_and_delete(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post("/api/v1/expenses", json={"amount": "50"}, headers=auth_headers)
        expense_id = response.json()["id"]

        response = await client.put(
            f"/api/v1/expenses/{expense_id}", json={"amount": "75", "description": "Pipe fix"}, headers=auth_headers
        )
        assert Decimal(response.json()["amount"]) == Decimal("75")
        assert response.json()["description"] == "Pipe fix"

        response = await client.delete(f"/api/v1/expenses/{expense_id}", headers=auth_headers)
        assert response.status_code == 200
        response = await client.put(f"/api/v1/expenses/{expense_id}", json={"amount": "1"}, headers=auth_headers)
        assert response.status_code == 404

    async def test_reception_denied_by_default(self, client: AsyncClient, reception_headers: dict) -> None:
        response = await client.get("/api/v1/expenses", headers=reception_headers)
        assert response.status_code == 403
