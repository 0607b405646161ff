"""Tests for the commission ledger."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _book(client: AsyncClient, headers: dict, apartment: dict, customer: dict, offset: int, **extra) -> dict:
    start = date.today() + timedelta(days=offset)
    payload = {
        "apartment_id": apartment["id"],
        "customer_id": customer["id"],
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=2)).isoformat(),
    }
    payload.update(extra)
    response = await client.post("/api/v1/bookings", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCommissionLedger:
    async def test_totals_per_currency(
        self, client: AsyncClient, auth_headers: dict, test_apartment: dict, test_customer: dict
    ) -> None:
        await _book(client, auth_headers, test_apartment, test_customer, 10, commission_amount="150")
        await _book(client, auth_headers, test_apartment, test_customer, 20, commission_amount="50", commission_paid=True)
        await _book(client, auth_headers, test_apartment, test_customer, 30, currency="USD", commission_amount="5")
        await _book(client, auth_headers, test_apartment, test_customer, 40)

        response = await client.get("/api/v1/commissions", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 3
        totals = data["totals"]
        assert Decimal(totals["total_egp"]) == Decimal("200")
        assert Decimal(totals["paid_egp"]) == Decimal("50")
        assert Decimal(totals["unpaid_egp"]) == Decimal("150")
        assert Decimal(totals["total_usd"]) == Decimal("5")
        assert data["items"][0]["unit_number"] == "A-101"
        assert data["items"][0]["customer_name"] == "Test Guest"

    async def test_paid_filter_keeps_totals(
        self, client: AsyncClient, auth_headers: dict, test_apartment: dict, test_customer: dict
    ) -> None:
        await _book(client, auth_headers, test_apartment, test_customer, 10, commission_amount="150")
        await _book(client, auth_headers, test_apartment, test_customer, 20, commission_amount="50", commission_paid=True)

        response = await client.get("/api/v1/commissions", params={"paid": "false"}, headers=auth_headers)
        data = response.json()
        assert [Decimal(i["commission_amount"]) for i in data["items"]] == [Decimal("150")]
        assert Decimal(data["totals"]["total_egp"]) == Decimal("200")

    async def test_cancelled_excluded(
        self, client: AsyncClient, auth_headers: dict, test_apartment: dict, test_customer: dict
    ) -> None:
        booking = await _book(client, auth_headers, test_apartment, test_customer, 10, commission_amount="150")
        await client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth_headers)
        response = await client.get("/api/v1/commissions", headers=auth_headers)
        assert response.json()["items"] == []

    async def test_mark_paid(
        self, client: AsyncClient, auth_headers: dict, test_apartment: dict, test_customer: dict
    ) -> None:
        booking = await _book(client, auth_headers, test_apartment, test_customer, 10, commission_amount="150")
        response = await client.patch(
            f"/api/v1/commissions/{booking['id']}", json={"commission_paid": True}, headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["commission_paid"] is True
        assert Decimal(data["total_amount"]) == Decimal(booking["total_amount"])

    async def test_patch_cancelled_conflict(
        self, client: AsyncClient, auth_headers: dict, test_apartment: dict, test_customer: dict
    ) -> None:
        booking = await _book(client, auth_headers, test_apartment, test_customer, 10, commission_amount="150")
        await client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth_headers)
        response = await client.patch(
            f"/api/v1/commissions/{booking['id']}", json={"commission_paid": True}, headers=auth_headers
        )
        assert response.status_code == 409

    async def test_reception_denied(self, client: AsyncClient, reception_headers: dict) -> None:
        response = await client.get("/api/v1/commissions", headers=reception_headers)
        assert response.status_code == 403
