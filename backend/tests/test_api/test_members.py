"""Tests for member booking and ledger reads."""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from app.models.member import Member
from app.models.resource import Resource

pytestmark = pytest.mark.asyncio


class TestMemberEndpoints:
    async def test_ledger_reflects_to_bill_booking(
        self,
        client: AsyncClient,
        auth_headers: dict,
        member: Member,
        hall: Resource,
    ) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json={
                "kind": "HALL",
                "membership_no": member.membership_no,
                "resource_id": str(hall.id),
                "booking_date": (date.today() + timedelta(days=14)).isoformat(),
                "time_slot": "MORNING",
                "total_price": 3000,
                "payment_status": "TO_BILL",
                "paid_amount": 1000,
            },
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert float(response.json()["booking"]["pending_amount"]) == 0

        ledger = await client.get(f"/api/v1/members/{member.membership_no}/ledger", headers=auth_headers)
        assert ledger.status_code == 200
        data = ledger.json()
        assert data["total_bookings"] == 1
        assert data["booking_amount_paid"] == 1000
        assert data["booking_amount_due"] == 0
        assert data["balance"] == 2000
        assert data["dr_amount"] == 2000

    async def test_list_bookings(
        self,
        client: AsyncClient,
        auth_headers: dict,
        member: Member,
        room: Resource,
    ) -> None:
        check_in = date.today() + timedelta(days=30)
        for offset in (0, 5):
            start = check_in + timedelta(days=offset)
            await client.post(
                "/api/v1/bookings",
                json={
                    "kind": "ROOM",
                    "membership_no": member.membership_no,
                    "resource_id": str(room.id),
                    "check_in": start.isoformat(),
                    "check_out": (start + timedelta(days=1)).isoformat(),
                },
                headers=auth_headers,
            )

        response = await client.get(f"/api/v1/members/{member.membership_no}/bookings", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {item["kind"] for item in data["items"]} == {"ROOM"}

    async def test_unknown_member(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.get("/api/v1/members/M-9999/ledger", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"]["details"]["membership_no"] == "M-9999"
