"""Tests for the voucher status endpoint."""

import uuid
from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from app.models.member import Member
from app.models.resource import Resource

pytestmark = pytest.mark.asyncio


async def _paid_then_reduced(client: AsyncClient, headers: dict, member: Member, room: Resource) -> dict:
    check_in = date.today() + timedelta(days=30)
    created = await client.post(
        "/api/v1/bookings",
        json={
            "kind": "ROOM",
            "membership_no": member.membership_no,
            "resource_id": str(room.id),
            "check_in": check_in.isoformat(),
            "check_out": (check_in + timedelta(days=2)).isoformat(),
            "payment_status": "PAID",
        },
        headers=headers,
    )
    booking_id = created.json()["booking"]["id"]
    updated = await client.put(
        f"/api/v1/bookings/{booking_id}",
        json={"kind": "ROOM", "total_price": 6000},
        headers=headers,
    )
    return updated.json()


class TestVoucherStatus:
    async def test_confirm_refund(
        self,
        client: AsyncClient,
        auth_headers: dict,
        member: Member,
        room: Resource,
    ) -> None:
        receipt = await _paid_then_reduced(client, auth_headers, member, room)
        refund = next(v for v in receipt["issued_vouchers"] if v["voucher_type"] == "REFUND")

        response = await client.patch(
            f"/api/v1/vouchers/{refund['id']}", json={"status": "CONFIRMED"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"

        booking = await client.get(f"/api/v1/bookings/{receipt['booking']['id']}", headers=auth_headers)
        assert booking.json()["refund_returned"] is True

    async def test_cancelled_voucher_cannot_be_revived(
        self,
        client: AsyncClient,
        auth_headers: dict,
        member: Member,
        room: Resource,
    ) -> None:
        receipt = await _paid_then_reduced(client, auth_headers, member, room)
        cancelled = receipt["cancelled_vouchers"][0]

        response = await client.patch(
            f"/api/v1/vouchers/{cancelled['id']}", json={"status": "PENDING"}, headers=auth_headers
        )
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "INVALID_VOUCHER_TRANSITION"

    async def test_confirmed_payment_voucher_stays_live(
        self,
        client: AsyncClient,
        auth_headers: dict,
        member: Member,
        room: Resource,
    ) -> None:
        receipt = await _paid_then_reduced(client, auth_headers, member, room)
        payment = next(v for v in receipt["issued_vouchers"] if v["voucher_type"] == "FULL_PAYMENT")

        response = await client.patch(
            f"/api/v1/vouchers/{payment['id']}", json={"status": "CANCELLED"}, headers=auth_headers
        )
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "PAYMENT_VOUCHER_LOCKED"

        booking = await client.get(f"/api/v1/bookings/{receipt['booking']['id']}", headers=auth_headers)
        assert booking.json()["payment_status"] == "PAID"

    async def test_unknown_status_value(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.patch(
            f"/api/v1/vouchers/{uuid.uuid4()}", json={"status": "REVERSED"}, headers=auth_headers
        )
        assert response.status_code == 422

    async def test_unknown_voucher(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.patch(
            f"/api/v1/vouchers/{uuid.uuid4()}", json={"status": "CANCELLED"}, headers=auth_headers
        )
        assert response.status_code == 404
