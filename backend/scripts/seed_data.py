"""Seed the database with sample club members, facilities and bookings.

Creates the schema if it does not exist, wipes booking data, then inserts a
handful of members, one resource of each kind (plus a maintenance window and
a standing reservation) and a few bookings made through the orchestrator so
vouchers and member ledgers are consistent.

Run inside Docker:
    docker compose exec backend python -m scripts.seed_data
"""

import asyncio
import sys
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pydantic import TypeAdapter
from sqlalchemy import delete

from app.database import Base, async_session_factory, engine
from app.models.booking import Booking
from app.models.enums import ResourceKind, TimeSlot
from app.models.member import Member
from app.models.resource import Hold, MaintenanceWindow, Resource, StandingReservation
from app.models.voucher import PaymentVoucher
from app.schemas.booking import BookingCreate
from app.services.orchestrator import BookingOrchestrator

SEED_ACTOR = "seed-script"

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

MEMBERS = [
    {"membership_no": "M-1001", "name": "Ayesha Khan"},
    {"membership_no": "M-1002", "name": "Bilal Ahmed"},
    {"membership_no": "M-1003", "name": "Sana Malik"},
]

RESOURCES = [
    {
        "kind": ResourceKind.ROOM,
        "name": "Deluxe Room 101",
        "member_price": Decimal("8000.00"),
        "guest_price": Decimal("12000.00"),
    },
    {
        "kind": ResourceKind.HALL,
        "name": "Banquet Hall",
        "member_price": Decimal("150000.00"),
        "guest_price": Decimal("220000.00"),
        "max_guests": 400,
    },
    {
        "kind": ResourceKind.LAWN,
        "name": "Front Lawn",
        "member_price": Decimal("90000.00"),
        "guest_price": Decimal("130000.00"),
        "min_guests": 100,
        "max_guests": 600,
    },
    {
        "kind": ResourceKind.PHOTOSHOOT,
        "name": "Studio Session",
        "member_price": Decimal("10000.00"),
        "guest_price": Decimal("16000.00"),
    },
]

_booking_adapter = TypeAdapter(BookingCreate)


def _build_bookings(resources: dict[ResourceKind, Resource], today: date) -> list[dict]:
    """Return booking payloads relative to ``today``."""
    return [
        {
            "kind": "ROOM",
            "membership_no": "M-1001",
            "resource_id": resources[ResourceKind.ROOM].id,
            "check_in": today + timedelta(days=5),
            "check_out": today + timedelta(days=7),
            "num_adults": 2,
            "payment_status": "PAID",
        },
        {
            "kind": "HALL",
            "membership_no": "M-1002",
            "resource_id": resources[ResourceKind.HALL].id,
            "booking_date": today + timedelta(days=20),
            "time_slot": TimeSlot.EVENING,
            "num_guests": 250,
            "event_type": "Wedding reception",
            "payment_status": "HALF_PAID",
            "paid_amount": Decimal("50000"),
        },
        {
            "kind": "LAWN",
            "membership_no": "M-1003",
            "resource_id": resources[ResourceKind.LAWN].id,
            "booking_date": today + timedelta(days=12),
            "time_slot": TimeSlot.NIGHT,
            "num_guests": 150,
            "payment_status": "TO_BILL",
            "paid_amount": Decimal("30000"),
        },
        {
            "kind": "PHOTOSHOOT",
            "membership_no": "M-1001",
            "resource_id": resources[ResourceKind.PHOTOSHOOT].id,
            "start_time": datetime.combine(today + timedelta(days=3), time(11, 0)),
            "payment_status": "UNPAID",
        },
    ]


# ---------------------------------------------------------------------------
# Main seed function
# ---------------------------------------------------------------------------


async def seed() -> None:
    """Populate the database with sample data.

    Idempotent: all booking data is deleted before re-seeding.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        for model in (PaymentVoucher, Booking, Hold, StandingReservation, MaintenanceWindow, Resource, Member):
            await session.execute(delete(model))
        await session.flush()

        for member_data in MEMBERS:
            session.add(Member(**member_data))

        resources: dict[ResourceKind, Resource] = {}
        for resource_data in RESOURCES:
            resource = Resource(**resource_data)
            session.add(resource)
            resources[resource.kind] = resource
        await session.flush()

        today = date.today()
        session.add(
            MaintenanceWindow(
                resource_id=resources[ResourceKind.ROOM].id,
                start_date=today + timedelta(days=30),
                end_date=today + timedelta(days=33),
                reason="Repainting",
            )
        )
        session.add(
            StandingReservation(
                resource_id=resources[ResourceKind.HALL].id,
                reserved_from=today + timedelta(days=40),
                reserved_to=today + timedelta(days=41),
                time_slot=TimeSlot.NIGHT,
                remarks="Annual general meeting",
            )
        )
        await session.commit()

        print(f"✅ Created {len(MEMBERS)} members and {len(resources)} resources")

        orchestrator = BookingOrchestrator(session)
        for payload in _build_bookings(resources, today):
            result = await orchestrator.create(_booking_adapter.validate_python(payload), SEED_ACTOR)
            booking = result.booking
            print(
                f"   📅 {booking.kind.value:<10} {payload['membership_no']} "
                f"total={booking.total_price} {booking.payment_status.value}"
            )

    await engine.dispose()
    print("🎉 Done!")


if __name__ == "__main__":
    asyncio.run(seed())
