"""Concurrent booking attempts through independent sessions.

Each request gets its own session, as it would behind ``get_db``; the two
share the process-wide lock registry. Uses a file database so both sessions
see each other's commits.
"""

import asyncio
from collections.abc import AsyncGenerator
from datetime import date, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import Base
from app.exceptions import ConflictError
from app.models.booking import Booking
from app.models.enums import (
    PAYMENT_VOUCHER_TYPES,
    BookingStatus,
    PaymentStatus,
    ResourceKind,
    TimeSlot,
    VoucherStatus,
)
from app.models.member import Member
from app.models.resource import Resource
from app.models.voucher import PaymentVoucher
from app.schemas.booking import HallBookingCreate, RoomBookingCreate, RoomBookingUpdate
from app.services.locks import ResourceLockRegistry
from app.services.orchestrator import BookingOrchestrator

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def catalog(session_factory) -> dict:
    async with session_factory() as session:
        member = Member(membership_no="M-3001", name="Race Member")
        room = Resource(kind=ResourceKind.ROOM, name="Room 9", member_price=Decimal("4000"), guest_price=Decimal("6000"))
        hall = Resource(
            kind=ResourceKind.HALL,
            name="Hall 2",
            member_price=Decimal("50000"),
            guest_price=Decimal("70000"),
        )
        session.add_all([member, room, hall])
        await session.commit()
        return {"member": member.membership_no, "room": room.id, "hall": hall.id}


async def _attempt(session_factory, locks: ResourceLockRegistry, request, actor: str):
    async with session_factory() as session:
        orchestrator = BookingOrchestrator(session, locks=locks)
        try:
            result = await orchestrator.create(request, actor)
        except ConflictError:
            await session.rollback()
            raise
        return result.booking.id


async def _confirmed_count(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(func.count()).select_from(Booking).where(Booking.status == BookingStatus.CONFIRMED)
        )
        return result.scalar_one()


class TestConcurrentCreates:
    async def test_same_room_window_books_once(self, session_factory, catalog: dict) -> None:
        locks = ResourceLockRegistry()
        check_in = date.today() + timedelta(days=30)
        request = RoomBookingCreate(
            kind="ROOM",
            membership_no=catalog["member"],
            resource_id=catalog["room"],
            check_in=check_in,
            check_out=check_in + timedelta(days=2),
            payment_status=PaymentStatus.PAID,
        )

        outcomes = await asyncio.gather(
            _attempt(session_factory, locks, request, "desk-a"),
            _attempt(session_factory, locks, request, "desk-b"),
            return_exceptions=True,
        )

        conflicts = [o for o in outcomes if isinstance(o, ConflictError)]
        assert len(conflicts) == 1
        assert conflicts[0].code == "RESOURCE_BOOKED"
        assert await _confirmed_count(session_factory) == 1

        async with session_factory() as session:
            member = (
                await session.execute(select(Member).where(Member.membership_no == catalog["member"]))
            ).scalar_one()
            assert member.total_bookings == 1
            assert member.booking_amount_paid == 8000

    async def test_same_hall_slot_books_once(self, session_factory, catalog: dict) -> None:
        locks = ResourceLockRegistry()
        requests = [
            HallBookingCreate(
                kind="HALL",
                membership_no=catalog["member"],
                resource_id=catalog["hall"],
                booking_date=date.today() + timedelta(days=25),
                time_slot=TimeSlot.EVENING,
                event_type=event,
            )
            for event in ("Wedding", "Conference")
        ]

        outcomes = await asyncio.gather(
            *(_attempt(session_factory, locks, request, "desk-a") for request in requests),
            return_exceptions=True,
        )

        assert sum(isinstance(o, ConflictError) for o in outcomes) == 1
        assert await _confirmed_count(session_factory) == 1


class TestConcurrentUpdates:
    async def test_same_edit_twice_settles_ledger_once(self, session_factory, catalog: dict) -> None:
        locks = ResourceLockRegistry()
        check_in = date.today() + timedelta(days=40)
        booking_id = await _attempt(
            session_factory,
            locks,
            RoomBookingCreate(
                kind="ROOM",
                membership_no=catalog["member"],
                resource_id=catalog["room"],
                check_in=check_in,
                check_out=check_in + timedelta(days=2),
                payment_status=PaymentStatus.HALF_PAID,
                paid_amount=Decimal("3000"),
            ),
            "desk-a",
        )

        async def settle(actor: str) -> str:
            async with session_factory() as session:
                orchestrator = BookingOrchestrator(session, locks=locks)
                result = await orchestrator.update(
                    booking_id, RoomBookingUpdate(kind="ROOM", payment_status=PaymentStatus.PAID), actor
                )
                return result.scenario

        scenarios = await asyncio.gather(settle("desk-a"), settle("desk-b"))
        assert sorted(scenarios) == ["STATUS_OVERRIDE", "UNCHANGED"]

        async with session_factory() as session:
            member = (
                await session.execute(select(Member).where(Member.membership_no == catalog["member"]))
            ).scalar_one()
            assert member.booking_amount_paid == 8000
            assert member.booking_amount_due == 0
            assert member.booking_balance == 8000

            booking = await session.get(Booking, booking_id)
            assert booking.payment_status is PaymentStatus.PAID
            assert booking.paid_amount == Decimal("8000")

            live = (
                await session.execute(
                    select(PaymentVoucher).where(
                        PaymentVoucher.booking_id == booking_id,
                        PaymentVoucher.voucher_type.in_(PAYMENT_VOUCHER_TYPES),
                        PaymentVoucher.status != VoucherStatus.CANCELLED,
                    )
                )
            ).scalars().all()
            assert len(live) == 1
