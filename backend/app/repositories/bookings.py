"""Booking persistence and collision queries."""

import logging
import uuid
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError
from app.models.booking import Booking
from app.models.enums import BookingStatus, ResourceKind, TimeSlot

logger = logging.getLogger(__name__)


class BookingRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, booking_id: uuid.UUID, for_update: bool = False) -> Booking | None:
        """Load a booking; ``for_update`` locks the row and refreshes cached state."""
        if not for_update:
            return await self.db.get(Booking, booking_id)
        query = (
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def add(self, booking: Booking) -> Booking:
        """Insert ``booking``.

        Raises:
            ConflictError: when the database rejects a second confirmed booking
                for the same slot.
        """
        self.db.add(booking)
        await self.flush(booking)
        return booking

    async def flush(self, booking: Booking) -> None:
        try:
            await self.db.flush()
        except IntegrityError as e:
            logger.warning("Booking write rejected by database: %s", e.orig)
            raise ConflictError(
                "Resource is already booked for the requested slot",
                code="RESOURCE_BOOKED",
                details={"resource_id": str(booking.resource_id)},
            ) from e
        await self.db.refresh(booking)

    async def find_overlapping(
        self,
        resource_id: uuid.UUID,
        kind: ResourceKind,
        start: datetime,
        end: datetime,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> list[Booking]:
        """Confirmed bookings whose ``[start, end)`` interval intersects the given one."""
        query = select(Booking).where(
            Booking.resource_id == resource_id,
            Booking.status == BookingStatus.CONFIRMED,
        )
        if kind is ResourceKind.ROOM:
            query = query.where(Booking.check_in < end.date(), Booking.check_out > start.date())
        elif kind is ResourceKind.PHOTOSHOOT:
            query = query.where(Booking.start_time < end, Booking.end_time > start)
        else:
            query = query.where(Booking.booking_date >= start.date(), Booking.booking_date < end.date())
        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)
        result = await self.db.execute(query.order_by(Booking.created_at))
        return list(result.scalars().all())

    async def find_slot_booking(
        self,
        resource_id: uuid.UUID,
        booking_date: date,
        time_slot: TimeSlot,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> Booking | None:
        query = select(Booking).where(
            Booking.resource_id == resource_id,
            Booking.status == BookingStatus.CONFIRMED,
            Booking.booking_date == booking_date,
            Booking.time_slot == time_slot,
        )
        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def list_for_member(self, member_id: uuid.UUID) -> list[Booking]:
        result = await self.db.execute(
            select(Booking).where(Booking.member_id == member_id).order_by(Booking.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_confirmed(self, resource_id: uuid.UUID) -> list[Booking]:
        result = await self.db.execute(
            select(Booking).where(
                Booking.resource_id == resource_id,
                Booking.status == BookingStatus.CONFIRMED,
            )
        )
        return list(result.scalars().all())
