"""Tests for the availability checker, run against unsaved models and an in-memory lookup."""

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.models.booking import Booking
from app.models.enums import ResourceKind, TimeSlot
from app.models.resource import Hold, MaintenanceWindow, Resource, StandingReservation
from app.services.availability import (
    AvailabilityChecker,
    BookingWindow,
    ConflictCode,
    day_span,
    day_start,
)
from app.services.policies import policy_for

NOW = datetime(2030, 5, 1, 8, 0, tzinfo=timezone.utc)
ACTOR = "admin-1"


class FakeLookup:
    """Serves bookings from a list; mirrors the repository's filtering."""

    def __init__(self, bookings: list[Booking] | None = None) -> None:
        self.bookings = bookings or []

    async def find_overlapping(self, resource_id, kind, start, end, exclude_booking_id=None):
        found = []
        for booking in self.bookings:
            if booking.resource_id != resource_id or booking.id == exclude_booking_id:
                continue
            if kind is ResourceKind.ROOM:
                b_start, b_end = day_start(booking.check_in), day_start(booking.check_out)
            else:
                b_start, b_end = booking.start_time, booking.end_time
            if b_start < end and b_end > start:
                found.append(booking)
        return found

    async def find_slot_booking(self, resource_id, booking_date, time_slot, exclude_booking_id=None):
        for booking in self.bookings:
            if (
                booking.resource_id == resource_id
                and booking.id != exclude_booking_id
                and booking.booking_date == booking_date
                and booking.time_slot == time_slot
            ):
                return booking
        return None


def make_resource(kind: ResourceKind = ResourceKind.ROOM, **fields) -> Resource:
    fields.setdefault("is_active", True)
    return Resource(
        id=uuid.uuid4(),
        kind=kind,
        name=fields.pop("name", "Room 7"),
        member_price=Decimal("5000"),
        guest_price=Decimal("8000"),
        **fields,
    )


def room_window(check_in: date, check_out: date) -> BookingWindow:
    return policy_for(ResourceKind.ROOM).build_window({"check_in": check_in, "check_out": check_out})


def hall_window(day: date, slot: TimeSlot) -> BookingWindow:
    return policy_for(ResourceKind.HALL).build_window({"booking_date": day, "time_slot": slot})


def room_booking(resource: Resource, check_in: date, check_out: date) -> Booking:
    return Booking(
        id=uuid.uuid4(),
        resource_id=resource.id,
        kind=ResourceKind.ROOM,
        check_in=check_in,
        check_out=check_out,
    )


def checker(bookings: list[Booking] | None = None) -> AvailabilityChecker:
    return AvailabilityChecker(FakeLookup(bookings), clock=lambda: NOW)


async def check(resource, window, bookings=None, actor=ACTOR, exclude=None):
    policy = policy_for(resource.kind)
    return await checker(bookings).check(resource, window, actor, policy, exclude_booking_id=exclude)


class TestWindows:
    def test_same_day_range_covers_that_day(self):
        start, end = day_span(date(2030, 6, 1), date(2030, 6, 1))
        assert end - start == timedelta(days=1)

    def test_windows_are_half_open(self):
        window = room_window(date(2030, 6, 1), date(2030, 6, 3))
        assert not window.overlaps(day_start(date(2030, 6, 3)), day_start(date(2030, 6, 5)))
        assert window.overlaps(day_start(date(2030, 6, 2)), day_start(date(2030, 6, 5)))


class TestAvailabilityChecker:
    @pytest.mark.asyncio
    async def test_free_resource(self):
        resource = make_resource()
        assert await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3))) is None

    @pytest.mark.asyncio
    async def test_inactive_resource(self):
        resource = make_resource(is_active=False)
        conflict = await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3)))
        assert conflict.code is ConflictCode.INACTIVE

    @pytest.mark.asyncio
    async def test_hold_by_other_actor_blocks(self):
        resource = make_resource()
        resource.holds.append(Hold(on_hold=True, hold_by="someone-else", hold_expiry=datetime(2030, 5, 1, 9, 0)))
        conflict = await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3)))
        assert conflict.code is ConflictCode.HELD
        assert conflict.details["hold_expiry"] == "2030-05-01T09:00:00"

    @pytest.mark.asyncio
    async def test_own_hold_does_not_block(self):
        resource = make_resource()
        resource.holds.append(Hold(on_hold=True, hold_by=ACTOR, hold_expiry=datetime(2030, 5, 1, 9, 0)))
        assert await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3))) is None

    @pytest.mark.asyncio
    async def test_expired_hold_is_ignored(self):
        resource = make_resource()
        resource.holds.append(Hold(on_hold=True, hold_by="someone-else", hold_expiry=datetime(2030, 5, 1, 7, 59)))
        assert await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3))) is None

    @pytest.mark.asyncio
    async def test_maintenance_overlap(self):
        resource = make_resource()
        resource.maintenance_windows.append(
            MaintenanceWindow(start_date=date(2030, 6, 2), end_date=date(2030, 6, 4), reason="Plumbing")
        )
        conflict = await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3)))

        assert conflict.code is ConflictCode.MAINTENANCE
        assert conflict.details["start_date"] == "2030-06-02"
        assert conflict.details["reason"] == "Plumbing"

    @pytest.mark.asyncio
    async def test_checkout_on_maintenance_start_is_free(self):
        resource = make_resource()
        resource.maintenance_windows.append(MaintenanceWindow(start_date=date(2030, 6, 3), end_date=date(2030, 6, 4)))
        assert await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3))) is None

    @pytest.mark.asyncio
    async def test_single_day_maintenance_blocks_that_day(self):
        resource = make_resource(ResourceKind.HALL, name="Hall A")
        resource.maintenance_windows.append(MaintenanceWindow(start_date=date(2030, 6, 5), end_date=date(2030, 6, 5)))
        conflict = await check(resource, hall_window(date(2030, 6, 5), TimeSlot.MORNING))
        assert conflict.code is ConflictCode.MAINTENANCE

    @pytest.mark.asyncio
    async def test_overlapping_booking(self):
        resource = make_resource()
        existing = room_booking(resource, date(2030, 6, 2), date(2030, 6, 5))
        conflict = await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3)), [existing])

        assert conflict.code is ConflictCode.BOOKED
        assert conflict.details["booking_id"] == str(existing.id)

    @pytest.mark.asyncio
    async def test_edited_booking_does_not_conflict_with_itself(self):
        resource = make_resource()
        existing = room_booking(resource, date(2030, 6, 2), date(2030, 6, 5))
        window = room_window(date(2030, 6, 3), date(2030, 6, 6))
        assert await check(resource, window, [existing], exclude=existing.id) is None

    @pytest.mark.asyncio
    async def test_other_slot_same_day_is_free(self):
        resource = make_resource(ResourceKind.HALL, name="Hall A")
        existing = Booking(
            id=uuid.uuid4(),
            resource_id=resource.id,
            kind=ResourceKind.HALL,
            booking_date=date(2030, 6, 5),
            time_slot=TimeSlot.MORNING,
        )
        window = hall_window(date(2030, 6, 5), TimeSlot.EVENING)
        assert await check(resource, window, [existing]) is None

        conflict = await check(resource, hall_window(date(2030, 6, 5), TimeSlot.MORNING), [existing])
        assert conflict.code is ConflictCode.BOOKED

    @pytest.mark.asyncio
    async def test_reservation_blocks_matching_slot_only(self):
        resource = make_resource(ResourceKind.HALL, name="Hall A")
        resource.reservations.append(
            StandingReservation(
                reserved_from=date(2030, 6, 5),
                reserved_to=date(2030, 6, 5),
                time_slot=TimeSlot.NIGHT,
            )
        )
        assert await check(resource, hall_window(date(2030, 6, 5), TimeSlot.MORNING)) is None

        conflict = await check(resource, hall_window(date(2030, 6, 5), TimeSlot.NIGHT))
        assert conflict.code is ConflictCode.RESERVED
        assert conflict.details["time_slot"] == "NIGHT"

    @pytest.mark.asyncio
    async def test_reservation_without_slot_blocks_room(self):
        resource = make_resource()
        resource.reservations.append(
            StandingReservation(reserved_from=date(2030, 6, 2), reserved_to=date(2030, 6, 2), remarks="VIP")
        )
        conflict = await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3)))
        assert conflict.code is ConflictCode.RESERVED

    @pytest.mark.asyncio
    async def test_first_failing_check_wins(self):
        resource = make_resource()
        resource.holds.append(Hold(on_hold=True, hold_by="someone-else", hold_expiry=None))
        resource.maintenance_windows.append(MaintenanceWindow(start_date=date(2030, 6, 1), end_date=date(2030, 6, 9)))
        existing = room_booking(resource, date(2030, 6, 1), date(2030, 6, 3))

        conflict = await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3)), [existing])
        assert conflict.code is ConflictCode.HELD

        resource.holds.clear()
        conflict = await check(resource, room_window(date(2030, 6, 1), date(2030, 6, 3)), [existing])
        assert conflict.code is ConflictCode.MAINTENANCE
