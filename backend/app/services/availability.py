"""Availability checker — decides whether a window on a resource is bookable.

The checker never raises for a busy resource: it returns a :class:`Conflict`
describing the first obstacle found, and the caller decides what to do with
it. Checks run in a fixed order and stop at the first failure:

1. the resource is active,
2. no unexpired hold by another actor,
3. no maintenance window overlaps,
4. no confirmed booking collides (the booking being edited is ignored),
5. no standing reservation overlaps (slot-filtered when both sides have one).
"""

import enum
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Protocol

from app.models.booking import Booking
from app.models.enums import ResourceKind, TimeSlot
from app.models.resource import MaintenanceWindow, Resource, StandingReservation
from app.services.holds import HoldManager
from app.timeutils import utcnow


class ConflictCode(str, enum.Enum):
    INACTIVE = "RESOURCE_INACTIVE"
    HELD = "RESOURCE_HELD"
    MAINTENANCE = "RESOURCE_MAINTENANCE"
    BOOKED = "RESOURCE_BOOKED"
    RESERVED = "RESOURCE_RESERVED"


@dataclass(frozen=True)
class Conflict:
    code: ConflictCode
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BookingWindow:
    """Half-open ``[start, end)`` interval in club-local wall time.

    Slot bookings span their whole calendar day and also carry
    ``booking_date``/``time_slot`` so collisions are decided per slot.
    """

    start: datetime
    end: datetime
    booking_date: date | None = None
    time_slot: TimeSlot | None = None

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start < end and self.end > start


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def day_span(first: date, last: date) -> tuple[datetime, datetime]:
    """Midnight boundaries for a date range; a same-day range covers that day."""
    if last <= first:
        last = first + timedelta(days=1)
    return day_start(first), day_start(last)


class BookingLookup(Protocol):
    async def find_overlapping(
        self,
        resource_id: uuid.UUID,
        kind: ResourceKind,
        start: datetime,
        end: datetime,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> list[Booking]: ...

    async def find_slot_booking(
        self,
        resource_id: uuid.UUID,
        booking_date: date,
        time_slot: TimeSlot,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> Booking | None: ...


class OverlapFinder(Protocol):
    async def find_overlap(
        self,
        lookup: BookingLookup,
        resource: Resource,
        window: BookingWindow,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> Booking | None: ...


def _maintenance_conflict(resource: Resource, window: BookingWindow) -> Conflict | None:
    for maintenance in resource.maintenance_windows:
        start, end = day_span(maintenance.start_date, maintenance.end_date)
        if window.overlaps(start, end):
            return Conflict(
                ConflictCode.MAINTENANCE,
                f"{resource.name} is under maintenance from "
                f"{maintenance.start_date.isoformat()} to {maintenance.end_date.isoformat()}",
                _maintenance_details(maintenance),
            )
    return None


def _maintenance_details(maintenance: MaintenanceWindow) -> dict[str, Any]:
    return {
        "window_id": str(maintenance.id),
        "start_date": maintenance.start_date.isoformat(),
        "end_date": maintenance.end_date.isoformat(),
        "reason": maintenance.reason,
    }


def _reservation_conflict(resource: Resource, window: BookingWindow) -> Conflict | None:
    for reservation in resource.reservations:
        start, end = day_span(reservation.reserved_from, reservation.reserved_to)
        if not window.overlaps(start, end):
            continue
        if reservation.time_slot is not None and window.time_slot is not None:
            if reservation.time_slot != window.time_slot:
                continue
        return Conflict(
            ConflictCode.RESERVED,
            f"{resource.name} is reserved from "
            f"{reservation.reserved_from.isoformat()} to {reservation.reserved_to.isoformat()}",
            _reservation_details(reservation),
        )
    return None


def _reservation_details(reservation: StandingReservation) -> dict[str, Any]:
    return {
        "reservation_id": str(reservation.id),
        "reserved_from": reservation.reserved_from.isoformat(),
        "reserved_to": reservation.reserved_to.isoformat(),
        "time_slot": reservation.time_slot.value if reservation.time_slot else None,
        "remarks": reservation.remarks,
    }


class AvailabilityChecker:
    def __init__(
        self,
        lookup: BookingLookup,
        holds: HoldManager | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.lookup = lookup
        self.clock = clock
        self.holds = holds or HoldManager(clock)

    async def check(
        self,
        resource: Resource,
        window: BookingWindow,
        actor: str,
        policy: OverlapFinder,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> Conflict | None:
        """Return the first obstacle to booking ``window`` on ``resource``, or ``None``."""
        if not resource.is_active:
            return Conflict(
                ConflictCode.INACTIVE,
                f"{resource.name} is not available for booking",
                {"resource_id": str(resource.id)},
            )

        hold = self.holds.active_hold(resource, self.clock(), other_than=actor)
        if hold is not None:
            return Conflict(
                ConflictCode.HELD,
                f"{resource.name} is currently on hold",
                {
                    "resource_id": str(resource.id),
                    "hold_expiry": hold.hold_expiry.isoformat() if hold.hold_expiry else None,
                },
            )

        conflict = _maintenance_conflict(resource, window)
        if conflict is not None:
            return conflict

        existing = await policy.find_overlap(self.lookup, resource, window, exclude_booking_id)
        if existing is not None:
            return Conflict(
                ConflictCode.BOOKED,
                f"{resource.name} is already booked for the requested time",
                {"resource_id": str(resource.id), "booking_id": str(existing.id)},
            )

        return _reservation_conflict(resource, window)
