"""Per-kind booking rules.

The orchestrator is generic; everything that differs between rooms, halls,
lawns and photoshoots (window shape, price, collision query, capacity,
which columns get written) lives in one :class:`ResourceKindPolicy` per kind.

Policies work on plain mappings of field values so the same code serves a
create request and an update merged over the stored booking.
"""

import uuid
from collections.abc import Mapping
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

from app.config import settings
from app.exceptions import ValidationError
from app.models.booking import Booking
from app.models.enums import PricingType, ResourceKind, TimeSlot
from app.models.resource import Resource
from app.services.availability import BookingLookup, BookingWindow, day_start
from app.services.payments import as_money
from app.timeutils import club_now


def _required(values: Mapping[str, Any], field: str, label: str) -> Any:
    value = values.get(field)
    if value is None:
        raise ValidationError(f"{label} is required", details={"field": field})
    return value


def _local(moment: datetime) -> datetime:
    """Naive datetimes are already club-local; aware ones are converted."""
    if moment.tzinfo is None:
        return moment
    return club_now(moment)


class ResourceKindPolicy:
    kind: ResourceKind
    label: str
    window_fields: tuple[str, ...] = ()
    detail_fields: tuple[str, ...] = ()

    def build_window(self, values: Mapping[str, Any]) -> BookingWindow:
        raise NotImplementedError

    def starts_in_past(self, window: BookingWindow, now_local: datetime) -> bool:
        return window.start < day_start(now_local.date())

    def lookup_price(self, resource: Resource, window: BookingWindow, pricing_type: PricingType) -> Decimal:
        """Flat list price for the member or guest tariff."""
        if pricing_type is PricingType.GUEST:
            return as_money(resource.guest_price)
        return as_money(resource.member_price)

    async def find_overlap(
        self,
        lookup: BookingLookup,
        resource: Resource,
        window: BookingWindow,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> Booking | None:
        rows = await lookup.find_overlapping(resource.id, self.kind, window.start, window.end, exclude_booking_id)
        return rows[0] if rows else None

    def capacity_check(self, resource: Resource, values: Mapping[str, Any]) -> None:
        return None

    def apply_details(self, booking: Booking, window: BookingWindow, values: Mapping[str, Any]) -> None:
        for field in self.detail_fields:
            setattr(booking, field, values.get(field))

    def describe(self, resource: Resource, window: BookingWindow) -> str:
        raise NotImplementedError

    def occupies(self, booking: Booking, now_local: datetime) -> bool:
        """Whether ``booking`` holds the resource at ``now_local``."""
        raise NotImplementedError

    def current_values(self, booking: Booking) -> dict[str, Any]:
        return {field: getattr(booking, field) for field in self.window_fields + self.detail_fields}


class RoomPolicy(ResourceKindPolicy):
    kind = ResourceKind.ROOM
    label = "Room"
    window_fields = ("check_in", "check_out")
    detail_fields = ("num_adults", "num_children")

    def build_window(self, values: Mapping[str, Any]) -> BookingWindow:
        check_in: date = _required(values, "check_in", "Check-in date")
        check_out: date = _required(values, "check_out", "Check-out date")
        if check_in >= check_out:
            raise ValidationError(
                "Check-out must be after check-in",
                details={"check_in": check_in.isoformat(), "check_out": check_out.isoformat()},
            )
        return BookingWindow(start=day_start(check_in), end=day_start(check_out))

    def lookup_price(self, resource: Resource, window: BookingWindow, pricing_type: PricingType) -> Decimal:
        nights = (window.end.date() - window.start.date()).days
        return super().lookup_price(resource, window, pricing_type) * nights

    def capacity_check(self, resource: Resource, values: Mapping[str, Any]) -> None:
        adults = values.get("num_adults") or 0
        children = values.get("num_children") or 0
        if adults < 1:
            raise ValidationError("At least one adult is required", details={"num_adults": adults})
        if adults + children > settings.room_max_occupancy:
            raise ValidationError(
                f"A room holds at most {settings.room_max_occupancy} guests",
                details={"num_adults": adults, "num_children": children},
            )

    def apply_details(self, booking: Booking, window: BookingWindow, values: Mapping[str, Any]) -> None:
        booking.check_in = window.start.date()
        booking.check_out = window.end.date()
        booking.num_adults = values.get("num_adults") or 1
        booking.num_children = values.get("num_children") or 0

    def describe(self, resource: Resource, window: BookingWindow) -> str:
        return f"{resource.name} | {window.start.date().isoformat()} to {window.end.date().isoformat()}"

    def occupies(self, booking: Booking, now_local: datetime) -> bool:
        today = now_local.date()
        return booking.check_in <= today < booking.check_out


class _SlotPolicy(ResourceKindPolicy):
    """Single-day events booked by date and time slot."""

    window_fields = ("booking_date", "time_slot")
    detail_fields = ("num_guests", "event_type")

    def build_window(self, values: Mapping[str, Any]) -> BookingWindow:
        booking_date: date = _required(values, "booking_date", "Booking date")
        time_slot = TimeSlot(_required(values, "time_slot", "Time slot"))
        start = day_start(booking_date)
        return BookingWindow(
            start=start,
            end=start + timedelta(days=1),
            booking_date=booking_date,
            time_slot=time_slot,
        )

    async def find_overlap(
        self,
        lookup: BookingLookup,
        resource: Resource,
        window: BookingWindow,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> Booking | None:
        return await lookup.find_slot_booking(resource.id, window.booking_date, window.time_slot, exclude_booking_id)

    def apply_details(self, booking: Booking, window: BookingWindow, values: Mapping[str, Any]) -> None:
        booking.booking_date = window.booking_date
        booking.time_slot = window.time_slot
        super().apply_details(booking, window, values)

    def describe(self, resource: Resource, window: BookingWindow) -> str:
        return f"{resource.name} | {window.booking_date.isoformat()} | {window.time_slot.value}"

    def occupies(self, booking: Booking, now_local: datetime) -> bool:
        return booking.booking_date == now_local.date()


class HallPolicy(_SlotPolicy):
    kind = ResourceKind.HALL
    label = "Hall"

    def capacity_check(self, resource: Resource, values: Mapping[str, Any]) -> None:
        guests = values.get("num_guests")
        if guests is not None and resource.max_guests is not None and guests > resource.max_guests:
            raise ValidationError(
                f"{resource.name} holds at most {resource.max_guests} guests",
                details={"num_guests": guests, "max_guests": resource.max_guests},
            )


class LawnPolicy(_SlotPolicy):
    kind = ResourceKind.LAWN
    label = "Lawn"

    def capacity_check(self, resource: Resource, values: Mapping[str, Any]) -> None:
        guests = _required(values, "num_guests", "Number of guests")
        minimum = resource.min_guests or 0
        if guests < minimum or (resource.max_guests is not None and guests > resource.max_guests):
            raise ValidationError(
                f"{resource.name} takes between {minimum} and {resource.max_guests} guests",
                details={
                    "num_guests": guests,
                    "min_guests": resource.min_guests,
                    "max_guests": resource.max_guests,
                },
            )


class PhotoshootPolicy(ResourceKindPolicy):
    kind = ResourceKind.PHOTOSHOOT
    label = "Photoshoot"
    window_fields = ("start_time",)

    def build_window(self, values: Mapping[str, Any]) -> BookingWindow:
        start = _local(_required(values, "start_time", "Start time"))
        closed_from, closed_until = settings.photoshoot_closed_from_hour, settings.photoshoot_closed_until_hour
        if closed_from <= start.hour < closed_until:
            raise ValidationError(
                f"Photoshoot slots cannot start between {closed_from:02d}:00 and {closed_until:02d}:00",
                details={"start_time": start.isoformat()},
            )
        return BookingWindow(start=start, end=start + timedelta(hours=settings.photoshoot_slot_hours))

    def starts_in_past(self, window: BookingWindow, now_local: datetime) -> bool:
        return window.start < now_local

    def apply_details(self, booking: Booking, window: BookingWindow, values: Mapping[str, Any]) -> None:
        booking.start_time = window.start
        booking.end_time = window.end

    def describe(self, resource: Resource, window: BookingWindow) -> str:
        return f"{resource.name} | {window.start:%Y-%m-%d %H:%M} to {window.end:%H:%M}"

    def occupies(self, booking: Booking, now_local: datetime) -> bool:
        return booking.start_time <= now_local < booking.end_time


POLICIES: dict[ResourceKind, ResourceKindPolicy] = {
    policy.kind: policy for policy in (RoomPolicy(), HallPolicy(), LawnPolicy(), PhotoshootPolicy())
}


def policy_for(kind: ResourceKind | str) -> ResourceKindPolicy:
    return POLICIES[ResourceKind(kind)]
