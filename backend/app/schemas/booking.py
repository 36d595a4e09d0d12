"""Pydantic v2 request/response schemas for booking endpoints.

Create and update payloads are discriminated on ``kind`` so each resource
kind only accepts the window and detail fields that make sense for it.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.enums import (
    BookingStatus,
    PaidBy,
    PaymentMode,
    PaymentStatus,
    PricingType,
    ResourceKind,
    TimeSlot,
)
from app.schemas.voucher import VoucherResponse

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class _BookingCreateBase(BaseModel):
    membership_no: str = Field(..., min_length=1, max_length=50)
    resource_id: uuid.UUID
    pricing_type: PricingType = PricingType.MEMBER
    total_price: Decimal | None = Field(None, ge=0, description="Overrides the resource's list price")
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    paid_amount: Decimal | None = Field(None, ge=0)
    payment_mode: PaymentMode = PaymentMode.CASH
    paid_by: PaidBy = PaidBy.MEMBER
    guest_name: str | None = Field(None, max_length=255)
    guest_contact: str | None = Field(None, max_length=50)
    special_requests: str | None = None
    remarks: str | None = None


class RoomBookingCreate(_BookingCreateBase):
    kind: Literal["ROOM"]
    check_in: date
    check_out: date
    num_adults: int = Field(1, ge=0)
    num_children: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_dates(self) -> "RoomBookingCreate":
        """Validate that check_out is strictly after check_in."""
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class HallBookingCreate(_BookingCreateBase):
    kind: Literal["HALL"]
    booking_date: date
    time_slot: TimeSlot
    num_guests: int | None = Field(None, ge=1)
    event_type: str | None = Field(None, max_length=100)


class LawnBookingCreate(_BookingCreateBase):
    kind: Literal["LAWN"]
    booking_date: date
    time_slot: TimeSlot
    num_guests: int | None = Field(None, ge=1)
    event_type: str | None = Field(None, max_length=100)


class PhotoshootBookingCreate(_BookingCreateBase):
    kind: Literal["PHOTOSHOOT"]
    start_time: datetime


BookingCreate = Annotated[
    RoomBookingCreate | HallBookingCreate | LawnBookingCreate | PhotoshootBookingCreate,
    Field(discriminator="kind"),
]


class _BookingUpdateBase(BaseModel):
    """Fields shared by every update. Omitted fields keep their stored value."""

    resource_id: uuid.UUID | None = None
    pricing_type: PricingType | None = None
    total_price: Decimal | None = Field(None, ge=0)
    payment_status: PaymentStatus | None = None
    paid_amount: Decimal | None = Field(None, ge=0)
    payment_mode: PaymentMode | None = None
    paid_by: PaidBy | None = None
    guest_name: str | None = Field(None, max_length=255)
    guest_contact: str | None = Field(None, max_length=50)
    special_requests: str | None = None
    remarks: str | None = None


class RoomBookingUpdate(_BookingUpdateBase):
    kind: Literal["ROOM"]
    check_in: date | None = None
    check_out: date | None = None
    num_adults: int | None = Field(None, ge=0)
    num_children: int | None = Field(None, ge=0)

    @model_validator(mode="after")
    def check_dates(self) -> "RoomBookingUpdate":
        """If both dates are provided, validate check_out > check_in."""
        if self.check_in is not None and self.check_out is not None and self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class HallBookingUpdate(_BookingUpdateBase):
    kind: Literal["HALL"]
    booking_date: date | None = None
    time_slot: TimeSlot | None = None
    num_guests: int | None = Field(None, ge=1)
    event_type: str | None = Field(None, max_length=100)


class LawnBookingUpdate(_BookingUpdateBase):
    kind: Literal["LAWN"]
    booking_date: date | None = None
    time_slot: TimeSlot | None = None
    num_guests: int | None = Field(None, ge=1)
    event_type: str | None = Field(None, max_length=100)


class PhotoshootBookingUpdate(_BookingUpdateBase):
    kind: Literal["PHOTOSHOOT"]
    start_time: datetime | None = None


BookingUpdate = Annotated[
    RoomBookingUpdate | HallBookingUpdate | LawnBookingUpdate | PhotoshootBookingUpdate,
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    """Standard booking response returned from create/read/update/cancel."""

    id: uuid.UUID
    kind: ResourceKind
    resource_id: uuid.UUID
    member_id: uuid.UUID
    status: BookingStatus
    check_in: date | None = None
    check_out: date | None = None
    booking_date: date | None = None
    time_slot: TimeSlot | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    pricing_type: PricingType
    total_price: Decimal
    payment_status: PaymentStatus
    paid_amount: Decimal
    pending_amount: Decimal
    refund_amount: Decimal
    refund_returned: bool
    paid_by: PaidBy
    guest_name: str | None = None
    guest_contact: str | None = None
    num_adults: int | None = None
    num_children: int | None = None
    num_guests: int | None = None
    event_type: str | None = None
    special_requests: str | None = None
    remarks: str | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingListResponse(BaseModel):
    items: list[BookingResponse]
    total: int


class LedgerDeltaResponse(BaseModel):
    """Money movements a booking write applied to the member ledger."""

    paid: Decimal
    due: Decimal
    to_balance: Decimal
    refund: Decimal

    model_config = ConfigDict(from_attributes=True)


class BookingReceipt(BaseModel):
    """Result of a create or update: the booking plus every side effect."""

    booking: BookingResponse
    scenario: str | None = None
    issued_vouchers: list[VoucherResponse]
    cancelled_vouchers: list[VoucherResponse]
    ledger_delta: LedgerDeltaResponse
    refund_amount: Decimal

    model_config = ConfigDict(from_attributes=True)
