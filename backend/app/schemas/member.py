"""Pydantic v2 schemas for member ledger reads."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class MemberLedgerResponse(BaseModel):
    """A member's running booking totals and general account."""

    id: uuid.UUID
    membership_no: str
    name: str
    is_active: bool
    total_bookings: int
    last_booking_date: datetime | None = None
    booking_amount_paid: int
    booking_amount_due: int
    booking_balance: int
    balance: int
    dr_amount: int
    cr_amount: int

    model_config = ConfigDict(from_attributes=True)
