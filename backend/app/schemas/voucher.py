"""Pydantic v2 schemas for payment vouchers."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from app.models.enums import PaymentMode, ResourceKind, VoucherStatus, VoucherType


class VoucherResponse(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    booking_kind: ResourceKind
    membership_no: str
    amount: Decimal
    payment_mode: PaymentMode
    voucher_type: VoucherType
    status: VoucherStatus
    remarks: str | None = None
    issued_by: str
    issued_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoucherStatusUpdate(BaseModel):
    """Payout or confirmation step recorded by the finance desk."""

    status: VoucherStatus
