"""Payment voucher model — append-only audit trail of payments and refunds."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Enum, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, UUIDPrimaryKeyMixin
from app.models.enums import PaymentMode, ResourceKind, VoucherStatus, VoucherType


class PaymentVoucher(UUIDPrimaryKeyMixin, Base):
    """A payment or refund event tied to one booking.

    Vouchers are never deleted: superseded ones are marked CANCELLED so the
    history of a booking's payments stays complete.
    """

    __tablename__ = "payment_vouchers"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    booking_kind: Mapped[ResourceKind] = mapped_column(
        Enum(ResourceKind, native_enum=False, length=20),
        nullable=False,
    )
    membership_no: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_mode: Mapped[PaymentMode] = mapped_column(
        Enum(PaymentMode, native_enum=False, length=20),
        default=PaymentMode.CASH,
        nullable=False,
    )
    voucher_type: Mapped[VoucherType] = mapped_column(
        Enum(VoucherType, native_enum=False, length=20),
        nullable=False,
    )
    status: Mapped[VoucherStatus] = mapped_column(
        Enum(VoucherStatus, native_enum=False, length=20),
        nullable=False,
        index=True,
    )
    remarks: Mapped[str | None] = mapped_column(Text, default=None)
    issued_by: Mapped[str] = mapped_column(String(100), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(server_default=func.now())

    def __repr__(self) -> str:
        return (
            f"<PaymentVoucher(id={self.id}, booking_id={self.booking_id}, type={self.voucher_type.value}, "
            f"status={self.status.value}, amount={self.amount})>"
        )
