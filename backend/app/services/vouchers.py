"""Voucher ledger — append-only payment and refund records per booking.

A booking has at most one live (non-cancelled) full or half payment voucher.
Any change to what was paid supersedes it: the old one is cancelled and a
new one issued in the same unit of work. Refund vouchers start ``PENDING``
and are confirmed by the payout flow through :meth:`VoucherLedger.set_status`.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import ConflictError, NotFoundError
from app.models.booking import Booking
from app.models.enums import PAYMENT_VOUCHER_TYPES, PaymentMode, VoucherStatus, VoucherType
from app.models.voucher import PaymentVoucher
from app.repositories.bookings import BookingRepository
from app.repositories.vouchers import VoucherRepository
from app.services.payments import ZERO
from app.timeutils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)

_ALLOWED_TRANSITIONS = {
    VoucherStatus.PENDING: {VoucherStatus.CONFIRMED, VoucherStatus.CANCELLED},
    VoucherStatus.CONFIRMED: {VoucherStatus.CANCELLED},
    VoucherStatus.CANCELLED: set(),
}


class VoucherLedger:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.vouchers = VoucherRepository(db)
        self.bookings = BookingRepository(db)

    async def issue(
        self,
        booking: Booking,
        voucher_type: VoucherType,
        amount: Decimal,
        payment_mode: PaymentMode = PaymentMode.CASH,
        issued_by: str | None = None,
        remarks: str | None = None,
        status: VoucherStatus = VoucherStatus.CONFIRMED,
    ) -> PaymentVoucher:
        voucher = PaymentVoucher(
            booking_id=booking.id,
            booking_kind=booking.kind,
            membership_no=booking.member.membership_no,
            amount=amount,
            payment_mode=payment_mode,
            voucher_type=voucher_type,
            status=status,
            remarks=remarks,
            issued_by=issued_by or settings.voucher_default_issuer,
            issued_at=to_naive_utc(utcnow()),
        )
        await self.vouchers.create(voucher)
        logger.info(
            "Issued %s voucher %s for booking %s: %s (%s)",
            voucher_type.value,
            voucher.id,
            booking.id,
            amount,
            status.value,
        )
        return voucher

    async def cancel_payments(self, booking: Booking) -> list[PaymentVoucher]:
        """Soft-cancel the live full/half payment vouchers of ``booking``."""
        cancelled = await self.vouchers.cancel_live_payments(booking.id)
        for voucher in cancelled:
            logger.info("Cancelled %s voucher %s for booking %s", voucher.voucher_type.value, voucher.id, booking.id)
        return cancelled

    async def supersede(
        self,
        booking: Booking,
        voucher_type: VoucherType,
        amount: Decimal,
        payment_mode: PaymentMode = PaymentMode.CASH,
        issued_by: str | None = None,
        remarks: str | None = None,
    ) -> tuple[list[PaymentVoucher], PaymentVoucher | None]:
        """Replace the live payment voucher; nothing is issued for a zero amount."""
        if voucher_type not in PAYMENT_VOUCHER_TYPES:
            raise ValueError(f"{voucher_type.value} is not a payment voucher type")
        cancelled = await self.cancel_payments(booking)
        if amount <= ZERO:
            return cancelled, None
        issued = await self.issue(booking, voucher_type, amount, payment_mode, issued_by, remarks)
        return cancelled, issued

    async def issue_refund(
        self,
        booking: Booking,
        amount: Decimal,
        payment_mode: PaymentMode = PaymentMode.CASH,
        issued_by: str | None = None,
        remarks: str | None = None,
    ) -> PaymentVoucher:
        """Record money owed back to the member. Stays ``PENDING`` until paid out."""
        return await self.issue(
            booking,
            VoucherType.REFUND,
            amount,
            payment_mode,
            issued_by,
            remarks,
            status=VoucherStatus.PENDING,
        )

    async def restamp_remarks(self, booking: Booking, remarks: str) -> int:
        vouchers = await self.vouchers.live_payments(booking.id)
        for voucher in vouchers:
            voucher.remarks = remarks
        return len(vouchers)

    async def list_for_booking(self, booking_id: uuid.UUID) -> list[PaymentVoucher]:
        return await self.vouchers.list_by_booking(booking_id)

    async def set_status(self, voucher_id: uuid.UUID, status: VoucherStatus) -> PaymentVoucher:
        """Move a voucher along PENDING -> CONFIRMED -> CANCELLED.

        Confirming a refund marks the booking's refund as returned.

        Raises:
            NotFoundError: unknown voucher.
            ConflictError: illegal transition, cancelling a confirmed payment
                voucher (booking edits own those), or confirming a payment
                voucher while the booking already has a live one.
        """
        voucher = await self.vouchers.get(voucher_id)
        if voucher is None:
            raise NotFoundError(f"Voucher {voucher_id} not found", details={"voucher_id": str(voucher_id)})
        if voucher.status is status:
            return voucher
        if status not in _ALLOWED_TRANSITIONS[voucher.status]:
            raise ConflictError(
                f"Cannot change voucher from {voucher.status.value} to {status.value}",
                code="INVALID_VOUCHER_TRANSITION",
                details={"voucher_id": str(voucher.id), "from": voucher.status.value, "to": status.value},
            )
        if (
            status is VoucherStatus.CANCELLED
            and voucher.status is VoucherStatus.CONFIRMED
            and voucher.voucher_type in PAYMENT_VOUCHER_TYPES
        ):
            raise ConflictError(
                "Confirmed payment vouchers change only through booking edits",
                code="PAYMENT_VOUCHER_LOCKED",
                details={"voucher_id": str(voucher.id), "booking_id": str(voucher.booking_id)},
            )

        if status is VoucherStatus.CONFIRMED and voucher.voucher_type in PAYMENT_VOUCHER_TYPES:
            live = [v for v in await self.vouchers.live_payments(voucher.booking_id) if v.id != voucher.id]
            if any(v.status is VoucherStatus.CONFIRMED for v in live):
                raise ConflictError(
                    "Booking already has a live payment voucher",
                    code="DUPLICATE_PAYMENT_VOUCHER",
                    details={"voucher_id": str(voucher.id), "booking_id": str(voucher.booking_id)},
                )

        voucher.status = status
        if voucher.voucher_type is VoucherType.REFUND and status is VoucherStatus.CONFIRMED:
            booking = await self.bookings.get(voucher.booking_id)
            if booking is not None:
                booking.refund_returned = True
        await self.db.flush()
        logger.info("Voucher %s set to %s", voucher.id, status.value)
        return voucher
