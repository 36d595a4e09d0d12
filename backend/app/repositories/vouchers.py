"""Voucher persistence. Vouchers are only ever inserted or status-changed."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import PAYMENT_VOUCHER_TYPES, VoucherStatus
from app.models.voucher import PaymentVoucher


class VoucherRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, voucher_id: uuid.UUID) -> PaymentVoucher | None:
        return await self.db.get(PaymentVoucher, voucher_id)

    async def create(self, voucher: PaymentVoucher) -> PaymentVoucher:
        self.db.add(voucher)
        await self.db.flush()
        await self.db.refresh(voucher)
        return voucher

    async def live_payments(self, booking_id: uuid.UUID) -> list[PaymentVoucher]:
        """Non-cancelled full/half payment vouchers of a booking."""
        result = await self.db.execute(
            select(PaymentVoucher).where(
                PaymentVoucher.booking_id == booking_id,
                PaymentVoucher.voucher_type.in_(PAYMENT_VOUCHER_TYPES),
                PaymentVoucher.status != VoucherStatus.CANCELLED,
            )
        )
        return list(result.scalars().all())

    async def cancel_live_payments(self, booking_id: uuid.UUID) -> list[PaymentVoucher]:
        vouchers = await self.live_payments(booking_id)
        for voucher in vouchers:
            voucher.status = VoucherStatus.CANCELLED
        if vouchers:
            await self.db.flush()
        return vouchers

    async def list_by_booking(self, booking_id: uuid.UUID) -> list[PaymentVoucher]:
        result = await self.db.execute(
            select(PaymentVoucher)
            .where(PaymentVoucher.booking_id == booking_id)
            .order_by(PaymentVoucher.issued_at.desc(), PaymentVoucher.id)
        )
        return list(result.scalars().all())
