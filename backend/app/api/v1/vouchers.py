"""Voucher status API — used by the finance desk to confirm payouts."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from app.api.deps import get_current_actor, get_voucher_ledger
from app.models.voucher import PaymentVoucher
from app.schemas.voucher import VoucherResponse, VoucherStatusUpdate
from app.services.vouchers import VoucherLedger

router = APIRouter(prefix="/api/v1/vouchers", tags=["vouchers"])


@router.patch(
    "/{voucher_id}",
    response_model=VoucherResponse,
    summary="Change a voucher's status",
)
async def update_voucher_status(
    voucher_id: uuid.UUID,
    body: VoucherStatusUpdate,
    ledger: VoucherLedger = Depends(get_voucher_ledger),
    actor: str = Depends(get_current_actor),
) -> PaymentVoucher:
    """Confirm a pending refund once paid out, or cancel a voucher.

    A cancelled voucher cannot be revived (409).
    """
    return await ledger.set_status(voucher_id, body.status)
