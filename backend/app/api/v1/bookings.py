"""Bookings API router.

Thin adapter over :class:`~app.services.orchestrator.BookingOrchestrator`:
request bodies are validated by the discriminated schemas, every rule lives
in the service layer, and domain errors are rendered by the handler in
``app.main``.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_actor, get_orchestrator
from app.models.booking import Booking
from app.models.voucher import PaymentVoucher
from app.schemas.booking import BookingCreate, BookingReceipt, BookingResponse, BookingUpdate
from app.schemas.voucher import VoucherResponse
from app.services.orchestrator import BookingOrchestrator

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingReceipt,
    status_code=status.HTTP_201_CREATED,
    summary="Create a booking",
)
async def create_booking(
    body: BookingCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    actor: str = Depends(get_current_actor),
) -> BookingReceipt:
    """Book a room, hall, lawn or photoshoot slot.

    Returns 409 when the resource is held, under maintenance, reserved or
    already booked, or when the paid amount does not fit the payment status.
    """
    result = await orchestrator.create(body, actor)
    return BookingReceipt.model_validate(result)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get booking detail",
)
async def get_booking(
    booking_id: uuid.UUID,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    actor: str = Depends(get_current_actor),
) -> Booking:
    return await orchestrator.get(booking_id)


@router.put(
    "/{booking_id}",
    response_model=BookingReceipt,
    summary="Update a booking",
)
async def update_booking(
    booking_id: uuid.UUID,
    body: BookingUpdate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    actor: str = Depends(get_current_actor),
) -> BookingReceipt:
    """Partially update a booking and reconcile its payments.

    The receipt lists the scenario applied, vouchers issued and cancelled,
    the member ledger delta and any refund now owed.
    """
    result = await orchestrator.update(booking_id, body, actor)
    return BookingReceipt.model_validate(result)


@router.delete(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Cancel a booking",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    actor: str = Depends(get_current_actor),
) -> Booking:
    """Mark a booking cancelled and free the resource. Vouchers are kept."""
    return await orchestrator.cancel(booking_id, actor)


@router.get(
    "/{booking_id}/vouchers",
    response_model=list[VoucherResponse],
    summary="List vouchers of a booking, newest first",
)
async def list_booking_vouchers(
    booking_id: uuid.UUID,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    actor: str = Depends(get_current_actor),
) -> list[PaymentVoucher]:
    return await orchestrator.booking_vouchers(booking_id)
