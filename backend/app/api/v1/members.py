"""Member-facing reads: a member's bookings and running ledger."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_current_actor, get_orchestrator
from app.models.member import Member
from app.schemas.booking import BookingListResponse
from app.schemas.member import MemberLedgerResponse
from app.services.orchestrator import BookingOrchestrator

router = APIRouter(prefix="/api/v1/members", tags=["members"])


@router.get(
    "/{membership_no}/bookings",
    response_model=BookingListResponse,
    summary="List a member's bookings, newest first",
)
async def list_member_bookings(
    membership_no: str,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    actor: str = Depends(get_current_actor),
) -> dict:
    items = await orchestrator.member_bookings(membership_no)
    return {"items": items, "total": len(items)}


@router.get(
    "/{membership_no}/ledger",
    response_model=MemberLedgerResponse,
    summary="Get a member's booking totals and general balance",
)
async def get_member_ledger(
    membership_no: str,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    actor: str = Depends(get_current_actor),
) -> Member:
    return await orchestrator.member(membership_no)
