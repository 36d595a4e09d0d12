"""Shared API dependencies — single import point for all routers.

Re-exports database session and authentication dependencies so that router
modules can import everything they need from one place::

    from app.api.deps import get_db, get_current_actor, get_orchestrator
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_actor
from app.database import get_db
from app.services.orchestrator import BookingOrchestrator
from app.services.vouchers import VoucherLedger


async def get_orchestrator(db: AsyncSession = Depends(get_db)) -> BookingOrchestrator:
    """Booking orchestrator bound to the request's unit of work."""
    return BookingOrchestrator(db)


async def get_voucher_ledger(db: AsyncSession = Depends(get_db)) -> VoucherLedger:
    return VoucherLedger(db)


__all__ = [
    "get_db",
    "get_current_actor",
    "get_orchestrator",
    "get_voucher_ledger",
]
