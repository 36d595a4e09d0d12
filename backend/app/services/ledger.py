"""Member ledger updater — applies booking money deltas to a member's running totals."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.models.member import Member
from app.repositories.members import MemberRepository
from app.services.payments import ZERO, round_currency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerDelta:
    """Signed money movements caused by one booking write.

    ``paid``/``due`` feed the booking-scoped totals, ``to_balance`` the
    general account (TO_BILL), ``refund`` the amount owed back to the member.
    """

    paid: Decimal = ZERO
    due: Decimal = ZERO
    to_balance: Decimal = ZERO
    refund: Decimal = ZERO

    @property
    def is_zero(self) -> bool:
        return not any((self.paid, self.due, self.to_balance, self.refund))

    def increments(self) -> dict[str, int]:
        """Per-column integer increments, each rounded on its own."""
        paid = round_currency(self.paid)
        due = round_currency(self.due)
        refund = round_currency(self.refund)
        to_balance = round_currency(self.to_balance)
        # booking_balance must stay equal to booking_amount_paid - booking_amount_due
        return {
            "booking_amount_paid": paid,
            "booking_amount_due": due + refund,
            "booking_balance": paid - due - refund,
            "balance": to_balance,
            "dr_amount": to_balance,
        }


class MemberLedger:
    def __init__(self, members: MemberRepository) -> None:
        self.members = members

    async def apply(
        self,
        member: Member,
        delta: LedgerDelta,
        count_booking: bool = False,
        booked_at: datetime | None = None,
    ) -> dict[str, int]:
        """Write ``delta`` to ``member`` in a single UPDATE statement.

        Returns the non-zero increments that were applied.
        """
        if delta.is_zero and not count_booking and booked_at is None:
            return {}
        increments = {column: value for column, value in delta.increments().items() if value}
        if count_booking:
            increments["total_bookings"] = 1
        if not increments and booked_at is None:
            return {}

        await self.members.apply_ledger_delta(member, increments, last_booking_date=booked_at)
        logger.info("Ledger update for member %s: %s", member.membership_no, increments)
        return increments
