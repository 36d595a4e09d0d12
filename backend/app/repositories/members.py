"""Member lookups and atomic ledger increments."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.member import Member

LEDGER_COLUMNS = (
    "total_bookings",
    "booking_amount_paid",
    "booking_amount_due",
    "booking_balance",
    "balance",
    "dr_amount",
    "cr_amount",
)


class MemberRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_membership_no(self, membership_no: str) -> Member | None:
        result = await self.db.execute(select(Member).where(Member.membership_no == membership_no))
        return result.scalar_one_or_none()

    async def apply_ledger_delta(
        self,
        member: Member,
        increments: dict[str, int],
        last_booking_date: datetime | None = None,
    ) -> Member:
        """Increment ledger columns in SQL so concurrent writers never lose updates.

        Raises:
            ValueError: for a column that is not part of the ledger.
        """
        unknown = set(increments) - set(LEDGER_COLUMNS)
        if unknown:
            raise ValueError(f"Not ledger columns: {sorted(unknown)}")

        values: dict = {column: getattr(Member, column) + amount for column, amount in increments.items()}
        if last_booking_date is not None:
            values["last_booking_date"] = last_booking_date
        if not values:
            return member

        await self.db.execute(
            update(Member)
            .where(Member.id == member.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.db.refresh(member)
        return member
