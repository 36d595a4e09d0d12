"""Member model — club members and their running booking ledger."""

from datetime import datetime

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Member(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A club member. Identity is owned by the membership registry; the
    ledger columns are mutated only as a side effect of booking writes.
    """

    __tablename__ = "members"

    membership_no: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Booking-scoped ledger (whole currency units)
    total_bookings: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_booking_date: Mapped[datetime | None] = mapped_column(nullable=True)
    booking_amount_paid: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    booking_amount_due: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    booking_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # paid - due

    # General club account, receives TO_BILL amounts
    balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    dr_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cr_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<Member(id={self.id}, membership_no={self.membership_no!r})>"
