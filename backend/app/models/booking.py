"""Booking model — one row per reservation of a club resource."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, Enum, ForeignKey, Index, Integer, Numeric, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UUIDPrimaryKeyMixin
from app.models.enums import (
    BookingStatus,
    PaidBy,
    PaymentStatus,
    PricingType,
    ResourceKind,
    TimeSlot,
)

_CONFIRMED_ONLY = text("status = 'CONFIRMED'")


class Booking(UUIDPrimaryKeyMixin, Base):
    """A reservation linking a member to a resource for a time window.

    The window shape depends on ``kind``: rooms use ``check_in``/``check_out``
    (half-open, by date), halls and lawns use ``booking_date`` + ``time_slot``,
    photoshoots use ``start_time``/``end_time``.
    """

    __tablename__ = "bookings"

    kind: Mapped[ResourceKind] = mapped_column(
        Enum(ResourceKind, native_enum=False, length=20),
        nullable=False,
        index=True,
    )
    resource_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("resources.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, native_enum=False, length=20),
        default=BookingStatus.CONFIRMED,
        nullable=False,
        index=True,
    )

    # Window
    check_in: Mapped[date | None] = mapped_column(Date, default=None)
    check_out: Mapped[date | None] = mapped_column(Date, default=None)
    booking_date: Mapped[date | None] = mapped_column(Date, default=None)
    time_slot: Mapped[TimeSlot | None] = mapped_column(Enum(TimeSlot, native_enum=False, length=20), default=None)
    start_time: Mapped[datetime | None] = mapped_column(default=None)
    end_time: Mapped[datetime | None] = mapped_column(default=None)

    # Money
    pricing_type: Mapped[PricingType] = mapped_column(
        Enum(PricingType, native_enum=False, length=20),
        default=PricingType.MEMBER,
        nullable=False,
    )
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, native_enum=False, length=20),
        nullable=False,
    )
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    pending_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    refund_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    refund_returned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paid_by: Mapped[PaidBy] = mapped_column(
        Enum(PaidBy, native_enum=False, length=20),
        default=PaidBy.MEMBER,
        nullable=False,
    )
    guest_name: Mapped[str | None] = mapped_column(String(255), default=None)
    guest_contact: Mapped[str | None] = mapped_column(String(50), default=None)

    # Per-kind details
    num_adults: Mapped[int | None] = mapped_column(Integer, default=None)
    num_children: Mapped[int | None] = mapped_column(Integer, default=None)
    num_guests: Mapped[int | None] = mapped_column(Integer, default=None)
    event_type: Mapped[str | None] = mapped_column(String(100), default=None)
    special_requests: Mapped[str | None] = mapped_column(Text, default=None)
    remarks: Mapped[str | None] = mapped_column(Text, default=None)

    created_by: Mapped[str | None] = mapped_column(String(100), default=None)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    resource: Mapped["Resource"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    member: Mapped["Member"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (
        Index("ix_bookings_resource_check_in", "resource_id", "check_in"),
        Index("ix_bookings_resource_start_time", "resource_id", "start_time"),
        Index(
            "uq_bookings_resource_slot_confirmed",
            "resource_id",
            "booking_date",
            "time_slot",
            unique=True,
            postgresql_where=_CONFIRMED_ONLY,
            sqlite_where=_CONFIRMED_ONLY,
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, kind={self.kind.value}, resource_id={self.resource_id}, "
            f"payment_status={self.payment_status.value})>"
        )
