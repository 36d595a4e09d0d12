"""Bookable club facilities and the calendar blocks attached to them."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, Enum, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.enums import ResourceKind, TimeSlot


class Resource(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A room, hall, lawn or photoshoot service.

    The catalog owns these rows; the booking core only reads them and flips
    ``is_booked`` while a booking currently occupies the resource.
    """

    __tablename__ = "resources"

    kind: Mapped[ResourceKind] = mapped_column(
        Enum(ResourceKind, native_enum=False, length=20),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_booked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    member_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    guest_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    min_guests: Mapped[int | None] = mapped_column(Integer, default=None)
    max_guests: Mapped[int | None] = mapped_column(Integer, default=None)

    # Relationships
    maintenance_windows: Mapped[list["MaintenanceWindow"]] = relationship(
        back_populates="resource", lazy="selectin", cascade="all, delete-orphan"
    )
    reservations: Mapped[list["StandingReservation"]] = relationship(
        back_populates="resource", lazy="selectin", cascade="all, delete-orphan"
    )
    holds: Mapped[list["Hold"]] = relationship(
        back_populates="resource", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Resource(id={self.id}, kind={self.kind.value}, name={self.name!r})>"


class MaintenanceWindow(UUIDPrimaryKeyMixin, Base):
    """Out-of-order period; any overlapping booking is rejected."""

    __tablename__ = "maintenance_windows"

    resource_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    resource: Mapped[Resource] = relationship(back_populates="maintenance_windows")


class StandingReservation(UUIDPrimaryKeyMixin, Base):
    """Administrative block on a resource, distinct from a paid booking."""

    __tablename__ = "standing_reservations"

    resource_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reserved_from: Mapped[date] = mapped_column(Date, nullable=False)
    reserved_to: Mapped[date] = mapped_column(Date, nullable=False)
    time_slot: Mapped[TimeSlot | None] = mapped_column(
        Enum(TimeSlot, native_enum=False, length=20), default=None
    )
    remarks: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    resource: Mapped[Resource] = relationship(back_populates="reservations")


class Hold(UUIDPrimaryKeyMixin, Base):
    """Temporary soft lock placed by a checkout flow.

    Expiry is evaluated lazily against the clock; nothing reaps old rows.
    """

    __tablename__ = "resource_holds"

    resource_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    on_hold: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    hold_expiry: Mapped[datetime | None] = mapped_column(default=None)  # naive UTC
    hold_by: Mapped[str | None] = mapped_column(String(100), default=None)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    resource: Mapped[Resource] = relationship(back_populates="holds")
