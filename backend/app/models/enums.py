"""Enumerations shared by the booking, voucher and resource models."""

import enum


class ResourceKind(str, enum.Enum):
    ROOM = "ROOM"
    HALL = "HALL"
    LAWN = "LAWN"
    PHOTOSHOOT = "PHOTOSHOOT"


class TimeSlot(str, enum.Enum):
    """Discrete event slots for single-day hall and lawn bookings."""

    MORNING = "MORNING"
    EVENING = "EVENING"
    NIGHT = "NIGHT"


class PricingType(str, enum.Enum):
    MEMBER = "member"
    GUEST = "guest"


class PaymentStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    HALF_PAID = "HALF_PAID"
    PAID = "PAID"
    TO_BILL = "TO_BILL"  # owed amount deferred to the member's general account


class PaidBy(str, enum.Enum):
    MEMBER = "MEMBER"
    GUEST = "GUEST"


class BookingStatus(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class PaymentMode(str, enum.Enum):
    CASH = "CASH"
    ONLINE = "ONLINE"


class VoucherType(str, enum.Enum):
    FULL_PAYMENT = "FULL_PAYMENT"
    HALF_PAYMENT = "HALF_PAYMENT"
    REFUND = "REFUND"


class VoucherStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


PAYMENT_VOUCHER_TYPES = (VoucherType.FULL_PAYMENT, VoucherType.HALF_PAYMENT)
SLOT_KINDS = (ResourceKind.HALL, ResourceKind.LAWN)
