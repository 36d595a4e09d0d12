"""Payment calculator — maps a requested payment status onto paid/owed amounts.

Everything here is pure: no database, no clock. The orchestrator and the
update reconciler both call :func:`allocate` so create and edit share one set
of rules.
"""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal

from app.exceptions import InvalidPaymentError
from app.models.enums import PaymentStatus

ZERO = Decimal("0")
_HALF = Decimal("0.5")


@dataclass(frozen=True)
class Allocation:
    """How a booking total splits between what is paid and what is owed.

    ``to_balance`` is non-zero only for ``TO_BILL``: that part of the charge
    is not tracked as pending on the booking but folded into the member's
    general account instead.
    """

    paid: Decimal
    owed: Decimal
    to_balance: Decimal = ZERO

    @property
    def charged(self) -> Decimal:
        return self.paid + self.owed + self.to_balance


def as_money(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce request/DB values into ``Decimal``; ``None`` becomes zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_currency(value: Decimal | int | float) -> int:
    """Round to whole currency units, halves toward positive infinity.

    Matches JavaScript ``Math.round``: ``2.5 -> 3`` and ``-2.5 -> -2``.
    Not banker's rounding; ledgers are cumulative so the rule must not drift.
    """
    return int((as_money(value) + _HALF).to_integral_value(rounding=ROUND_FLOOR))


def allocate(
    total: Decimal | int,
    status: PaymentStatus,
    requested_paid: Decimal | int | None = None,
) -> Allocation:
    """Split ``total`` according to ``status``.

    Raises:
        InvalidPaymentError: for a negative total, a half-paid amount outside
            ``(0, total)``, or a to-bill amount outside ``[0, total]``.
    """
    total = as_money(total)
    if total < ZERO:
        raise InvalidPaymentError("Total price cannot be negative", details={"total": str(total)})

    if status is PaymentStatus.PAID:
        return Allocation(paid=total, owed=ZERO)

    if status is PaymentStatus.UNPAID:
        return Allocation(paid=ZERO, owed=total)

    paid = as_money(requested_paid)

    if status is PaymentStatus.HALF_PAID:
        if paid <= ZERO:
            raise InvalidPaymentError(
                "Paid amount must be greater than 0 for half-paid status",
                details={"paid": str(paid), "total": str(total)},
            )
        if paid >= total:
            raise InvalidPaymentError(
                "Paid amount must be less than total for half-paid status",
                details={"paid": str(paid), "total": str(total)},
            )
        return Allocation(paid=paid, owed=total - paid)

    if status is PaymentStatus.TO_BILL:
        if paid < ZERO or paid > total:
            raise InvalidPaymentError(
                "Paid amount for to-bill status must be between 0 and the total",
                details={"paid": str(paid), "total": str(total)},
            )
        return Allocation(paid=paid, owed=ZERO, to_balance=total - paid)

    raise InvalidPaymentError(f"Unsupported payment status: {status}")


def status_for_amounts(paid: Decimal, total: Decimal) -> PaymentStatus:
    """Derive the natural status for amounts carried forward on an edit."""
    if paid <= ZERO:
        return PaymentStatus.UNPAID
    if paid >= total:
        return PaymentStatus.PAID
    return PaymentStatus.HALF_PAID
