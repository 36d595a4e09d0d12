"""Update reconciler — turns a booking edit into amounts, vouchers and ledger deltas.

Given the booking's previous payment state and the edited total/status, the
reconciler classifies the change into one :class:`UpdateScenario` and returns
a :class:`ReconciliationPlan`. It performs no I/O: the orchestrator executes
the plan (booking write, voucher writes, ledger write) inside one unit of
work. Identical inputs always produce identical plans, so replaying an edit
can never double-count a ledger delta.

Scenario precedence, first match wins:

1. ``STATUS_DOWNGRADE``: booking was ``PAID`` and the caller explicitly asks
   for ``HALF_PAID``/``UNPAID``. An administrative correction: payment
   vouchers are cancelled, amounts recomputed, no refund voucher.
2. ``CHARGE_DECREASED``: the new total is below what was already paid. Paid
   is capped at the new total, the booking stays ``PAID``, the payment
   voucher is reissued for the capped amount and a ``PENDING`` refund
   voucher records the difference owed back to the member.
3. ``CHARGE_INCREASED``: a fully paid booking becomes ``HALF_PAID`` with its
   paid amount unchanged; otherwise the requested status is applied or paid
   is carried forward and owed grows.
4. ``STATUS_OVERRIDE``: same total, explicit status: recomputed from the
   status alone.
5. ``CHARGE_ADJUSTED``: total went down but stays above what was paid.
6. ``UNCHANGED``: nothing to do.
"""

import enum
from dataclasses import dataclass, field
from decimal import Decimal

from app.exceptions import InvalidPaymentError
from app.models.enums import PaymentStatus, VoucherStatus, VoucherType
from app.services.ledger import LedgerDelta
from app.services.payments import ZERO, Allocation, allocate, as_money, status_for_amounts

_DOWNGRADE_TARGETS = (PaymentStatus.HALF_PAID, PaymentStatus.UNPAID)


class UpdateScenario(str, enum.Enum):
    STATUS_DOWNGRADE = "STATUS_DOWNGRADE"
    CHARGE_DECREASED = "CHARGE_DECREASED"
    CHARGE_INCREASED = "CHARGE_INCREASED"
    STATUS_OVERRIDE = "STATUS_OVERRIDE"
    CHARGE_ADJUSTED = "CHARGE_ADJUSTED"
    UNCHANGED = "UNCHANGED"


@dataclass(frozen=True)
class PaymentState:
    """Money-related snapshot of a booking.

    ``owed`` is the booking's stored pending amount, which is always zero for
    ``TO_BILL`` bookings; their remainder lives in the member's general
    account and is exposed as :attr:`to_balance`.
    """

    total: Decimal
    paid: Decimal
    owed: Decimal
    status: PaymentStatus

    @property
    def to_balance(self) -> Decimal:
        if self.status is PaymentStatus.TO_BILL:
            return self.total - self.paid
        return ZERO

    @classmethod
    def of(cls, booking) -> "PaymentState":
        return cls(
            total=as_money(booking.total_price),
            paid=as_money(booking.paid_amount),
            owed=as_money(booking.pending_amount),
            status=booking.payment_status,
        )


@dataclass(frozen=True)
class VoucherInstruction:
    """One voucher the orchestrator must issue."""

    voucher_type: VoucherType
    amount: Decimal
    status: VoucherStatus = VoucherStatus.CONFIRMED
    reason: str = ""


@dataclass(frozen=True)
class ReconciliationPlan:
    scenario: UpdateScenario
    previous: PaymentState
    result: PaymentState
    refund_amount: Decimal = ZERO
    cancel_payment_vouchers: bool = False
    vouchers: tuple[VoucherInstruction, ...] = field(default_factory=tuple)

    @property
    def paid_diff(self) -> Decimal:
        return self.result.paid - self.previous.paid

    @property
    def owed_diff(self) -> Decimal:
        return self.result.owed - self.previous.owed

    @property
    def balance_delta(self) -> Decimal:
        """Net change of the TO_BILL amount parked in the general account."""
        return self.result.to_balance - self.previous.to_balance

    @property
    def ledger_delta(self) -> LedgerDelta:
        return LedgerDelta(
            paid=self.paid_diff,
            due=self.owed_diff,
            to_balance=self.balance_delta,
            refund=self.refund_amount,
        )


def _settle(status: PaymentStatus, total: Decimal, paid: Decimal) -> Allocation:
    """Amounts for a paid figure carried forward without re-validation."""
    if status is PaymentStatus.TO_BILL:
        return Allocation(paid=paid, owed=ZERO, to_balance=total - paid)
    return Allocation(paid=paid, owed=total - paid)


def _state(total: Decimal, status: PaymentStatus, allocation: Allocation) -> PaymentState:
    return PaymentState(total=total, paid=allocation.paid, owed=allocation.owed, status=status)


def _requested_allocation(
    previous: PaymentState,
    total: Decimal,
    status: PaymentStatus,
    requested_paid: Decimal | None,
) -> Allocation:
    # An omitted paid figure keeps what the member has already paid.
    paid = requested_paid
    if paid is None and status in (PaymentStatus.HALF_PAID, PaymentStatus.TO_BILL):
        paid = previous.paid
    return allocate(total, status, paid)


def _carry_forward(previous: PaymentState, total: Decimal) -> PaymentState:
    if previous.status is PaymentStatus.TO_BILL:
        status = PaymentStatus.TO_BILL
    else:
        status = status_for_amounts(previous.paid, total)
    return _state(total, status, _settle(status, total, previous.paid))


def _top_up(
    previous: PaymentState,
    result: PaymentState,
    requested_status: PaymentStatus | None,
) -> tuple[VoucherInstruction, ...]:
    """Voucher for money received as part of the edit.

    A final payment that settles a previously partial booking is recorded
    for the whole amount that was pending, not just the paid delta.
    """
    paid_diff = result.paid - previous.paid
    if paid_diff <= ZERO:
        return ()
    amount = paid_diff
    if requested_status is PaymentStatus.PAID and previous.owed > ZERO:
        amount = previous.owed
    voucher_type = VoucherType.FULL_PAYMENT if result.status is PaymentStatus.PAID else VoucherType.HALF_PAYMENT
    return (VoucherInstruction(voucher_type, amount, reason="payment received on update"),)


def reconcile(
    previous: PaymentState,
    new_total: Decimal | int,
    requested_status: PaymentStatus | None = None,
    requested_paid: Decimal | int | None = None,
) -> ReconciliationPlan:
    """Classify an edit and compute the resulting payment state.

    Raises:
        InvalidPaymentError: when the requested status/paid pair is invalid
            for the new total.
    """
    total = as_money(new_total)
    if total < ZERO:
        raise InvalidPaymentError("Total price cannot be negative", details={"total": str(total)})
    paid_request = None if requested_paid is None else as_money(requested_paid)
    status_changed = requested_status is not None and requested_status is not previous.status

    # 1. Manual downgrade of a fully paid booking
    if previous.status is PaymentStatus.PAID and requested_status in _DOWNGRADE_TARGETS:
        allocation = allocate(total, requested_status, paid_request)
        vouchers: tuple[VoucherInstruction, ...] = ()
        if allocation.paid > ZERO:
            vouchers = (
                VoucherInstruction(VoucherType.HALF_PAYMENT, allocation.paid, reason="reissued after status change"),
            )
        return ReconciliationPlan(
            scenario=UpdateScenario.STATUS_DOWNGRADE,
            previous=previous,
            result=_state(total, requested_status, allocation),
            cancel_payment_vouchers=True,
            vouchers=vouchers,
        )

    # 2. Charge dropped below what was already paid
    if total < previous.paid:
        refund = previous.paid - total
        vouchers = ()
        if total > ZERO:
            vouchers += (
                VoucherInstruction(VoucherType.FULL_PAYMENT, total, reason="reissued after charge reduction"),
            )
        vouchers += (
            VoucherInstruction(
                VoucherType.REFUND,
                refund,
                status=VoucherStatus.PENDING,
                reason="refund for reduced charges",
            ),
        )
        return ReconciliationPlan(
            scenario=UpdateScenario.CHARGE_DECREASED,
            previous=previous,
            result=PaymentState(total=total, paid=total, owed=ZERO, status=PaymentStatus.PAID),
            refund_amount=refund,
            cancel_payment_vouchers=True,
            vouchers=vouchers,
        )

    # 3. Charge went up
    if total > previous.total:
        if previous.status is PaymentStatus.PAID and not status_changed:
            result = _state(total, PaymentStatus.HALF_PAID, _settle(PaymentStatus.HALF_PAID, total, previous.paid))
            vouchers = ()
            if previous.paid > ZERO:
                vouchers = (
                    VoucherInstruction(
                        VoucherType.HALF_PAYMENT, previous.paid, reason="reissued after charge increase"
                    ),
                )
            return ReconciliationPlan(
                scenario=UpdateScenario.CHARGE_INCREASED,
                previous=previous,
                result=result,
                cancel_payment_vouchers=True,
                vouchers=vouchers,
            )
        if requested_status is not None and (status_changed or paid_request is not None):
            result = _state(
                total,
                requested_status,
                _requested_allocation(previous, total, requested_status, paid_request),
            )
        else:
            result = _carry_forward(previous, total)
        top_up = _top_up(previous, result, requested_status)
        return ReconciliationPlan(
            scenario=UpdateScenario.CHARGE_INCREASED,
            previous=previous,
            result=result,
            cancel_payment_vouchers=bool(top_up),
            vouchers=top_up,
        )

    # 4. Same total, explicit status
    if total == previous.total:
        if requested_status is None:
            return ReconciliationPlan(scenario=UpdateScenario.UNCHANGED, previous=previous, result=previous)
        result = _state(
            total,
            requested_status,
            _requested_allocation(previous, total, requested_status, paid_request),
        )
        if result == previous:
            return ReconciliationPlan(scenario=UpdateScenario.UNCHANGED, previous=previous, result=previous)
        top_up = _top_up(previous, result, requested_status)
        return ReconciliationPlan(
            scenario=UpdateScenario.STATUS_OVERRIDE,
            previous=previous,
            result=result,
            cancel_payment_vouchers=bool(top_up),
            vouchers=top_up,
        )

    # 5. Charge went down but stays above what was paid
    if requested_status is not None and (status_changed or paid_request is not None):
        result = _state(
            total,
            requested_status,
            _requested_allocation(previous, total, requested_status, paid_request),
        )
    else:
        result = _carry_forward(previous, total)
    top_up = _top_up(previous, result, requested_status)
    return ReconciliationPlan(
        scenario=UpdateScenario.CHARGE_ADJUSTED,
        previous=previous,
        result=result,
        cancel_payment_vouchers=bool(top_up),
        vouchers=top_up,
    )
