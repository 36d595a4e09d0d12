"""Booking orchestrator — the single entry point for booking writes.

Each create/update runs as one unit of work on the caller's session:

    resource lock -> availability re-check -> payment allocation or
    reconciliation -> booking write -> voucher writes -> ledger write -> commit

Every validation runs before the first row is added, so a rejected request
leaves nothing behind. Failures raise a :class:`~app.exceptions.BookingError`
subclass; rolling the session back is the session owner's job (``get_db``).
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.booking import Booking
from app.models.enums import (
    PAYMENT_VOUCHER_TYPES,
    BookingStatus,
    PaidBy,
    PaymentMode,
    PaymentStatus,
    PricingType,
    ResourceKind,
    VoucherType,
)
from app.models.member import Member
from app.models.resource import Resource
from app.models.voucher import PaymentVoucher
from app.repositories.bookings import BookingRepository
from app.repositories.members import MemberRepository
from app.repositories.resources import ResourceRepository
from app.schemas.booking import BookingCreate, BookingUpdate
from app.services.availability import AvailabilityChecker, BookingWindow
from app.services.holds import HoldManager
from app.services.ledger import LedgerDelta, MemberLedger
from app.services.locks import ResourceLockRegistry, resource_locks
from app.services.payments import ZERO, allocate, as_money
from app.services.policies import ResourceKindPolicy, policy_for
from app.services.reconciler import PaymentState, ReconciliationPlan, reconcile
from app.services.vouchers import VoucherLedger
from app.timeutils import club_now, to_naive_utc, utcnow

logger = logging.getLogger(__name__)

CREATED = "CREATED"


@dataclass
class BookingResult:
    """What a booking write did, rendered to clients as a receipt."""

    booking: Booking
    issued_vouchers: list[PaymentVoucher] = field(default_factory=list)
    cancelled_vouchers: list[PaymentVoucher] = field(default_factory=list)
    ledger_delta: LedgerDelta = field(default_factory=LedgerDelta)
    refund_amount: Decimal = ZERO
    scenario: str | None = None


def _check_guest_details(
    pricing_type: PricingType,
    paid_by: PaidBy,
    guest_name: str | None,
    guest_contact: str | None,
) -> None:
    if pricing_type is not PricingType.GUEST and paid_by is not PaidBy.GUEST:
        return
    missing = [name for name, value in (("guest_name", guest_name), ("guest_contact", guest_contact)) if not value]
    if missing:
        raise ValidationError("Guest name and contact are required for guest bookings", details={"missing": missing})


def _check_editable(booking: Booking) -> None:
    if booking.status is BookingStatus.CANCELLED:
        raise ConflictError(
            "Cancelled bookings cannot be edited",
            code="BOOKING_CANCELLED",
            details={"booking_id": str(booking.id)},
        )


class BookingOrchestrator:
    def __init__(
        self,
        db: AsyncSession,
        locks: ResourceLockRegistry = resource_locks,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.locks = locks
        self.clock = clock
        self.members = MemberRepository(db)
        self.resources = ResourceRepository(db)
        self.bookings = BookingRepository(db)
        self.vouchers = VoucherLedger(db)
        self.ledger = MemberLedger(self.members)
        self.holds = HoldManager(clock)
        self.availability = AvailabilityChecker(self.bookings, self.holds, clock)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get(self, booking_id: uuid.UUID, for_update: bool = False) -> Booking:
        booking = await self.bookings.get(booking_id, for_update=for_update)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found", details={"booking_id": str(booking_id)})
        return booking

    async def member(self, membership_no: str) -> Member:
        member = await self.members.find_by_membership_no(membership_no)
        if member is None:
            raise NotFoundError(
                f"Member {membership_no} not found",
                details={"membership_no": membership_no},
            )
        return member

    async def member_bookings(self, membership_no: str) -> list[Booking]:
        """All bookings of a member, newest first."""
        member = await self.member(membership_no)
        return await self.bookings.list_for_member(member.id)

    async def booking_vouchers(self, booking_id: uuid.UUID) -> list[PaymentVoucher]:
        booking = await self.get(booking_id)
        return await self.vouchers.list_for_booking(booking.id)

    async def _resource(self, kind: ResourceKind, resource_id: uuid.UUID) -> Resource:
        resource = await self.resources.find(kind, resource_id, for_update=True)
        if resource is None:
            raise NotFoundError(
                f"{kind.value.title()} {resource_id} not found",
                details={"kind": kind.value, "resource_id": str(resource_id)},
            )
        return resource

    async def _ensure_available(
        self,
        policy: ResourceKindPolicy,
        resource: Resource,
        window: BookingWindow,
        actor: str,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> None:
        conflict = await self.availability.check(resource, window, actor, policy, exclude_booking_id)
        if conflict is not None:
            logger.warning(
                "Rejected %s booking on resource %s: %s",
                policy.label.lower(),
                resource.id,
                conflict.code.value,
            )
            raise ConflictError.from_conflict(conflict)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, request: BookingCreate, actor: str) -> BookingResult:
        """Create a confirmed booking with its payment voucher and ledger entry.

        Raises:
            ValidationError: malformed window, past date, capacity or guest details.
            NotFoundError: unknown member or resource.
            ConflictError: resource unavailable or invalid payment amounts.
        """
        policy = policy_for(request.kind)
        values = request.model_dump()
        now = self.clock()

        window = policy.build_window(values)
        if policy.starts_in_past(window, club_now(now)):
            raise ValidationError(
                f"{policy.label} bookings cannot start in the past",
                details={"start": window.start.isoformat()},
            )
        _check_guest_details(request.pricing_type, request.paid_by, request.guest_name, request.guest_contact)
        member = await self.member(request.membership_no)

        async with self.locks.hold((policy.kind, request.resource_id)):
            resource = await self._resource(policy.kind, request.resource_id)
            policy.capacity_check(resource, values)
            await self._ensure_available(policy, resource, window, actor)

            total = request.total_price
            if total is None:
                total = policy.lookup_price(resource, window, request.pricing_type)
            allocation = allocate(total, request.payment_status, request.paid_amount)

            booking = Booking(
                kind=policy.kind,
                resource_id=resource.id,
                resource=resource,
                member_id=member.id,
                member=member,
                status=BookingStatus.CONFIRMED,
                pricing_type=request.pricing_type,
                total_price=as_money(total),
                payment_status=request.payment_status,
                paid_amount=allocation.paid,
                pending_amount=allocation.owed,
                refund_amount=ZERO,
                paid_by=request.paid_by,
                guest_name=request.guest_name,
                guest_contact=request.guest_contact,
                special_requests=request.special_requests,
                remarks=request.remarks,
                created_by=actor,
            )
            policy.apply_details(booking, window, values)
            await self.bookings.add(booking)

            issued: list[PaymentVoucher] = []
            if allocation.paid > ZERO:
                voucher_type = (
                    VoucherType.FULL_PAYMENT
                    if request.payment_status is PaymentStatus.PAID
                    else VoucherType.HALF_PAYMENT
                )
                issued.append(
                    await self.vouchers.issue(
                        booking,
                        voucher_type,
                        allocation.paid,
                        request.payment_mode,
                        actor,
                        remarks=policy.describe(resource, window),
                    )
                )

            delta = LedgerDelta(paid=allocation.paid, due=allocation.owed, to_balance=allocation.to_balance)
            await self.ledger.apply(member, delta, count_booking=True, booked_at=to_naive_utc(now))

            self.holds.release(resource, actor)
            if policy.occupies(booking, club_now(now)):
                resource.is_booked = True
            await self.db.commit()

        logger.info(
            "Created %s booking %s on %s for member %s: total=%s status=%s",
            policy.label.lower(),
            booking.id,
            resource.name,
            member.membership_no,
            booking.total_price,
            booking.payment_status.value,
        )
        return BookingResult(booking=booking, issued_vouchers=issued, ledger_delta=delta, scenario=CREATED)

    async def update(self, booking_id: uuid.UUID, request: BookingUpdate, actor: str) -> BookingResult:
        """Edit a booking and reconcile payments, vouchers and the member ledger.

        Omitted fields keep their stored values. The price is recomputed when
        the window, resource or tariff changes and no explicit total is given.

        Raises:
            ValidationError: kind mismatch, malformed window, capacity or guest details.
            NotFoundError: unknown booking or resource.
            ConflictError: cancelled booking, booking moved by a concurrent
                request, resource unavailable, or invalid payment amounts.
        """
        booking = await self.get(booking_id)
        kind = ResourceKind(request.kind)
        if kind is not booking.kind:
            raise ValidationError(
                f"Booking {booking.id} is a {booking.kind.value} booking",
                details={"booking_kind": booking.kind.value, "requested_kind": kind.value},
            )
        _check_editable(booking)

        policy = policy_for(kind)
        changes = request.model_dump(exclude_unset=True)
        payment_mode = changes.get("payment_mode") or PaymentMode.CASH
        old_resource_id = booking.resource_id
        resource_id = changes.get("resource_id") or old_resource_id

        async with self.locks.hold((kind, resource_id), (kind, old_resource_id)):
            # Reconcile from the committed state, not the copy read before the lock
            booking = await self.get(booking_id, for_update=True)
            _check_editable(booking)
            if booking.resource_id != old_resource_id:
                raise ConflictError(
                    f"Booking {booking.id} was moved by another request",
                    code="BOOKING_MODIFIED",
                    details={"booking_id": str(booking.id), "resource_id": str(booking.resource_id)},
                )

            stored = policy.current_values(booking)
            values = {**stored, **{key: changes[key] for key in stored if key in changes}}
            window = policy.build_window(values)
            previous_window = policy.build_window(stored)

            pricing_type = changes.get("pricing_type") or booking.pricing_type
            paid_by = changes.get("paid_by") or booking.paid_by
            guest_name = changes.get("guest_name", booking.guest_name)
            guest_contact = changes.get("guest_contact", booking.guest_contact)
            _check_guest_details(pricing_type, paid_by, guest_name, guest_contact)

            resource = await self._resource(kind, resource_id)
            policy.capacity_check(resource, values)
            await self._ensure_available(policy, resource, window, actor, exclude_booking_id=booking.id)

            window_changed = window != previous_window
            resource_changed = resource.id != old_resource_id
            if changes.get("total_price") is not None:
                new_total = changes["total_price"]
            elif window_changed or resource_changed or pricing_type is not booking.pricing_type:
                new_total = policy.lookup_price(resource, window, pricing_type)
            else:
                new_total = booking.total_price

            plan = reconcile(
                PaymentState.of(booking),
                new_total,
                changes.get("payment_status"),
                changes.get("paid_amount"),
            )

            booking.resource_id = resource.id
            booking.resource = resource
            policy.apply_details(booking, window, values)
            booking.pricing_type = pricing_type
            booking.paid_by = paid_by
            booking.guest_name = guest_name
            booking.guest_contact = guest_contact
            for key in ("special_requests", "remarks"):
                if key in changes:
                    setattr(booking, key, changes[key])
            self._apply_plan(booking, plan)
            await self.bookings.flush(booking)

            description = policy.describe(resource, window)
            cancelled, issued = await self._write_vouchers(booking, plan, payment_mode, actor, description)
            if window_changed or resource_changed:
                await self.vouchers.restamp_remarks(booking, description)

            delta = plan.ledger_delta
            await self.ledger.apply(booking.member, delta)

            self.holds.release(resource, actor)
            if resource_changed:
                previous_resource = await self.resources.find(kind, old_resource_id)
                if previous_resource is not None:
                    await self._refresh_occupancy(policy, previous_resource)
            await self._refresh_occupancy(policy, resource)
            await self.db.commit()

        logger.info(
            "Updated %s booking %s (%s): total %s -> %s, status %s -> %s",
            policy.label.lower(),
            booking.id,
            plan.scenario.value,
            plan.previous.total,
            plan.result.total,
            plan.previous.status.value,
            plan.result.status.value,
        )
        return BookingResult(
            booking=booking,
            issued_vouchers=issued,
            cancelled_vouchers=cancelled,
            ledger_delta=delta,
            refund_amount=plan.refund_amount,
            scenario=plan.scenario.value,
        )

    async def cancel(self, booking_id: uuid.UUID, actor: str) -> Booking:
        """Soft-cancel a booking and free its resource.

        Vouchers and the member ledger are left as they are; refunds for a
        cancelled booking go through the voucher flow.
        """
        booking = await self.get(booking_id)
        if booking.status is BookingStatus.CANCELLED:
            return booking

        async with self.locks.hold((booking.kind, booking.resource_id)):
            booking = await self.get(booking_id, for_update=True)
            if booking.status is BookingStatus.CANCELLED:
                return booking
            booking.status = BookingStatus.CANCELLED
            await self.bookings.flush(booking)
            await self._refresh_occupancy(policy_for(booking.kind), booking.resource)
            await self.db.commit()

        logger.info("Cancelled %s booking %s by %s", booking.kind.value.lower(), booking.id, actor)
        return booking

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _refresh_occupancy(self, policy: ResourceKindPolicy, resource: Resource) -> None:
        """Set ``is_booked`` from the confirmed bookings currently on ``resource``."""
        now_local = club_now(self.clock())
        bookings = await self.bookings.list_confirmed(resource.id)
        resource.is_booked = any(policy.occupies(booking, now_local) for booking in bookings)

    @staticmethod
    def _apply_plan(booking: Booking, plan: ReconciliationPlan) -> None:
        booking.total_price = plan.result.total
        booking.payment_status = plan.result.status
        booking.paid_amount = plan.result.paid
        booking.pending_amount = plan.result.owed
        if plan.refund_amount > ZERO:
            booking.refund_amount = as_money(booking.refund_amount) + plan.refund_amount
            booking.refund_returned = False

    async def _write_vouchers(
        self,
        booking: Booking,
        plan: ReconciliationPlan,
        payment_mode: PaymentMode,
        actor: str,
        description: str,
    ) -> tuple[list[PaymentVoucher], list[PaymentVoucher]]:
        cancelled: list[PaymentVoucher] = []
        issued: list[PaymentVoucher] = []

        payments = [i for i in plan.vouchers if i.voucher_type in PAYMENT_VOUCHER_TYPES]
        refunds = [i for i in plan.vouchers if i.voucher_type is VoucherType.REFUND]

        if plan.cancel_payment_vouchers and payments:
            instruction = payments.pop(0)
            cancelled, voucher = await self.vouchers.supersede(
                booking, instruction.voucher_type, instruction.amount, payment_mode, actor, description
            )
            if voucher is not None:
                issued.append(voucher)
        elif plan.cancel_payment_vouchers:
            cancelled = await self.vouchers.cancel_payments(booking)

        for instruction in payments:
            issued.append(
                await self.vouchers.issue(
                    booking, instruction.voucher_type, instruction.amount, payment_mode, actor, description
                )
            )
        for instruction in refunds:
            issued.append(
                await self.vouchers.issue_refund(
                    booking,
                    instruction.amount,
                    payment_mode,
                    actor,
                    remarks=f"Refund for reduced charges | {description}",
                )
            )
            logger.info("Refund of %s pending for booking %s", instruction.amount, booking.id)
        return cancelled, issued
