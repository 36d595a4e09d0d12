"""Tests for member ledger increments."""

from decimal import Decimal

from app.services.ledger import LedgerDelta


class TestIncrements:
    def test_balance_follows_rounded_paid_and_due(self) -> None:
        increments = LedgerDelta(paid=Decimal("0.4"), due=Decimal("-0.4")).increments()
        assert increments["booking_amount_paid"] == 0
        assert increments["booking_amount_due"] == 0
        assert increments["booking_balance"] == 0

    def test_half_rounds_up(self) -> None:
        increments = LedgerDelta(paid=Decimal("2500.5"), due=Decimal("-2500.5")).increments()
        assert increments["booking_amount_paid"] == 2501
        assert increments["booking_amount_due"] == -2500
        assert increments["booking_balance"] == 5001

    def test_refund_moves_due_and_balance(self) -> None:
        increments = LedgerDelta(paid=Decimal("-4000"), refund=Decimal("4000")).increments()
        assert increments["booking_amount_paid"] == -4000
        assert increments["booking_amount_due"] == 4000
        assert increments["booking_balance"] == -8000
        assert increments["booking_balance"] == increments["booking_amount_paid"] - increments["booking_amount_due"]

    def test_to_bill_feeds_general_account(self) -> None:
        increments = LedgerDelta(paid=Decimal("1000"), to_balance=Decimal("2000")).increments()
        assert increments["balance"] == 2000
        assert increments["dr_amount"] == 2000
        assert increments["booking_amount_due"] == 0
