"""Tests for the VendorLedger aggregate: balances, refunds and payouts."""

from decimal import Decimal

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError

from marketplace.exceptions import InsufficientFundsError, InvalidStateError
from marketplace.ledger.events import PayoutRequested, PayoutStatusChanged, TransactionRefunded
from marketplace.ledger.fees import FeeSchedule
from marketplace.ledger.ledger import EntryStatus, EntryType, PayoutStatus, VendorLedger

FEES = FeeSchedule()
MINIMUM = Decimal("25.00")


def _ledger_with_payment(amount="100.00", status=EntryStatus.COMPLETED.value):
    ledger = VendorLedger.open("vendor-1")
    entry = ledger.record_transaction(
        entry_type=EntryType.ORDER_PAYMENT.value,
        amount=amount,
        fee_schedule=FEES,
        status=status,
        order_id="order-1",
    )
    return ledger, entry


class TestRecordingTransactions:
    def test_ledger_is_keyed_by_vendor(self):
        assert VendorLedger.open("vendor-1").vendor_id == "vendor-1"

    def test_payment_carries_platform_fee(self):
        _, entry = _ledger_with_payment()
        assert entry.fee == "2.80"
        assert entry.net == "97.20"

    def test_completed_payment_is_available(self):
        ledger, _ = _ledger_with_payment()
        assert ledger.available_balance() == Decimal("97.20")
        assert ledger.pending_balance() == Decimal("0.00")

    def test_pending_payment_is_pending(self):
        ledger, _ = _ledger_with_payment(status=EntryStatus.PENDING.value)
        assert ledger.available_balance() == Decimal("0.00")
        assert ledger.pending_balance() == Decimal("97.20")

    def test_adjustment_has_no_fee(self):
        ledger = VendorLedger.open("vendor-1")
        entry = ledger.record_transaction(entry_type=EntryType.ADJUSTMENT.value, amount="12.00", fee_schedule=FEES)
        assert entry.fee == "0.00"
        assert ledger.available_balance() == Decimal("12.00")

    def test_subscription_charge_does_not_add_to_balance(self):
        ledger = VendorLedger.open("vendor-1")
        ledger.record_transaction(
            entry_type=EntryType.PLATFORM_SUBSCRIPTION.value, amount="29.00", fee_schedule=FEES
        )
        assert ledger.available_balance() == Decimal("0.00")

    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValidationError):
            VendorLedger.open("vendor-1").record_transaction(
                entry_type=EntryType.ORDER_PAYMENT.value, amount=amount, fee_schedule=FEES
            )

    @pytest.mark.parametrize("entry_type", [EntryType.REFUND.value, EntryType.PAYOUT.value])
    def test_refund_and_payout_entries_cannot_be_recorded_directly(self, entry_type):
        with pytest.raises(ValidationError):
            VendorLedger.open("vendor-1").record_transaction(entry_type=entry_type, amount="10.00", fee_schedule=FEES)

    def test_pending_payment_settles(self):
        ledger, entry = _ledger_with_payment(status=EntryStatus.PENDING.value)
        ledger.change_transaction_status(entry.id, EntryStatus.COMPLETED.value)
        assert ledger.available_balance() == Decimal("97.20")

    def test_completed_payment_cannot_return_to_pending(self):
        ledger, entry = _ledger_with_payment()
        with pytest.raises(InvalidStateError):
            ledger.change_transaction_status(entry.id, EntryStatus.PENDING.value)

    def test_unknown_entry_is_not_found(self):
        with pytest.raises(ObjectNotFoundError):
            VendorLedger.open("vendor-1").entry("missing")


class TestRefunds:
    def test_partial_refund(self):
        ledger, entry = _ledger_with_payment()
        refund = ledger.refund(entry.id, "40.00", reason="Damaged")

        assert refund.entry_type == EntryType.REFUND.value
        assert refund.source_transaction_id == entry.id
        assert entry.status == EntryStatus.PARTIAL_REFUND.value
        assert entry.refunded_amount == "40.00"
        assert ledger.available_balance() == Decimal("57.20")
        assert any(isinstance(e, TransactionRefunded) for e in ledger._events)

    def test_refunds_accumulate_to_full(self):
        ledger, entry = _ledger_with_payment()
        ledger.refund(entry.id, "40.00")
        ledger.refund(entry.id, "60.00")
        assert entry.status == EntryStatus.REFUNDED.value
        assert entry.refunded_amount == "100.00"

    def test_refund_over_payment_is_rejected(self):
        ledger, entry = _ledger_with_payment()
        with pytest.raises(InvalidStateError):
            ledger.refund(entry.id, "150.00")
        assert entry.refunded_amount == "0.00"

    def test_refund_over_remaining_is_rejected(self):
        ledger, entry = _ledger_with_payment()
        ledger.refund(entry.id, "80.00")
        with pytest.raises(InvalidStateError):
            ledger.refund(entry.id, "20.01")

    def test_pending_payment_cannot_be_refunded(self):
        ledger, entry = _ledger_with_payment(status=EntryStatus.PENDING.value)
        with pytest.raises(InvalidStateError):
            ledger.refund(entry.id, "10.00")

    def test_refund_amount_must_be_positive(self):
        ledger, entry = _ledger_with_payment()
        with pytest.raises(ValidationError):
            ledger.refund(entry.id, "0")


class TestPayoutRequests:
    def test_below_minimum_is_insufficient(self):
        ledger, _ = _ledger_with_payment()
        with pytest.raises(InsufficientFundsError) as exc:
            ledger.request_payout(MINIMUM, amount="10.00")
        assert exc.value.available_balance == Decimal("97.20")

    def test_more_than_available_is_insufficient(self):
        ledger, _ = _ledger_with_payment()
        with pytest.raises(InsufficientFundsError):
            ledger.request_payout(MINIMUM, amount="97.21")

    def test_balance_under_minimum_is_insufficient(self):
        ledger, _ = _ledger_with_payment(amount="20.00")
        with pytest.raises(InsufficientFundsError):
            ledger.request_payout(MINIMUM)

    def test_exact_balance_claims_every_entry(self):
        ledger, entry = _ledger_with_payment()
        payout = ledger.request_payout(MINIMUM, amount="97.20")

        assert payout.amount == "97.20"
        assert payout.status == PayoutStatus.PENDING.value
        assert payout.claimed_ids == [str(entry.id)]
        assert entry.is_paid_out
        assert entry.payout_id == payout.id
        assert ledger.available_balance() == Decimal("0.00")
        assert any(isinstance(e, PayoutRequested) for e in ledger._events)

    def test_second_request_finds_nothing_to_claim(self):
        ledger, _ = _ledger_with_payment()
        ledger.request_payout(MINIMUM)
        with pytest.raises(InsufficientFundsError):
            ledger.request_payout(MINIMUM)

    def test_refunds_are_claimed_with_their_payment(self):
        ledger, entry = _ledger_with_payment()
        refund = ledger.refund(entry.id, "20.00")
        payout = ledger.request_payout(MINIMUM)
        assert payout.amount == "77.20"
        assert set(payout.claimed_ids) == {str(entry.id), str(refund.id)}

    def test_partial_payout_carries_the_remainder_forward(self):
        ledger, _ = _ledger_with_payment()
        ledger.request_payout(MINIMUM, amount="50.00")

        carry = next(e for e in ledger.entries if e.entry_type == EntryType.ADJUSTMENT.value)
        assert carry.amount == "47.20"
        assert not carry.is_paid_out
        assert ledger.available_balance() == Decimal("47.20")

    def test_unknown_payout_is_not_found(self):
        with pytest.raises(ObjectNotFoundError):
            VendorLedger.open("vendor-1").payout("missing")


class TestPayoutLifecycle:
    def test_approve_then_complete(self):
        ledger, _ = _ledger_with_payment()
        payout = ledger.request_payout(MINIMUM)

        ledger.approve_payout(payout.id)
        assert payout.status == PayoutStatus.PROCESSING.value
        assert payout.processed_at is not None

        ledger.complete_payout(payout.id)
        assert payout.status == PayoutStatus.COMPLETED.value
        payout_entries = [e for e in ledger.entries if e.entry_type == EntryType.PAYOUT.value]
        assert len(payout_entries) == 1
        assert payout_entries[0].amount == "97.20"
        assert ledger.available_balance() == Decimal("0.00")

    def test_completed_payout_is_final(self):
        ledger, _ = _ledger_with_payment()
        payout = ledger.request_payout(MINIMUM)
        ledger.complete_payout(payout.id)
        with pytest.raises(InvalidStateError):
            ledger.reject_payout(payout.id)

    def test_reject_releases_claimed_entries(self):
        ledger, entry = _ledger_with_payment()
        payout = ledger.request_payout(MINIMUM)

        ledger.reject_payout(payout.id, reason="Bank details invalid")

        assert payout.status == PayoutStatus.FAILED.value
        assert payout.failure_reason == "Bank details invalid"
        assert not entry.is_paid_out
        assert entry.payout_id is None
        assert ledger.available_balance() == Decimal("97.20")
        changed = next(e for e in ledger._events if isinstance(e, PayoutStatusChanged))
        assert str(entry.id) in changed.released_transaction_ids

    def test_reject_voids_the_carry_forward(self):
        ledger, _ = _ledger_with_payment()
        payout = ledger.request_payout(MINIMUM, amount="50.00")
        ledger.reject_payout(payout.id)

        carry = next(e for e in ledger.entries if e.entry_type == EntryType.ADJUSTMENT.value)
        assert carry.status == EntryStatus.FAILED.value
        assert ledger.available_balance() == Decimal("97.20")

    def test_rejected_payout_cannot_be_approved(self):
        ledger, _ = _ledger_with_payment()
        payout = ledger.request_payout(MINIMUM)
        ledger.reject_payout(payout.id)
        with pytest.raises(InvalidStateError):
            ledger.approve_payout(payout.id)
