"""VendorLedger aggregate: a vendor's money movements and payouts.

Each vendor has exactly one ledger, identified by the vendor id. Keeping the
entries and the payouts inside one aggregate makes "request a payout and
claim the entries it pays" a single mutation: it is persisted in one unit of
work and guarded by the aggregate version, so two concurrent requests can
never claim the same entry.

Balance rules:
    available = net of settled, unclaimed credits (payments, carry-forwards)
                - amount of completed, unclaimed refunds
    pending   = net of pending payments

Payout lifecycle:
    pending → processing → completed
    pending/processing → failed (claimed entries are released)
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, String, Text

from marketplace.domain import marketplace
from marketplace.exceptions import InsufficientFundsError, InvalidStateError
from marketplace.ledger.events import (
    PayoutRequested,
    PayoutStatusChanged,
    TransactionRecorded,
    TransactionRefunded,
    TransactionStatusChanged,
)
from marketplace.ledger.fees import FeeSchedule
from marketplace.shared.money import ZERO, format_money, quantize, to_decimal


class EntryType(Enum):
    ORDER_PAYMENT = "order_payment"
    REFUND = "refund"
    PAYOUT = "payout"
    PLATFORM_SUBSCRIPTION = "platform_subscription"
    ADJUSTMENT = "adjustment"


class EntryStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIAL_REFUND = "partial_refund"


class PayoutStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Credits that add to the withdrawable balance once settled
_CREDIT_TYPES = {EntryType.ORDER_PAYMENT.value, EntryType.ADJUSTMENT.value}
# A refunded payment stays settled: its refund entry carries the debit
_SETTLED = {EntryStatus.COMPLETED.value, EntryStatus.PARTIAL_REFUND.value, EntryStatus.REFUNDED.value}
_REFUNDABLE = {EntryStatus.COMPLETED.value, EntryStatus.PARTIAL_REFUND.value}

_ENTRY_TRANSITIONS = {
    EntryStatus.PENDING: {EntryStatus.COMPLETED, EntryStatus.FAILED},
}

_PAYOUT_TRANSITIONS = {
    PayoutStatus.PENDING: {PayoutStatus.PROCESSING, PayoutStatus.COMPLETED, PayoutStatus.FAILED},
    PayoutStatus.PROCESSING: {PayoutStatus.COMPLETED, PayoutStatus.FAILED},
    PayoutStatus.COMPLETED: set(),
    PayoutStatus.FAILED: set(),
}


@marketplace.entity(part_of="VendorLedger")
class LedgerEntry:
    entry_type = String(choices=EntryType, required=True)
    status = String(choices=EntryStatus, default=EntryStatus.PENDING.value)
    amount = String(max_length=20, required=True)
    fee = String(max_length=20, default="0.00")
    net = String(max_length=20, required=True)
    refunded_amount = String(max_length=20, default="0.00")
    order_id = Identifier()
    payout_id = Identifier()
    is_paid_out = Boolean(default=False)
    source_transaction_id = Identifier()
    description = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @property
    def is_credit(self) -> bool:
        return self.entry_type in _CREDIT_TYPES and self.status in _SETTLED

    @property
    def is_debit(self) -> bool:
        return self.entry_type == EntryType.REFUND.value and self.status == EntryStatus.COMPLETED.value

    @property
    def is_claimable(self) -> bool:
        return not self.is_paid_out and (self.is_credit or self.is_debit)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "type": self.entry_type,
            "status": self.status,
            "amount": self.amount,
            "fee": self.fee,
            "net": self.net,
            "refunded_amount": self.refunded_amount,
            "order_id": str(self.order_id) if self.order_id else None,
            "payout_id": str(self.payout_id) if self.payout_id else None,
            "is_paid_out": bool(self.is_paid_out),
            "source_transaction_id": str(self.source_transaction_id) if self.source_transaction_id else None,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@marketplace.entity(part_of="VendorLedger")
class Payout:
    amount = String(max_length=20, required=True)
    fee = String(max_length=20, default="0.00")
    net = String(max_length=20, required=True)
    status = String(choices=PayoutStatus, default=PayoutStatus.PENDING.value)
    method = String(max_length=50, default="bank_transfer")
    notes = Text()
    transaction_ids = Text(default="[]")  # JSON array of claimed entry ids
    failure_reason = String(max_length=500)
    requested_at = DateTime()
    processed_at = DateTime()
    completed_at = DateTime()

    @property
    def claimed_ids(self) -> list[str]:
        return json.loads(self.transaction_ids or "[]")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "amount": self.amount,
            "fee": self.fee,
            "net": self.net,
            "status": self.status,
            "method": self.method,
            "notes": self.notes,
            "transaction_ids": self.claimed_ids,
            "failure_reason": self.failure_reason,
            "requested_at": self.requested_at.isoformat() if self.requested_at else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@marketplace.aggregate
class VendorLedger:
    currency = String(max_length=3, default="USD")
    entries = HasMany(LedgerEntry)
    payouts = HasMany(Payout)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(cls, vendor_id, currency="USD"):
        now = datetime.now(UTC)
        return cls(id=str(vendor_id), currency=currency, created_at=now, updated_at=now)

    @property
    def vendor_id(self) -> str:
        return str(self.id)

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def entry(self, entry_id) -> LedgerEntry:
        entry = next((e for e in self.entries if str(e.id) == str(entry_id)), None)
        if entry is None:
            raise ObjectNotFoundError({"transaction_id": [f"Transaction {entry_id} not found"]})
        return entry

    def payout(self, payout_id) -> Payout:
        payout = next((p for p in self.payouts if str(p.id) == str(payout_id)), None)
        if payout is None:
            raise ObjectNotFoundError({"payout_id": [f"Payout {payout_id} not found"]})
        return payout

    # -------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------
    def available_balance(self) -> Decimal:
        unclaimed = [e for e in self.entries if not e.is_paid_out]
        credits = sum((to_decimal(e.net) for e in unclaimed if e.is_credit), ZERO)
        debits = sum((to_decimal(e.amount) for e in unclaimed if e.is_debit), ZERO)
        return quantize(credits - debits)

    def pending_balance(self) -> Decimal:
        pending = (
            to_decimal(e.net)
            for e in self.entries
            if e.entry_type == EntryType.ORDER_PAYMENT.value and e.status == EntryStatus.PENDING.value
        )
        return quantize(sum(pending, ZERO))

    # -------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------
    def _add_entry(self, **values) -> LedgerEntry:
        now = datetime.now(UTC)
        entry = LedgerEntry(created_at=now, updated_at=now, **values)
        self.add_entries(entry)
        self.updated_at = now
        self.raise_(
            TransactionRecorded(
                transaction_id=entry.id,
                vendor_id=self.vendor_id,
                entry_type=entry.entry_type,
                status=entry.status,
                amount=entry.amount,
                fee=entry.fee,
                net=entry.net,
                order_id=entry.order_id,
                payout_id=entry.payout_id,
                source_transaction_id=entry.source_transaction_id,
                is_paid_out=bool(entry.is_paid_out),
                recorded_at=now,
            )
        )
        return entry

    def record_transaction(
        self,
        entry_type,
        amount,
        fee_schedule: FeeSchedule,
        status=EntryStatus.COMPLETED.value,
        order_id=None,
        description=None,
    ) -> LedgerEntry:
        """Record a payment or platform charge. Payments carry the platform fee."""
        amount = quantize(amount)
        if amount <= ZERO:
            raise ValidationError({"amount": ["Amount must be greater than zero"]})
        if EntryType(entry_type) in (EntryType.REFUND, EntryType.PAYOUT):
            raise ValidationError({"type": [f"{entry_type} entries are created by refunds and payouts"]})

        if entry_type == EntryType.ORDER_PAYMENT.value:
            fee, net = fee_schedule.fee_for(amount)
        else:
            fee, net = ZERO, amount

        return self._add_entry(
            entry_type=entry_type,
            status=EntryStatus(status).value,
            amount=format_money(amount),
            fee=format_money(fee),
            net=format_money(net),
            order_id=order_id,
            description=description,
        )

    def change_transaction_status(self, entry_id, new_status):
        entry = self.entry(entry_id)
        current = EntryStatus(entry.status)
        target = EntryStatus(new_status)
        if target not in _ENTRY_TRANSITIONS.get(current, set()):
            raise InvalidStateError({"status": [f"Cannot move transaction from {current.value} to {target.value}"]})

        entry.status = target.value
        entry.updated_at = datetime.now(UTC)
        self.raise_(
            TransactionStatusChanged(
                transaction_id=entry.id,
                vendor_id=self.vendor_id,
                previous_status=current.value,
                new_status=target.value,
            )
        )

    def refund(self, entry_id, amount, reason=None) -> LedgerEntry:
        """Refund part or all of a payment and record the matching refund entry."""
        amount = quantize(amount)
        if amount <= ZERO:
            raise ValidationError({"amount": ["Refund amount must be greater than zero"]})

        original = self.entry(entry_id)
        if original.entry_type != EntryType.ORDER_PAYMENT.value or original.status not in _REFUNDABLE:
            raise InvalidStateError({"transaction": ["Only completed payments can be refunded"]})

        already_refunded = to_decimal(original.refunded_amount)
        original_amount = to_decimal(original.amount)
        if amount + already_refunded > original_amount:
            raise InvalidStateError({"amount": ["Refund amount exceeds available amount"]})

        refunded = quantize(already_refunded + amount)
        original.refunded_amount = format_money(refunded)
        original.status = (
            EntryStatus.REFUNDED.value if refunded == original_amount else EntryStatus.PARTIAL_REFUND.value
        )
        original.updated_at = datetime.now(UTC)

        refund_entry = self._add_entry(
            entry_type=EntryType.REFUND.value,
            status=EntryStatus.COMPLETED.value,
            amount=format_money(amount),
            fee=format_money(ZERO),
            net=format_money(amount),
            order_id=original.order_id,
            source_transaction_id=original.id,
            description=reason,
        )
        self.raise_(
            TransactionRefunded(
                transaction_id=original.id,
                vendor_id=self.vendor_id,
                refund_transaction_id=refund_entry.id,
                amount=format_money(amount),
                refunded_amount=original.refunded_amount,
                status=original.status,
                reason=reason,
            )
        )
        return refund_entry

    # -------------------------------------------------------------------
    # Payouts
    # -------------------------------------------------------------------
    def request_payout(self, minimum, amount=None, method="bank_transfer", notes=None) -> Payout:
        """Claim every unclaimed entry and create a pending payout.

        Without ``amount`` the whole available balance is paid out. A smaller
        amount leaves the difference behind as a carry-forward adjustment.
        """
        available = self.available_balance()
        minimum = quantize(minimum)

        if amount is None:
            requested = available
        else:
            requested = quantize(amount)
            if requested <= ZERO:
                raise ValidationError({"amount": ["Payout amount must be greater than zero"]})

        if requested < minimum:
            raise InsufficientFundsError(
                {"amount": [f"Minimum payout amount is {format_money(minimum)}"]},
                available_balance=available,
            )
        if requested > available:
            raise InsufficientFundsError(
                {"amount": ["Insufficient funds for payout"]},
                available_balance=available,
            )

        now = datetime.now(UTC)
        claimed = [e for e in self.entries if e.is_claimable]
        payout = Payout(
            amount=format_money(requested),
            fee=format_money(ZERO),
            net=format_money(requested),
            status=PayoutStatus.PENDING.value,
            method=method or "bank_transfer",
            notes=notes,
            transaction_ids=json.dumps([str(e.id) for e in claimed]),
            requested_at=now,
        )
        self.add_payouts(payout)

        for entry in claimed:
            entry.is_paid_out = True
            entry.payout_id = payout.id
            entry.updated_at = now

        self.raise_(
            PayoutRequested(
                payout_id=payout.id,
                vendor_id=self.vendor_id,
                amount=payout.amount,
                method=payout.method,
                transaction_ids=payout.transaction_ids,
                requested_at=now,
            )
        )

        remainder = quantize(available - requested)
        if remainder > ZERO:
            self._add_entry(
                entry_type=EntryType.ADJUSTMENT.value,
                status=EntryStatus.COMPLETED.value,
                amount=format_money(remainder),
                fee=format_money(ZERO),
                net=format_money(remainder),
                source_transaction_id=payout.id,
                description="Carried forward from partial payout",
            )
        self.updated_at = now
        return payout

    def _transition_payout(self, payout_id, target: PayoutStatus, reason=None) -> Payout:
        payout = self.payout(payout_id)
        current = PayoutStatus(payout.status)
        if target not in _PAYOUT_TRANSITIONS[current]:
            raise InvalidStateError({"status": [f"Cannot move payout from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        payout.status = target.value
        released = []

        if target == PayoutStatus.PROCESSING:
            payout.processed_at = now
        elif target == PayoutStatus.COMPLETED:
            payout.completed_at = now
            self._add_entry(
                entry_type=EntryType.PAYOUT.value,
                status=EntryStatus.COMPLETED.value,
                amount=payout.amount,
                fee=payout.fee,
                net=payout.net,
                payout_id=payout.id,
                is_paid_out=True,
                description=f"Payout via {payout.method}",
            )
        else:
            payout.failure_reason = reason
            released = self._release_claims(payout)

        self.updated_at = now
        self.raise_(
            PayoutStatusChanged(
                payout_id=payout.id,
                vendor_id=self.vendor_id,
                previous_status=current.value,
                new_status=target.value,
                released_transaction_ids=json.dumps(released) if released else None,
                reason=reason,
                changed_at=now,
            )
        )
        return payout

    def _release_claims(self, payout: Payout) -> list[str]:
        """Hand a failed payout's entries back to the balance and void its carry-forward."""
        released = []
        for entry in self.entries:
            if str(entry.payout_id or "") == str(payout.id) and entry.entry_type != EntryType.PAYOUT.value:
                entry.is_paid_out = False
                entry.payout_id = None
                released.append(str(entry.id))
            elif (
                entry.entry_type == EntryType.ADJUSTMENT.value
                and str(entry.source_transaction_id or "") == str(payout.id)
                and entry.status == EntryStatus.COMPLETED.value
            ):
                if entry.is_paid_out:
                    raise InvalidStateError(
                        {"payout": ["The carry-forward of this payout has already been paid out"]}
                    )
                entry.status = EntryStatus.FAILED.value
                self.raise_(
                    TransactionStatusChanged(
                        transaction_id=entry.id,
                        vendor_id=self.vendor_id,
                        previous_status=EntryStatus.COMPLETED.value,
                        new_status=EntryStatus.FAILED.value,
                    )
                )
        return released

    def approve_payout(self, payout_id) -> Payout:
        return self._transition_payout(payout_id, PayoutStatus.PROCESSING)

    def complete_payout(self, payout_id) -> Payout:
        return self._transition_payout(payout_id, PayoutStatus.COMPLETED)

    def reject_payout(self, payout_id, reason=None) -> Payout:
        return self._transition_payout(payout_id, PayoutStatus.FAILED, reason=reason)
