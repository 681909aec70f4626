"""Transaction record: one row per ledger entry, across all vendors.

Lets the API find the vendor that owns a transaction id without loading
every ledger.
"""

import json

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.ledger.events import (
    PayoutRequested,
    PayoutStatusChanged,
    TransactionRecorded,
    TransactionRefunded,
    TransactionStatusChanged,
)
from marketplace.ledger.ledger import VendorLedger


@marketplace.projection
class TransactionRecord:
    transaction_id = Identifier(identifier=True, required=True)
    vendor_id = Identifier(required=True)
    entry_type = String(max_length=30, required=True)
    status = String(max_length=20, required=True)
    amount = String(max_length=20, required=True)
    fee = String(max_length=20, default="0.00")
    net = String(max_length=20)
    refunded_amount = String(max_length=20, default="0.00")
    order_id = Identifier()
    payout_id = Identifier()
    is_paid_out = Boolean(default=False)
    recorded_at = DateTime()

    def to_dict(self) -> dict:
        return {
            "id": str(self.transaction_id),
            "vendor_id": str(self.vendor_id),
            "type": self.entry_type,
            "status": self.status,
            "amount": self.amount,
            "fee": self.fee,
            "net": self.net,
            "refunded_amount": self.refunded_amount,
            "order_id": str(self.order_id) if self.order_id else None,
            "payout_id": str(self.payout_id) if self.payout_id else None,
            "is_paid_out": bool(self.is_paid_out),
            "created_at": self.recorded_at.isoformat() if self.recorded_at else None,
        }


def _update(transaction_id, **changes):
    repo = current_domain.repository_for(TransactionRecord)
    try:
        record = repo.get(str(transaction_id))
    except ObjectNotFoundError:
        return
    for name, value in changes.items():
        setattr(record, name, value)
    repo.add(record)


@marketplace.projector(projector_for=TransactionRecord, aggregates=[VendorLedger])
class TransactionRecordProjector:
    @on(TransactionRecorded)
    def on_transaction_recorded(self, event):
        current_domain.repository_for(TransactionRecord).add(
            TransactionRecord(
                transaction_id=event.transaction_id,
                vendor_id=event.vendor_id,
                entry_type=event.entry_type,
                status=event.status,
                amount=event.amount,
                fee=event.fee,
                net=event.net,
                order_id=event.order_id,
                payout_id=event.payout_id,
                is_paid_out=event.is_paid_out,
                recorded_at=event.recorded_at,
            )
        )

    @on(TransactionStatusChanged)
    def on_transaction_status_changed(self, event):
        _update(event.transaction_id, status=event.new_status)

    @on(TransactionRefunded)
    def on_transaction_refunded(self, event):
        _update(event.transaction_id, status=event.status, refunded_amount=event.refunded_amount)

    @on(PayoutRequested)
    def on_payout_requested(self, event):
        for transaction_id in json.loads(event.transaction_ids or "[]"):
            _update(transaction_id, is_paid_out=True, payout_id=event.payout_id)

    @on(PayoutStatusChanged)
    def on_payout_status_changed(self, event):
        for transaction_id in json.loads(event.released_transaction_ids or "[]"):
            _update(transaction_id, is_paid_out=False, payout_id=None)
