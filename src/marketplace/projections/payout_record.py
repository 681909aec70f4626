"""Payout record: the platform-wide payout queue the super-admin works from."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.ledger.events import PayoutRequested, PayoutStatusChanged
from marketplace.ledger.ledger import VendorLedger


@marketplace.projection
class PayoutRecord:
    payout_id = Identifier(identifier=True, required=True)
    vendor_id = Identifier(required=True)
    amount = String(max_length=20, required=True)
    method = String(max_length=50)
    status = String(max_length=20, required=True)
    failure_reason = String(max_length=500)
    requested_at = DateTime()
    updated_at = DateTime()

    def to_dict(self) -> dict:
        return {
            "id": str(self.payout_id),
            "vendor_id": str(self.vendor_id),
            "amount": self.amount,
            "method": self.method,
            "status": self.status,
            "failure_reason": self.failure_reason,
            "requested_at": self.requested_at.isoformat() if self.requested_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@marketplace.projector(projector_for=PayoutRecord, aggregates=[VendorLedger])
class PayoutRecordProjector:
    @on(PayoutRequested)
    def on_payout_requested(self, event):
        current_domain.repository_for(PayoutRecord).add(
            PayoutRecord(
                payout_id=event.payout_id,
                vendor_id=event.vendor_id,
                amount=event.amount,
                method=event.method,
                status="pending",
                requested_at=event.requested_at,
                updated_at=event.requested_at,
            )
        )

    @on(PayoutStatusChanged)
    def on_payout_status_changed(self, event):
        repo = current_domain.repository_for(PayoutRecord)
        try:
            record = repo.get(str(event.payout_id))
        except ObjectNotFoundError:
            return
        record.status = event.new_status
        record.updated_at = event.changed_at
        if event.reason:
            record.failure_reason = event.reason
        repo.add(record)
