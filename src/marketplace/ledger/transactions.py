"""Ledger transactions: recording, settling and refunding.

Commands and handler.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import logger, marketplace
from marketplace.ledger.commission import commission_in_effect
from marketplace.ledger.ledger import EntryStatus, EntryType, VendorLedger
from marketplace.order.order import Order, PaymentStatus
from marketplace.settings import get_settings
from marketplace.vendor.vendor import Vendor


@marketplace.command(part_of="VendorLedger")
class RecordTransaction:
    vendor_id = Identifier(required=True)
    entry_type = String(required=True, choices=EntryType)
    amount = String(max_length=20, required=True)
    status = String(choices=EntryStatus, default=EntryStatus.COMPLETED.value)
    order_id = Identifier()
    description = String(max_length=500)


@marketplace.command(part_of="VendorLedger")
class UpdateTransactionStatus:
    vendor_id = Identifier(required=True)
    transaction_id = Identifier(required=True)
    status = String(required=True, choices=EntryStatus)


@marketplace.command(part_of="VendorLedger")
class RefundTransaction:
    vendor_id = Identifier(required=True)
    transaction_id = Identifier(required=True)
    amount = String(max_length=20, required=True)
    reason = String(max_length=500)


@marketplace.command_handler(part_of=VendorLedger)
class LedgerTransactionsHandler:
    @handle(RecordTransaction)
    def record_transaction(self, command):
        settings = get_settings()
        current_domain.repository_for(Vendor).get(command.vendor_id)

        repo = current_domain.repository_for(VendorLedger)
        ledger = repo.get_or_open(command.vendor_id, currency=settings.currency)
        entry = ledger.record_transaction(
            entry_type=command.entry_type,
            amount=command.amount,
            fee_schedule=commission_in_effect().fee_schedule,
            status=command.status,
            order_id=command.order_id,
            description=command.description,
        )
        repo.add(ledger)
        logger.info(
            "transaction_recorded",
            vendor_id=command.vendor_id,
            transaction_id=entry.id,
            entry_type=entry.entry_type,
            amount=entry.amount,
        )
        return entry.id

    @handle(UpdateTransactionStatus)
    def update_transaction_status(self, command):
        repo = current_domain.repository_for(VendorLedger)
        ledger = repo.get(command.vendor_id)
        ledger.change_transaction_status(command.transaction_id, command.status)
        repo.add(ledger)

    @handle(RefundTransaction)
    def refund_transaction(self, command):
        repo = current_domain.repository_for(VendorLedger)
        ledger = repo.get(command.vendor_id)
        refund_entry = ledger.refund(command.transaction_id, command.amount, reason=command.reason)
        repo.add(ledger)

        original = ledger.entry(command.transaction_id)
        if original.order_id and original.status == EntryStatus.REFUNDED.value:
            order_repo = current_domain.repository_for(Order)
            order = order_repo.get(original.order_id)
            if order.payment_status == PaymentStatus.PAID.value:
                order.mark_refunded()
                order_repo.add(order)

        logger.info(
            "transaction_refunded",
            vendor_id=command.vendor_id,
            transaction_id=command.transaction_id,
            amount=refund_entry.amount,
        )
        return refund_entry.id
