"""Domain events for the VendorLedger aggregate."""

from protean.fields import Boolean, DateTime, Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="VendorLedger")
class TransactionRecorded:
    """A money movement was entered in a vendor's ledger."""

    __version__ = 1

    transaction_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    entry_type = String(required=True)
    status = String(required=True)
    amount = String(required=True)
    fee = String(required=True)
    net = String(required=True)
    order_id = Identifier()
    payout_id = Identifier()
    source_transaction_id = Identifier()
    is_paid_out = Boolean(default=False)
    recorded_at = DateTime(required=True)


@marketplace.event(part_of="VendorLedger")
class TransactionStatusChanged:
    __version__ = 1

    transaction_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)


@marketplace.event(part_of="VendorLedger")
class TransactionRefunded:
    __version__ = 1

    transaction_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    refund_transaction_id = Identifier(required=True)
    amount = String(required=True)
    refunded_amount = String(required=True)
    status = String(required=True)
    reason = String()


@marketplace.event(part_of="VendorLedger")
class PayoutRequested:
    """A vendor asked to withdraw; the listed transactions are now claimed."""

    __version__ = 1

    payout_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    amount = String(required=True)
    method = String()
    transaction_ids = Text(required=True)  # JSON array
    requested_at = DateTime(required=True)


@marketplace.event(part_of="VendorLedger")
class PayoutStatusChanged:
    __version__ = 1

    payout_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    released_transaction_ids = Text()  # JSON array; set when a payout fails
    reason = String()
    changed_at = DateTime(required=True)


@marketplace.event(part_of="CommissionSettings")
class CommissionSettingsUpdated:
    __version__ = 1

    base_fee_percentage = String(required=True)
    flat_fee = String(required=True)
    minimum_payout = String(required=True)
    updated_by = Identifier()
    updated_at = DateTime(required=True)
