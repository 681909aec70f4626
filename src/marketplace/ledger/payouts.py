"""Vendor payouts: commands and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import logger, marketplace
from marketplace.ledger.commission import commission_in_effect
from marketplace.ledger.ledger import VendorLedger
from marketplace.settings import get_settings


@marketplace.command(part_of="VendorLedger")
class RequestPayout:
    """Withdraw ``amount``, or the whole available balance when it is omitted."""

    vendor_id = Identifier(required=True)
    amount = String(max_length=20)
    method = String(max_length=50, default="bank_transfer")
    notes = Text()


@marketplace.command(part_of="VendorLedger")
class ApprovePayout:
    vendor_id = Identifier(required=True)
    payout_id = Identifier(required=True)


@marketplace.command(part_of="VendorLedger")
class CompletePayout:
    vendor_id = Identifier(required=True)
    payout_id = Identifier(required=True)


@marketplace.command(part_of="VendorLedger")
class RejectPayout:
    vendor_id = Identifier(required=True)
    payout_id = Identifier(required=True)
    reason = String(max_length=500)


@marketplace.command_handler(part_of=VendorLedger)
class PayoutsHandler:
    @handle(RequestPayout)
    def request_payout(self, command):
        settings = get_settings()
        repo = current_domain.repository_for(VendorLedger)
        ledger = repo.get_or_open(command.vendor_id, currency=settings.currency)

        payout = ledger.request_payout(
            minimum=commission_in_effect().minimum,
            amount=command.amount or None,
            method=command.method,
            notes=command.notes,
        )
        repo.add(ledger)
        logger.info(
            "payout_requested",
            vendor_id=command.vendor_id,
            payout_id=payout.id,
            amount=payout.amount,
            claimed=len(payout.claimed_ids),
        )
        return payout.id

    @handle(ApprovePayout)
    def approve_payout(self, command):
        repo = current_domain.repository_for(VendorLedger)
        ledger = repo.get(command.vendor_id)
        ledger.approve_payout(command.payout_id)
        repo.add(ledger)
        logger.info("payout_approved", vendor_id=command.vendor_id, payout_id=command.payout_id)

    @handle(CompletePayout)
    def complete_payout(self, command):
        repo = current_domain.repository_for(VendorLedger)
        ledger = repo.get(command.vendor_id)
        ledger.complete_payout(command.payout_id)
        repo.add(ledger)
        logger.info("payout_completed", vendor_id=command.vendor_id, payout_id=command.payout_id)

    @handle(RejectPayout)
    def reject_payout(self, command):
        repo = current_domain.repository_for(VendorLedger)
        ledger = repo.get(command.vendor_id)
        ledger.reject_payout(command.payout_id, reason=command.reason)
        repo.add(ledger)
        logger.info("payout_rejected", vendor_id=command.vendor_id, payout_id=command.payout_id)
