"""Repository for the VendorLedger aggregate."""

from protean.exceptions import ObjectNotFoundError

from marketplace.domain import marketplace
from marketplace.ledger.ledger import VendorLedger


@marketplace.repository(part_of=VendorLedger)
class VendorLedgerRepository:
    def get_or_open(self, vendor_id, currency: str = "USD") -> VendorLedger:
        """The vendor's ledger, or a fresh empty one (not yet saved)."""
        try:
            return self.get(str(vendor_id))
        except ObjectNotFoundError:
            return VendorLedger.open(vendor_id, currency=currency)
