"""Repository for the StoreDomain aggregate."""

from marketplace.domain import marketplace
from marketplace.storefront.store_domain import StoreDomain


@marketplace.repository(part_of=StoreDomain)
class StoreDomainRepository:
    def find_by_name(self, name: str) -> StoreDomain | None:
        """Exact hostname match."""
        results = self._dao.query.filter(name=name).all().items
        return results[0] if results else None

    def find_for_vendor(self, vendor_id) -> list[StoreDomain]:
        return self._dao.query.filter(vendor_id=str(vendor_id)).order_by("created_at").all().items
