"""Repository for the Product aggregate."""

from marketplace.catalogue.product import Product
from marketplace.domain import marketplace


@marketplace.repository(part_of=Product)
class ProductRepository:
    def find_for_vendor(self, vendor_id, status: str | None = None) -> list[Product]:
        filters = {"vendor_id": str(vendor_id)}
        if status:
            filters["status"] = status
        return self._dao.query.filter(**filters).order_by("created_at").all().items
