"""Product aggregate: an item a vendor sells.

Carts read the current name and price when an item is added; orders keep
their own copy, so later edits here never reach an order that was already
placed.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from marketplace.catalogue.events import ProductArchived, ProductCreated, ProductUpdated
from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStateError
from marketplace.shared.money import format_money, to_decimal


class ProductStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


EDITABLE_FIELDS = ("name", "description", "price", "compare_at_price", "sku", "inventory", "status")


@marketplace.aggregate
class Product:
    vendor_id = Identifier(required=True)
    name = String(max_length=200, required=True)
    description = Text()
    price = String(max_length=20, required=True)
    compare_at_price = String(max_length=20)
    sku = String(max_length=64)
    inventory = Integer(default=0, min_value=0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def price_must_not_be_negative(self):
        if self.price is not None and to_decimal(self.price, "price") < 0:
            raise ValidationError({"price": ["Price cannot be negative"]})

    @classmethod
    def create(cls, vendor_id, name, price, description=None, compare_at_price=None, sku=None, inventory=0,
               status=ProductStatus.ACTIVE.value):
        now = datetime.now(UTC)
        product = cls(
            vendor_id=vendor_id,
            name=name,
            description=description,
            price=format_money(to_decimal(price, "price")),
            compare_at_price=format_money(compare_at_price) if compare_at_price else None,
            sku=sku,
            inventory=inventory,
            status=status,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=product.id,
                vendor_id=vendor_id,
                name=name,
                price=product.price,
            )
        )
        return product

    @property
    def is_available(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    def update(self, **changes):
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({"product": [f"Cannot update {', '.join(sorted(unknown))}"]})
        if self.status == ProductStatus.ARCHIVED.value:
            raise InvalidStateError({"status": ["Archived products cannot be edited"]})
        if not changes:
            return

        for money_field in ("price", "compare_at_price"):
            if changes.get(money_field) is not None:
                changes[money_field] = format_money(to_decimal(changes[money_field], money_field))

        for name, value in changes.items():
            setattr(self, name, value)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductUpdated(
                product_id=self.id,
                vendor_id=self.vendor_id,
                changed_fields=json.dumps(sorted(changes)),
            )
        )

    def archive(self):
        if self.status == ProductStatus.ARCHIVED.value:
            raise InvalidStateError({"status": ["Product is already archived"]})
        self.status = ProductStatus.ARCHIVED.value
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductArchived(product_id=self.id, vendor_id=self.vendor_id))
