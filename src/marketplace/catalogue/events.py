"""Domain events for the Product aggregate."""

from protean.fields import Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class ProductCreated:
    __version__ = 1

    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    name = String(required=True)
    price = String(required=True)


@marketplace.event(part_of="Product")
class ProductUpdated:
    __version__ = 1

    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    changed_fields = Text(required=True)  # JSON array of field names


@marketplace.event(part_of="Product")
class ProductArchived:
    __version__ = 1

    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
