"""Domain events for the Customer aggregate."""

from protean.fields import Boolean, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Customer")
class CustomerCreated:
    """A shopper placed their first order (or saved an address) with a vendor."""

    __version__ = 1

    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    email = String(required=True)


@marketplace.event(part_of="Customer")
class AddressAdded:
    __version__ = 1

    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)
    is_default = Boolean(default=False)


@marketplace.event(part_of="Customer")
class DefaultAddressChanged:
    __version__ = 1

    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)
    previous_default_address_id = Identifier()


@marketplace.event(part_of="Customer")
class AddressRemoved:
    __version__ = 1

    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)
