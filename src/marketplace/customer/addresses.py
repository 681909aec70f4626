"""Customer address book: commands and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from marketplace.customer.customer import AddressLabel, Customer
from marketplace.domain import marketplace


@marketplace.command(part_of="Customer")
class AddAddress:
    customer_id = Identifier(required=True)
    street = String(max_length=255, required=True)
    city = String(max_length=100, required=True)
    postal_code = String(max_length=20, required=True)
    country = String(max_length=2, required=True)
    state = String(max_length=100)
    label = String(choices=AddressLabel, default=AddressLabel.HOME.value)
    is_default = Boolean(default=False)


@marketplace.command(part_of="Customer")
class AddShopperAddress:
    """Save an address for a shopper, creating their customer record if needed."""

    vendor_id = Identifier(required=True)
    email = String(max_length=254, required=True)
    user_id = Identifier()
    street = String(max_length=255, required=True)
    city = String(max_length=100, required=True)
    postal_code = String(max_length=20, required=True)
    country = String(max_length=2, required=True)
    state = String(max_length=100)
    label = String(choices=AddressLabel, default=AddressLabel.HOME.value)
    is_default = Boolean(default=False)


@marketplace.command(part_of="Customer")
class SetDefaultAddress:
    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)


@marketplace.command(part_of="Customer")
class RemoveAddress:
    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)


@marketplace.command_handler(part_of=Customer)
class ManageAddressesHandler:
    @handle(AddAddress)
    def add_address(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        address = customer.add_address(
            street=command.street,
            city=command.city,
            postal_code=command.postal_code,
            country=command.country,
            state=command.state,
            label=command.label,
            is_default=command.is_default,
        )
        repo.add(customer)
        return address.id

    @handle(AddShopperAddress)
    def add_shopper_address(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.find_or_create(command.vendor_id, command.email, user_id=command.user_id)
        address = customer.add_address(
            street=command.street,
            city=command.city,
            postal_code=command.postal_code,
            country=command.country,
            state=command.state,
            label=command.label,
            is_default=command.is_default,
        )
        repo.add(customer)
        return {"customer_id": customer.id, "address_id": address.id}

    @handle(SetDefaultAddress)
    def set_default_address(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer.set_default_address(command.address_id)
        repo.add(customer)

    @handle(RemoveAddress)
    def remove_address(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer.remove_address(command.address_id)
        repo.add(customer)
