"""Customer aggregate: a shopper as seen by one vendor.

Customers are unique per (vendor, email) and are created lazily the first
time a shopper checks out with a vendor or saves an address there.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String

from marketplace.customer.events import AddressAdded, AddressRemoved, CustomerCreated, DefaultAddressChanged
from marketplace.domain import marketplace
from marketplace.shared.money import ZERO, format_money, to_decimal


class AddressLabel(Enum):
    HOME = "home"
    WORK = "work"
    OTHER = "other"


@marketplace.entity(part_of="Customer")
class Address:
    label = String(choices=AddressLabel, default=AddressLabel.HOME.value)
    street = String(max_length=255, required=True)
    city = String(max_length=100, required=True)
    state = String(max_length=100)
    postal_code = String(max_length=20, required=True)
    country = String(max_length=2, required=True)
    is_default = Boolean(default=False)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "label": self.label,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
            "is_default": bool(self.is_default),
        }


def customer_key_for(vendor_id, email: str) -> str:
    return f"{vendor_id}:{email.strip().lower()}"


@marketplace.aggregate
class Customer:
    vendor_id = Identifier(required=True)
    user_id = Identifier()
    email = String(max_length=254, required=True)
    # "<vendor_id>:<email>", unique per vendor
    customer_key = String(max_length=300, unique=True)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=30)
    total_orders = Integer(default=0, min_value=0)
    total_spent = String(max_length=20, default="0.00")
    addresses = HasMany(Address)
    created_at = DateTime()
    last_order_at = DateTime()

    @invariant.post
    def only_one_default_address(self):
        if sum(1 for a in self.addresses if a.is_default) > 1:
            raise ValidationError({"addresses": ["Only one address can be the default"]})

    @classmethod
    def create(cls, vendor_id, email, user_id=None, first_name=None, last_name=None, phone=None):
        customer = cls(
            vendor_id=vendor_id,
            email=email.strip().lower(),
            customer_key=customer_key_for(vendor_id, email),
            user_id=user_id,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            total_orders=0,
            total_spent=format_money(ZERO),
            created_at=datetime.now(UTC),
        )
        customer.raise_(CustomerCreated(customer_id=customer.id, vendor_id=vendor_id, email=customer.email))
        return customer

    def link_user(self, user_id):
        """Attach a signed-in account to a customer first seen as a guest."""
        if user_id and not self.user_id:
            self.user_id = user_id

    def record_order(self, order_total):
        self.total_orders = (self.total_orders or 0) + 1
        self.total_spent = format_money(to_decimal(self.total_spent) + to_decimal(order_total))
        self.last_order_at = datetime.now(UTC)

    @property
    def default_address(self) -> Address | None:
        return next((a for a in self.addresses if a.is_default), None)

    def _find_address(self, address_id) -> Address:
        address = next((a for a in self.addresses if str(a.id) == str(address_id)), None)
        if address is None:
            raise ObjectNotFoundError({"address_id": [f"Address {address_id} not found"]})
        return address

    def add_address(self, street, city, postal_code, country, label=AddressLabel.HOME.value, state=None,
                    is_default=False):
        # The first address is always the default
        if not self.addresses:
            is_default = True

        with atomic_change(self):
            if is_default:
                for addr in self.addresses:
                    if addr.is_default:
                        addr.is_default = False

            address = Address(
                label=label,
                street=street,
                city=city,
                state=state,
                postal_code=postal_code,
                country=country.upper(),
                is_default=is_default,
            )
            self.add_addresses(address)

        self.raise_(AddressAdded(customer_id=self.id, address_id=address.id, is_default=bool(is_default)))
        return address

    def set_default_address(self, address_id):
        """Make one address the default; the last request applied wins."""
        address = self._find_address(address_id)
        previous = self.default_address
        if previous is address:
            return

        with atomic_change(self):
            for addr in self.addresses:
                if addr.is_default:
                    addr.is_default = False
            address.is_default = True

        self.raise_(
            DefaultAddressChanged(
                customer_id=self.id,
                address_id=address.id,
                previous_default_address_id=previous.id if previous else None,
            )
        )

    def remove_address(self, address_id):
        address = self._find_address(address_id)
        was_default = address.is_default

        with atomic_change(self):
            self.remove_addresses(address)
            if was_default and self.addresses:
                self.addresses[0].is_default = True

        self.raise_(AddressRemoved(customer_id=self.id, address_id=address_id))
