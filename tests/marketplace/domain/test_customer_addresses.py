import pytest
from protean.exceptions import ObjectNotFoundError

from marketplace.customer.customer import Customer
from marketplace.customer.events import DefaultAddressChanged


def _customer():
    return Customer.create(vendor_id="vendor-1", email="  Shopper@Example.COM ")


def _add(customer, street="1 Main St", is_default=False):
    return customer.add_address(
        street=street, city="Springfield", postal_code="12345", country="us", is_default=is_default
    )


class TestCustomer:
    def test_email_is_normalized(self):
        assert _customer().email == "shopper@example.com"

    def test_customer_key_is_per_vendor_and_email(self):
        assert _customer().customer_key == "vendor-1:shopper@example.com"

    def test_link_user_fills_missing_account(self):
        customer = _customer()
        customer.link_user("user-1")
        customer.link_user("user-2")
        assert customer.user_id == "user-1"

    def test_link_user_ignores_empty(self):
        customer = _customer()
        customer.link_user(None)
        assert customer.user_id is None

    def test_record_order_updates_totals(self):
        customer = _customer()
        customer.record_order("19.99")
        customer.record_order("0.01")
        assert customer.total_orders == 2
        assert customer.total_spent == "20.00"
        assert customer.last_order_at is not None


class TestAddresses:
    def test_first_address_is_default(self):
        customer = _customer()
        address = _add(customer)
        assert address.is_default
        assert address.country == "US"

    def test_second_address_is_not_default(self):
        customer = _customer()
        first = _add(customer)
        second = _add(customer, street="2 Side St")
        assert first.is_default
        assert not second.is_default

    def test_new_default_replaces_old(self):
        customer = _customer()
        first = _add(customer)
        second = _add(customer, street="2 Side St", is_default=True)
        assert not first.is_default
        assert customer.default_address is second

    def test_set_default_address(self):
        customer = _customer()
        first = _add(customer)
        second = _add(customer, street="2 Side St")

        customer.set_default_address(second.id)

        assert customer.default_address.id == second.id
        assert sum(1 for a in customer.addresses if a.is_default) == 1
        event = next(e for e in customer._events if isinstance(e, DefaultAddressChanged))
        assert event.previous_default_address_id == first.id

    def test_last_default_request_wins(self):
        customer = _customer()
        first = _add(customer)
        second = _add(customer, street="2 Side St")
        customer.set_default_address(second.id)
        customer.set_default_address(first.id)
        assert customer.default_address.id == first.id

    def test_removing_default_promotes_another(self):
        customer = _customer()
        first = _add(customer)
        second = _add(customer, street="2 Side St")
        customer.remove_address(first.id)
        assert customer.default_address.id == second.id

    def test_unknown_address_is_not_found(self):
        with pytest.raises(ObjectNotFoundError):
            _customer().set_default_address("missing")
