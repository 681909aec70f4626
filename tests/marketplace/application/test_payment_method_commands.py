import pytest
from protean import current_domain
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError

from marketplace.shared.concurrency import process_with_retry
from marketplace.vendor.payment_methods import (
    AddPaymentMethod,
    RemovePaymentMethod,
    SetDefaultPaymentMethod,
    UpdatePaymentMethod,
)
from marketplace.vendor.registration import RegisterVendor
from marketplace.vendor.vendor import Vendor


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _vendor():
    return _process(RegisterVendor(user_id="vendor-user", company_name="Acme"))


def _add(vendor_id, name="Visa ending 4242", method_type="card", **details):
    return _process(AddPaymentMethod(vendor_id=vendor_id, method_type=method_type, name=name, **details))


def _load(vendor_id):
    return current_domain.repository_for(Vendor).get(vendor_id)


class TestPaymentMethodCommands:
    def test_add_and_read_back(self):
        vendor_id = _vendor()
        method_id = _add(vendor_id, last_four="4242", brand="visa", expiry_month="12", expiry_year="2030")
        method = _load(vendor_id).payment_method(method_id)
        assert method.is_default
        assert method.to_dict()["last_four"] == "4242"

    def test_add_to_unknown_vendor(self):
        with pytest.raises(ObjectNotFoundError):
            _add("missing")

    def test_update(self):
        vendor_id = _vendor()
        method_id = _add(vendor_id)
        _process(UpdatePaymentMethod(vendor_id=vendor_id, payment_method_id=method_id, status="expired"))
        assert _load(vendor_id).payment_method(method_id).status == "expired"

    def test_set_default_and_remove(self):
        vendor_id = _vendor()
        first = _add(vendor_id)
        second = _add(vendor_id, name="Checking", method_type="bank_account")

        _process(SetDefaultPaymentMethod(vendor_id=vendor_id, payment_method_id=second))
        assert _load(vendor_id).default_payment_method.id == second

        _process(RemovePaymentMethod(vendor_id=vendor_id, payment_method_id=second))
        vendor = _load(vendor_id)
        assert [m.id for m in vendor.payment_methods] == [first]
        assert vendor.default_payment_method.id == first


class TestConcurrentDefaultChanges:
    def test_stale_copy_cannot_overwrite_default(self):
        vendor_id = _vendor()
        first = _add(vendor_id)
        second = _add(vendor_id, name="Backup card")
        repo = current_domain.repository_for(Vendor)

        copy_a = repo.get(vendor_id)
        copy_b = repo.get(vendor_id)
        copy_a.set_default_payment_method(second)
        repo.add(copy_a)

        copy_b.remove_payment_method(first)
        with pytest.raises(ExpectedVersionError):
            repo.add(copy_b)
        assert _load(vendor_id).default_payment_method.id == second

    def test_last_request_applied_wins(self):
        vendor_id = _vendor()
        first = _add(vendor_id)
        second = _add(vendor_id, name="Backup card")

        process_with_retry(SetDefaultPaymentMethod(vendor_id=vendor_id, payment_method_id=second))
        process_with_retry(SetDefaultPaymentMethod(vendor_id=vendor_id, payment_method_id=first))

        vendor = _load(vendor_id)
        assert vendor.default_payment_method.id == first
        assert sum(1 for m in vendor.payment_methods if m.is_default) == 1
