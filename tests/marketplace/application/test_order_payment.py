"""Application tests for taking payment and moving orders through fulfilment."""

import pytest
from protean import current_domain

from marketplace.cart.items import AddToCart
from marketplace.catalogue.management import CreateProduct
from marketplace.checkout.checkout import Checkout
from marketplace.checkout.payment import CaptureOrderPayment, RecordOrderPayment
from marketplace.exceptions import InvalidStateError
from marketplace.gateway import get_gateway
from marketplace.ledger.ledger import EntryType, VendorLedger
from marketplace.ledger.transactions import RefundTransaction
from marketplace.order.order import Order, PaymentStatus
from marketplace.order.status import UpdateOrderStatus
from marketplace.vendor.registration import RegisterVendor


def _place_order(payment_method="card", price="100.00"):
    vendor_id = current_domain.process(RegisterVendor(user_id="vendor-user", company_name="Acme"), asynchronous=False)
    product_id = current_domain.process(
        CreateProduct(vendor_id=vendor_id, name="Widget", price=price),
        asynchronous=False,
    )
    current_domain.process(AddToCart(user_id="shopper-1", product_id=product_id, quantity=1), asynchronous=False)
    order_id = current_domain.process(
        Checkout(user_id="shopper-1", email="shopper@example.com", payment_method=payment_method),
        asynchronous=False,
    )
    return vendor_id, order_id


def _capture(order_id):
    return current_domain.process(CaptureOrderPayment(order_id=order_id), asynchronous=False)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _ledger(vendor_id):
    return current_domain.repository_for(VendorLedger).get_or_open(vendor_id)


class TestCapturePayment:
    def test_successful_charge_pays_and_credits_vendor(self):
        vendor_id, order_id = _place_order()

        assert _capture(order_id) == PaymentStatus.PAID.value

        order = _order(order_id)
        assert order.payment_reference.startswith("fake_txn_")
        entries = _ledger(vendor_id).entries
        assert len(entries) == 1
        assert entries[0].entry_type == EntryType.ORDER_PAYMENT.value
        assert entries[0].net == "97.20"
        assert entries[0].order_id == order_id

    def test_charge_uses_order_number_as_idempotency_key(self):
        _, order_id = _place_order()
        _capture(order_id)
        call = get_gateway().calls[0]
        assert call["idempotency_key"] == _order(order_id).order_number
        assert call["amount"] == "100.00"

    def test_declined_charge(self):
        vendor_id, order_id = _place_order()
        get_gateway().configure(should_succeed=False, failure_reason="Insufficient funds")

        assert _capture(order_id) == PaymentStatus.FAILED.value

        order = _order(order_id)
        assert order.payment_failure_reason == "Insufficient funds"
        assert len(_ledger(vendor_id).entries) == 0

    def test_declined_charge_can_be_retried(self):
        _, order_id = _place_order()
        get_gateway().configure(should_succeed=False)
        _capture(order_id)
        get_gateway().configure(should_succeed=True)
        assert _capture(order_id) == PaymentStatus.PAID.value

    def test_gateway_timeout_leaves_payment_pending(self):
        vendor_id, order_id = _place_order()
        get_gateway().configure(should_succeed=True, simulate_timeout=True)

        assert _capture(order_id) == PaymentStatus.PENDING.value
        assert len(_ledger(vendor_id).entries) == 0

    def test_paid_order_cannot_be_captured_again(self):
        _, order_id = _place_order()
        _capture(order_id)
        with pytest.raises(InvalidStateError):
            _capture(order_id)
        assert len(get_gateway().calls) == 1

    def test_cash_on_delivery_is_not_captured(self):
        _, order_id = _place_order(payment_method="cod")
        with pytest.raises(InvalidStateError):
            _capture(order_id)
        assert get_gateway().calls == []


class TestRecordPayment:
    def test_cash_on_delivery_payment(self):
        vendor_id, order_id = _place_order(payment_method="cod")
        status = current_domain.process(
            RecordOrderPayment(order_id=order_id, payment_reference="courier-42"),
            asynchronous=False,
        )
        assert status == PaymentStatus.PAID.value
        assert _order(order_id).payment_reference == "courier-42"
        assert str(_ledger(vendor_id).available_balance()) == "97.20"


class TestRefundUpdatesOrder:
    def test_full_refund_marks_order_refunded(self):
        vendor_id, order_id = _place_order()
        _capture(order_id)
        entry_id = _ledger(vendor_id).entries[0].id

        current_domain.process(
            RefundTransaction(vendor_id=vendor_id, transaction_id=entry_id, amount="100.00"),
            asynchronous=False,
        )
        assert _order(order_id).payment_status == PaymentStatus.REFUNDED.value

    def test_partial_refund_keeps_order_paid(self):
        vendor_id, order_id = _place_order()
        _capture(order_id)
        entry_id = _ledger(vendor_id).entries[0].id

        current_domain.process(
            RefundTransaction(vendor_id=vendor_id, transaction_id=entry_id, amount="10.00"),
            asynchronous=False,
        )
        assert _order(order_id).payment_status == PaymentStatus.PAID.value


class TestOrderStatus:
    def test_fulfilment_path(self):
        _, order_id = _place_order()
        for status in ("processing", "shipped", "delivered"):
            current_domain.process(UpdateOrderStatus(order_id=order_id, status=status), asynchronous=False)
        assert _order(order_id).status == "delivered"

    def test_invalid_transition(self):
        _, order_id = _place_order()
        with pytest.raises(InvalidStateError):
            current_domain.process(UpdateOrderStatus(order_id=order_id, status="delivered"), asynchronous=False)
