from decimal import Decimal

import pytest

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.owner import CartOwner
from marketplace.cart.pricing import PricingPolicy
from marketplace.catalogue.product import Product
from marketplace.exceptions import InvalidStateError
from marketplace.order.events import OrderPaid, OrderPlaced, OrderStatusChanged
from marketplace.order.order import (
    Order,
    OrderAddress,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    initial_payment_status,
)

POLICY = PricingPolicy()


def _filled_cart(*lines):
    cart = ShoppingCart.create(CartOwner(user_id="user-1"))
    for name, price, quantity in lines:
        product = Product.create(vendor_id="vendor-1", name=name, price=price)
        cart.add_item(product, quantity=quantity, policy=POLICY)
    return cart


def _address():
    return OrderAddress(street="1 Main St", city="Springfield", postal_code="12345", country="US")


def _order(payment_method=PaymentMethod.CARD.value, cart=None):
    cart = cart or _filled_cart(("Widget", "10.00", 2), ("Gadget", "5.25", 1))
    return Order.place(
        vendor_id="vendor-1",
        order_number="MV123420260101",
        cart=cart,
        payment_method=payment_method,
        customer_id="customer-1",
        shipping_address=_address(),
    )


class TestPlacingOrders:
    def test_totals_are_copied_from_cart(self):
        order = _order()
        assert order.subtotal == "25.25"
        assert order.total == "25.25"
        assert order.status == OrderStatus.PENDING.value

    def test_items_are_snapshots_of_cart_lines(self):
        order = _order()
        items = {item.name: item for item in order.items}
        assert items["Widget"].price == "10.00"
        assert items["Widget"].total == "20.00"
        assert items["Gadget"].quantity == 1

    def test_item_totals_sum_to_subtotal(self):
        order = _order()
        assert sum(Decimal(item.total) for item in order.items) == Decimal(order.subtotal)

    def test_billing_address_defaults_to_shipping(self):
        order = _order()
        assert order.billing_address.city == "Springfield"

    def test_raises_order_placed(self):
        order = _order()
        placed = next(e for e in order._events if isinstance(e, OrderPlaced))
        assert placed.item_count == 2
        assert placed.total == "25.25"

    def test_to_dict(self):
        data = _order().to_dict()
        assert data["order_number"] == "MV123420260101"
        assert len(data["items"]) == 2
        assert data["shipping_address"]["country"] == "US"


class TestInitialPaymentStatus:
    def test_card_starts_unpaid(self):
        assert initial_payment_status("card") == PaymentStatus.UNPAID.value
        assert _order().payment_status == PaymentStatus.UNPAID.value

    def test_paypal_starts_unpaid(self):
        assert initial_payment_status("paypal") == PaymentStatus.UNPAID.value

    def test_cash_on_delivery_starts_pending(self):
        assert _order(PaymentMethod.COD.value).payment_status == PaymentStatus.PENDING.value


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "path",
        [
            ["processing", "shipped", "delivered"],
            ["canceled"],
            ["processing", "canceled"],
        ],
    )
    def test_allowed_paths(self, path):
        order = _order()
        for status in path:
            order.update_status(status)
        assert order.status == path[-1]

    @pytest.mark.parametrize(
        "path,target",
        [
            ([], "shipped"),
            ([], "delivered"),
            (["processing", "shipped"], "canceled"),
            (["processing", "shipped", "delivered"], "pending"),
            (["canceled"], "processing"),
        ],
    )
    def test_forbidden_transitions(self, path, target):
        order = _order()
        for status in path:
            order.update_status(status)
        with pytest.raises(InvalidStateError):
            order.update_status(target)

    def test_raises_status_changed(self):
        order = _order()
        order.update_status("processing")
        event = next(e for e in order._events if isinstance(e, OrderStatusChanged))
        assert event.previous_status == "pending"
        assert event.new_status == "processing"


class TestPayment:
    def test_mark_paid(self):
        order = _order()
        order.mark_paid("ch_123")
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.payment_reference == "ch_123"
        assert order.paid_at is not None
        assert any(isinstance(e, OrderPaid) for e in order._events)

    def test_cannot_pay_twice(self):
        order = _order()
        order.mark_paid("ch_123")
        with pytest.raises(InvalidStateError):
            order.mark_paid("ch_456")

    def test_failed_payment_can_be_retried(self):
        order = _order()
        order.mark_payment_failed("Card declined")
        assert order.payment_status == PaymentStatus.FAILED.value
        assert order.payment_failure_reason == "Card declined"
        assert order.can_capture

        order.mark_paid("ch_789")
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.payment_failure_reason is None

    def test_pending_after_gateway_timeout(self):
        order = _order()
        order.mark_payment_pending("Gateway timed out")
        assert order.payment_status == PaymentStatus.PENDING.value

    def test_canceled_orders_cannot_be_paid(self):
        order = _order()
        order.update_status("canceled")
        assert not order.can_capture
        with pytest.raises(InvalidStateError):
            order.mark_paid("ch_123")

    def test_refund_requires_paid(self):
        order = _order()
        with pytest.raises(InvalidStateError):
            order.mark_refunded()
        order.mark_paid("ch_123")
        order.mark_refunded()
        assert order.payment_status == PaymentStatus.REFUNDED.value
        assert not order.can_capture
