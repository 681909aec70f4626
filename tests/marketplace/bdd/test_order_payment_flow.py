"""BDD tests for order payment and fulfilment."""

from pytest_bdd import given, parsers, scenarios, then, when

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.owner import CartOwner
from marketplace.catalogue.product import Product
from marketplace.exceptions import InvalidStateError
from marketplace.order.order import Order, OrderAddress

scenarios("features/order_payment.feature")


def _place(policy, payment_method, quantity, price):
    product = Product.create(vendor_id="vendor-1", name="Widget", price=price)
    cart = ShoppingCart.create(CartOwner(user_id="user-1"))
    cart.add_item(product, quantity=quantity, policy=policy)
    return Order.place(
        vendor_id="vendor-1",
        order_number="MV100020260101",
        cart=cart,
        payment_method=payment_method,
        customer_id="customer-1",
        shipping_address=OrderAddress(street="1 Main St", city="Springfield", postal_code="12345", country="US"),
    )


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a card order for {quantity:d} items priced "{price}"'), target_fixture="order")
def card_order(policy, quantity, price):
    return _place(policy, "card", quantity, price)


@given(parsers.cfparse('a cash on delivery order for {quantity:d} item priced "{price}"'), target_fixture="order")
def cod_order(policy, quantity, price):
    return _place(policy, "cod", quantity, price)


@given("the order was paid", target_fixture="order")
def paid_order(order):
    order.mark_paid("txn-0")
    order._events.clear()
    return order


@given("the order was shipped", target_fixture="order")
def shipped_order(order):
    order.update_status("processing")
    order.update_status("shipped")
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the charge succeeds with reference "{reference}"'))
def charge_succeeds(order, error, reference):
    try:
        order.mark_paid(reference)
    except InvalidStateError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the charge is declined with "{reason}"'))
def charge_declined(order, reason):
    order.mark_payment_failed(reason)


@when("the order is refunded")
def refund_order(order):
    order.mark_refunded()


@when(parsers.cfparse('the order moves to "{status}"'))
def move_order(order, error, status):
    try:
        order.update_status(status)
    except InvalidStateError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the payment status is "{status}"'))
def payment_status(order, status):
    assert order.payment_status == status


@then(parsers.cfparse('the payment reference is "{reference}"'))
def payment_reference(order, reference):
    assert order.payment_reference == reference


@then(parsers.cfparse('the order total is "{amount}"'))
def order_total(order, amount):
    assert order.total == amount


@then(parsers.cfparse('the order status is "{status}"'))
def order_status(order, status):
    assert order.status == status
