"""Shared BDD fixtures and step definitions for the marketplace."""

import pytest
from pytest_bdd import parsers, then

from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated, CartsMerged
from marketplace.cart.pricing import PricingPolicy
from marketplace.exceptions import InvalidStateError
from marketplace.ledger.fees import FeeSchedule
from marketplace.order.events import (
    OrderPaid,
    OrderPaymentFailed,
    OrderPaymentPending,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
)

_CART_EVENT_CLASSES = {
    "CartItemAdded": CartItemAdded,
    "CartQuantityUpdated": CartQuantityUpdated,
    "CartItemRemoved": CartItemRemoved,
    "CartCleared": CartCleared,
    "CartsMerged": CartsMerged,
}

_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderStatusChanged": OrderStatusChanged,
    "OrderPaid": OrderPaid,
    "OrderPaymentFailed": OrderPaymentFailed,
    "OrderPaymentPending": OrderPaymentPending,
    "OrderRefunded": OrderRefunded,
}


@pytest.fixture()
def error():
    """Container for the exception a When step captured."""
    return {"exc": None}


@pytest.fixture()
def policy():
    return PricingPolicy()


@pytest.fixture()
def fees():
    return FeeSchedule()


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the {subject} action fails with an invalid state error"))
def action_fails_with_invalid_state(error, subject):
    assert error["exc"] is not None, f"Expected the {subject} action to fail"
    assert isinstance(error["exc"], InvalidStateError)


@then(parsers.cfparse("a {event_type} cart event is raised"))
def cart_event_raised(cart, event_type):
    event_cls = _CART_EVENT_CLASSES[event_type]
    assert any(isinstance(e, event_cls) for e in cart._events), f"No {event_type} in {cart._events}"


@then(parsers.cfparse("an {event_type} order event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(isinstance(e, event_cls) for e in order._events), f"No {event_type} in {order._events}"
