"""Checkout: turn a shopper's cart into an order.

Everything happens in the handler's unit of work: the customer record is
found or created, the order and its item snapshots are saved, the customer's
totals move and the cart is emptied. Either all of it is persisted or none
of it is.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.owner import CartOwner
from marketplace.cart.pricing import PricingPolicy
from marketplace.customer.customer import Customer
from marketplace.domain import logger, marketplace
from marketplace.exceptions import InvalidStateError
from marketplace.order.numbering import allocate_order_number
from marketplace.order.order import Order, OrderAddress, PaymentMethod
from marketplace.settings import get_settings


@marketplace.command(part_of="Order")
class Checkout:
    user_id = Identifier()
    session_id = String(max_length=255)
    vendor_id = Identifier()  # storefront the shopper is on, when known
    email = String(max_length=254, required=True)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=30)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CARD.value)
    shipping_address = Text()  # JSON object
    billing_address = Text()  # JSON object
    notes = Text()


def _address(raw, field):
    if not raw:
        return None
    try:
        values = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError({field: ["Address must be a JSON object"]}) from None
    return OrderAddress(**values)


@marketplace.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(Checkout)
    def checkout(self, command):
        settings = get_settings()
        owner = CartOwner(user_id=command.user_id, session_id=command.session_id)

        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = cart_repo.find_for_owner(owner)
        if cart is None or not cart.items:
            raise InvalidStateError({"cart": ["Cart is empty"]})
        if command.vendor_id and str(command.vendor_id) != str(cart.vendor_id):
            raise InvalidStateError({"cart": ["Cart belongs to another store"]})

        customer_repo = current_domain.repository_for(Customer)
        customer = customer_repo.find_or_create(
            cart.vendor_id,
            command.email,
            user_id=command.user_id,
            first_name=command.first_name,
            last_name=command.last_name,
            phone=command.phone,
        )

        order_repo = current_domain.repository_for(Order)
        order_number = allocate_order_number(
            lambda number: order_repo.find_by_number(number) is not None,
            prefix=settings.order_number_prefix,
        )
        shipping_address = _address(command.shipping_address, "shipping_address")
        order = Order.place(
            vendor_id=cart.vendor_id,
            order_number=order_number,
            cart=cart,
            payment_method=command.payment_method,
            customer_id=customer.id,
            currency=settings.currency,
            shipping_address=shipping_address,
            billing_address=_address(command.billing_address, "billing_address") or shipping_address,
            notes=command.notes,
        )
        customer.record_order(order.total)
        cart.clear(policy=PricingPolicy.from_settings(settings), reason="checked_out")

        order_repo.add(order)
        customer_repo.add(customer)
        cart_repo.add(cart)

        logger.info(
            "order_placed",
            order_id=order.id,
            order_number=order_number,
            vendor_id=order.vendor_id,
            total=order.total,
            payment_method=order.payment_method,
        )
        return order.id
