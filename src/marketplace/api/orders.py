"""FastAPI routes for checkout and orders."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.access.identity import can_manage_vendor, current_identity
from marketplace.api.dependencies import cart_owner, load_vendor, owned_vendor, process, process_retrying
from marketplace.api.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    OrderStatusRequest,
    PaymentStatusResponse,
    RecordPaymentRequest,
    StatusResponse,
)
from marketplace.cart.owner import CartOwner
from marketplace.checkout.checkout import Checkout
from marketplace.checkout.payment import CaptureOrderPayment, RecordOrderPayment
from marketplace.customer.customer import Customer
from marketplace.exceptions import PermissionDenied
from marketplace.order.order import Order, PaymentMethod
from marketplace.order.status import UpdateOrderStatus

# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def checkout(body: CheckoutRequest, owner: CartOwner = Depends(cart_owner)) -> CheckoutResponse:
    """Place an order from the cart, then charge it unless it is cash on delivery.

    The order is placed even when the charge is declined or times out; its
    payment status says what happened and capture can be retried.
    """
    command = Checkout(
        user_id=owner.user_id,
        session_id=owner.session_id,
        vendor_id=body.vendor_id,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        payment_method=body.payment_method,
        shipping_address=json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        billing_address=json.dumps(body.billing_address.model_dump()) if body.billing_address else None,
        notes=body.notes,
    )
    order_id = process_retrying(command)

    if body.capture and body.payment_method != PaymentMethod.COD.value:
        process(CaptureOrderPayment(order_id=order_id))

    order = current_domain.repository_for(Order).get(order_id)
    return CheckoutResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        total=order.total,
        payment_status=order.payment_status,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/api/orders", tags=["orders"])


def _visible_order(order_id, identity) -> Order:
    """The order, if the caller is its vendor, its customer or a super-admin."""
    order = current_domain.repository_for(Order).get(order_id)
    if can_manage_vendor(identity, load_vendor(order.vendor_id)):
        return order
    if order.customer_id:
        customer = current_domain.repository_for(Customer).get(order.customer_id)
        if customer.user_id and str(customer.user_id) == str(identity.user_id):
            return order
    raise PermissionDenied("You do not have access to this order")


def _managed_order(order_id, identity) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    owned_vendor(order.vendor_id, identity)
    return order


@order_router.get("/{order_id}")
async def get_order(order_id: str, identity=Depends(current_identity)) -> dict:
    return _visible_order(order_id, identity).to_dict()


@order_router.post("/{order_id}/capture", response_model=PaymentStatusResponse)
async def capture_payment(order_id: str, identity=Depends(current_identity)) -> PaymentStatusResponse:
    _visible_order(order_id, identity)
    payment_status = process(CaptureOrderPayment(order_id=order_id))
    return PaymentStatusResponse(order_id=order_id, payment_status=payment_status)


@order_router.post("/{order_id}/payment", response_model=PaymentStatusResponse)
async def record_payment(
    order_id: str, body: RecordPaymentRequest, identity=Depends(current_identity)
) -> PaymentStatusResponse:
    _managed_order(order_id, identity)
    payment_status = process(RecordOrderPayment(order_id=order_id, payment_reference=body.reference))
    return PaymentStatusResponse(order_id=order_id, payment_status=payment_status)


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(
    order_id: str, body: OrderStatusRequest, identity=Depends(current_identity)
) -> StatusResponse:
    _managed_order(order_id, identity)
    process(UpdateOrderStatus(order_id=order_id, status=body.status))
    return StatusResponse(status=body.status)


vendor_orders_router = APIRouter(prefix="/api/vendors", tags=["orders"])


@vendor_orders_router.get("/{vendor_id}/orders")
async def list_vendor_orders(vendor_id: str, status: str | None = None, identity=Depends(current_identity)) -> list[dict]:
    owned_vendor(vendor_id, identity)
    orders = current_domain.repository_for(Order).find_for_vendor(vendor_id, status=status)
    return [order.to_dict() for order in orders]
