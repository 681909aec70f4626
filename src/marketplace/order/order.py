"""Order aggregate: the system of record once a cart is checked out.

Order items are snapshots: they copy the product's name and price at the
time of purchase and never look at the live product again.

Fulfilment states:
    pending → processing → shipped → delivered
    pending/processing → canceled

Payment states:
    unpaid (gateway-backed methods) / pending (cash on delivery or gateway timeout)
    → paid → refunded
    unpaid/pending → failed → paid (a later capture may still succeed)
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStateError
from marketplace.order.events import (
    OrderPaid,
    OrderPaymentFailed,
    OrderPaymentPending,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
)
from marketplace.shared.money import format_money, to_decimal


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELED = "canceled"


class PaymentStatus(Enum):
    PENDING = "pending"
    UNPAID = "unpaid"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CARD = "card"
    PAYPAL = "paypal"
    COD = "cod"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELED: set(),
}

_CAPTURABLE = {PaymentStatus.UNPAID, PaymentStatus.PENDING, PaymentStatus.FAILED}


def initial_payment_status(payment_method: str) -> str:
    """Cash on delivery waits for the courier; everything else waits for the gateway."""
    if payment_method == PaymentMethod.COD.value:
        return PaymentStatus.PENDING.value
    return PaymentStatus.UNPAID.value


@marketplace.value_object(part_of="Order")
class OrderAddress:
    """An address captured at checkout; later address book edits do not reach it."""

    name = String(max_length=200)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=2)


@marketplace.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    name = String(max_length=200, required=True)
    price = String(max_length=20, required=True)
    quantity = Integer(required=True, min_value=1)
    variant = String(max_length=100)
    total = String(max_length=20, required=True)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "product_id": str(self.product_id),
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "variant": self.variant,
            "total": self.total,
        }


@marketplace.aggregate
class Order:
    vendor_id = Identifier(required=True)
    customer_id = Identifier()
    order_number = String(max_length=30, required=True, unique=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.UNPAID.value)
    payment_method = String(choices=PaymentMethod, required=True)
    payment_reference = String(max_length=255)
    payment_failure_reason = String(max_length=500)
    items = HasMany(OrderItem)
    subtotal = String(max_length=20, required=True)
    tax = String(max_length=20, default="0.00")
    shipping_cost = String(max_length=20, default="0.00")
    discount = String(max_length=20, default="0.00")
    total = String(max_length=20, required=True)
    currency = String(max_length=3, default="USD")
    shipping_address = ValueObject(OrderAddress)
    billing_address = ValueObject(OrderAddress)
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()
    paid_at = DateTime()

    @classmethod
    def place(
        cls,
        vendor_id,
        order_number,
        cart,
        payment_method,
        customer_id=None,
        currency="USD",
        shipping_address=None,
        billing_address=None,
        notes=None,
    ):
        """Create an order from a cart, copying each line as it stands now."""
        now = datetime.now(UTC)
        order = cls(
            vendor_id=vendor_id,
            customer_id=customer_id,
            order_number=order_number,
            status=OrderStatus.PENDING.value,
            payment_status=initial_payment_status(payment_method),
            payment_method=payment_method,
            subtotal=cart.subtotal,
            tax=cart.tax,
            shipping_cost=cart.shipping,
            discount=cart.discount,
            total=cart.total,
            currency=currency,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for line in cart.items:
            order.add_items(
                OrderItem(
                    product_id=line.product_id,
                    name=line.name,
                    price=line.price,
                    quantity=line.quantity,
                    variant=line.variant,
                    total=format_money(to_decimal(line.price) * line.quantity),
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=order.id,
                order_number=order_number,
                vendor_id=vendor_id,
                customer_id=customer_id,
                item_count=len(order.items),
                total=order.total,
                payment_method=payment_method,
                payment_status=order.payment_status,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def update_status(self, new_status):
        current = OrderStatus(self.status)
        target = OrderStatus(new_status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidStateError({"status": [f"Cannot move order from {current.value} to {target.value}"]})

        self.status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderStatusChanged(
                order_id=self.id,
                vendor_id=self.vendor_id,
                previous_status=current.value,
                new_status=target.value,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    @property
    def can_capture(self) -> bool:
        return PaymentStatus(self.payment_status) in _CAPTURABLE and self.status != OrderStatus.CANCELED.value

    def _assert_capturable(self):
        if not self.can_capture:
            raise InvalidStateError(
                {"payment_status": [f"Payment cannot be taken for an order that is {self.payment_status}"]}
            )

    def mark_paid(self, payment_reference=None):
        self._assert_capturable()
        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.payment_reference = payment_reference
        self.payment_failure_reason = None
        self.paid_at = now
        self.updated_at = now
        self.raise_(
            OrderPaid(
                order_id=self.id,
                vendor_id=self.vendor_id,
                amount=self.total,
                payment_reference=payment_reference,
                paid_at=now,
            )
        )

    def mark_payment_failed(self, reason):
        self._assert_capturable()
        self.payment_status = PaymentStatus.FAILED.value
        self.payment_failure_reason = reason
        self.updated_at = datetime.now(UTC)
        self.raise_(OrderPaymentFailed(order_id=self.id, vendor_id=self.vendor_id, reason=reason))

    def mark_payment_pending(self, reason):
        self._assert_capturable()
        self.payment_status = PaymentStatus.PENDING.value
        self.payment_failure_reason = reason
        self.updated_at = datetime.now(UTC)
        self.raise_(OrderPaymentPending(order_id=self.id, vendor_id=self.vendor_id, reason=reason))

    def mark_refunded(self):
        if self.payment_status != PaymentStatus.PAID.value:
            raise InvalidStateError({"payment_status": ["Only paid orders can be refunded"]})
        self.payment_status = PaymentStatus.REFUNDED.value
        self.updated_at = datetime.now(UTC)
        self.raise_(OrderRefunded(order_id=self.id, vendor_id=self.vendor_id))

    def to_dict(self) -> dict:
        def _address(vo):
            if vo is None:
                return None
            return {
                "name": vo.name,
                "street": vo.street,
                "city": vo.city,
                "state": vo.state,
                "postal_code": vo.postal_code,
                "country": vo.country,
            }

        return {
            "id": str(self.id),
            "order_number": self.order_number,
            "vendor_id": str(self.vendor_id),
            "customer_id": str(self.customer_id) if self.customer_id else None,
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping_cost": self.shipping_cost,
            "discount": self.discount,
            "total": self.total,
            "currency": self.currency,
            "shipping_address": _address(self.shipping_address),
            "billing_address": _address(self.billing_address),
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
