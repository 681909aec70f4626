"""Taking payment for placed orders: commands and handler.

A successful payment marks the order paid and credits the vendor's ledger
with the order total (less the platform fee). A gateway that does not answer
in time leaves the payment ``pending`` so capture can be retried later.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import logger, marketplace
from marketplace.exceptions import InvalidStateError
from marketplace.gateway import GatewayUnavailable, get_gateway
from marketplace.ledger.commission import commission_in_effect
from marketplace.ledger.ledger import EntryStatus, EntryType, VendorLedger
from marketplace.order.order import Order, PaymentMethod
from marketplace.settings import get_settings
from marketplace.shared.money import to_decimal


@marketplace.command(part_of="Order")
class CaptureOrderPayment:
    order_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class RecordOrderPayment:
    """Confirm a payment collected outside the gateway (e.g. cash on delivery)."""

    order_id = Identifier(required=True)
    payment_reference = String(max_length=255)


def credit_vendor(order: Order) -> None:
    """Record the order's payment in the vendor's ledger."""
    repo = current_domain.repository_for(VendorLedger)
    ledger = repo.get_or_open(order.vendor_id, currency=order.currency)
    ledger.record_transaction(
        entry_type=EntryType.ORDER_PAYMENT.value,
        amount=order.total,
        fee_schedule=commission_in_effect().fee_schedule,
        status=EntryStatus.COMPLETED.value,
        order_id=order.id,
        description=f"Payment for order {order.order_number}",
    )
    repo.add(ledger)


@marketplace.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(CaptureOrderPayment)
    def capture_order_payment(self, command):
        settings = get_settings()
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if order.payment_method == PaymentMethod.COD.value:
            raise InvalidStateError({"payment_method": ["Cash on delivery orders are paid on delivery"]})
        if not order.can_capture:
            raise InvalidStateError(
                {"payment_status": [f"Payment cannot be taken for an order that is {order.payment_status}"]}
            )

        try:
            result = get_gateway().create_charge(
                amount=to_decimal(order.total),
                currency=order.currency,
                payment_method=order.payment_method,
                idempotency_key=order.order_number,
                timeout=settings.gateway_timeout_seconds,
            )
        except GatewayUnavailable as exc:
            logger.warning("payment_gateway_unavailable", order_id=order.id, error=str(exc))
            order.mark_payment_pending(str(exc))
            repo.add(order)
            return order.payment_status

        if result.success:
            order.mark_paid(result.gateway_transaction_id)
            credit_vendor(order)
            logger.info("payment_captured", order_id=order.id, reference=result.gateway_transaction_id)
        else:
            order.mark_payment_failed(result.failure_reason)
            logger.info("payment_declined", order_id=order.id, reason=result.failure_reason)

        repo.add(order)
        return order.payment_status

    @handle(RecordOrderPayment)
    def record_order_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_paid(command.payment_reference)
        credit_vendor(order)
        repo.add(order)
        logger.info("payment_recorded", order_id=order.id, reference=command.payment_reference)
        return order.payment_status
