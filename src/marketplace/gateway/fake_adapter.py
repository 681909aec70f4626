"""Configurable fake payment gateway for development and testing.

Simulates a processor without external calls. It can be told to approve,
decline or time out, both from tests and through the non-production
``/api/gateway/configure`` endpoint.
"""

from decimal import Decimal
from uuid import uuid4

from marketplace.gateway.port import ChargeResult, GatewayUnavailable, PaymentGateway


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.simulate_timeout: bool = False
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined", simulate_timeout: bool = False):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.simulate_timeout = simulate_timeout

    def create_charge(
        self,
        amount: Decimal,
        currency: str,
        payment_method: str,
        idempotency_key: str,
        timeout: float,
    ) -> ChargeResult:
        self.calls.append(
            {
                "method": "create_charge",
                "amount": str(amount),
                "currency": currency,
                "payment_method": payment_method,
                "idempotency_key": idempotency_key,
                "timeout": timeout,
            }
        )

        if self.simulate_timeout:
            raise GatewayUnavailable(f"No response from gateway within {timeout} seconds")
        if self.should_succeed:
            return ChargeResult(
                success=True,
                gateway_transaction_id=f"fake_txn_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return ChargeResult(success=False, gateway_status="failed", failure_reason=self.failure_reason)
