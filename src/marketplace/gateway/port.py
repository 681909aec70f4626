"""Payment gateway port (abstract interface).

Checkout talks to card processors only through this contract, so the fake
adapter used in development and tests can be swapped for a real one without
touching domain code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


class GatewayUnavailable(Exception):
    """The gateway timed out or could not be reached; the outcome is unknown."""


@dataclass(frozen=True)
class ChargeResult:
    """Result of a charge attempt that the gateway answered."""

    success: bool
    gateway_transaction_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def create_charge(
        self,
        amount: Decimal,
        currency: str,
        payment_method: str,
        idempotency_key: str,
        timeout: float,
    ) -> ChargeResult:
        """Charge the shopper. Raises ``GatewayUnavailable`` when no answer arrives within ``timeout`` seconds."""
        ...
