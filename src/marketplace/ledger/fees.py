"""Platform fee schedule applied to vendor payments."""

from dataclasses import dataclass
from decimal import Decimal

from marketplace.shared.money import quantize, to_decimal


@dataclass(frozen=True)
class FeeSchedule:
    base_fee_percentage: Decimal = Decimal("2.5")
    flat_fee: Decimal = Decimal("0.30")

    def fee_for(self, amount) -> tuple[Decimal, Decimal]:
        """``(fee, net)`` for a payment of ``amount``, both rounded half-up to cents.

        >>> FeeSchedule().fee_for("100.00")
        (Decimal('2.80'), Decimal('97.20'))
        """
        amount = to_decimal(amount)
        fee = quantize(amount * self.base_fee_percentage / Decimal(100) + self.flat_fee)
        return fee, quantize(amount - fee)

    def to_dict(self) -> dict:
        return {
            "base_fee_percentage": str(self.base_fee_percentage),
            "flat_fee": str(quantize(self.flat_fee)),
        }
