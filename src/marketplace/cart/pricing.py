"""Tax and shipping policy applied to cart and order totals."""

from dataclasses import dataclass
from decimal import Decimal

from marketplace.shared.money import ZERO, quantize


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    discount: Decimal
    total: Decimal


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = ZERO  # percentage, e.g. Decimal("8.25")
    flat_shipping: Decimal = ZERO

    @classmethod
    def from_settings(cls, settings) -> "PricingPolicy":
        return cls(tax_rate=settings.tax_rate, flat_shipping=settings.flat_shipping)

    def totals(self, subtotal: Decimal, discount: Decimal = ZERO) -> Totals:
        subtotal = quantize(subtotal)
        if subtotal == ZERO:
            return Totals(ZERO, ZERO, ZERO, ZERO, ZERO)

        tax = quantize(subtotal * self.tax_rate / Decimal(100))
        shipping = quantize(self.flat_shipping)
        discount = min(quantize(discount), subtotal + tax + shipping)
        return Totals(
            subtotal=subtotal,
            tax=tax,
            shipping=shipping,
            discount=discount,
            total=quantize(subtotal + tax + shipping - discount),
        )
