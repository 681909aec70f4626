"""Marketplace settings read from the ``[custom]`` section of domain.toml.

Protean loads ``domain.toml`` (with the ``PROTEAN_ENV`` overlay applied) when
the domain is initialized. Marketplace-specific values such as the platform
fee and the payout minimum live under ``[custom]``; anything missing falls
back to the defaults below.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal

from protean.utils.globals import current_domain

_DEFAULTS = {
    "platform_domain": "multivend.com",
    "currency": "USD",
    "base_fee_percentage": "2.5",
    "flat_fee": "0.30",
    "minimum_payout": "25.00",
    "tax_rate": "0",
    "flat_shipping": "0.00",
    "order_number_prefix": "MV",
    "gateway_timeout_seconds": 10,
    "cors_origins": ["*"],
}


@dataclass(frozen=True)
class MarketplaceSettings:
    platform_domain: str
    currency: str
    base_fee_percentage: Decimal
    flat_fee: Decimal
    minimum_payout: Decimal
    tax_rate: Decimal
    flat_shipping: Decimal
    order_number_prefix: str
    gateway_timeout_seconds: float
    cors_origins: list[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, values: dict) -> "MarketplaceSettings":
        merged = {**_DEFAULTS, **{str(k).lower(): v for k, v in (values or {}).items()}}
        return cls(
            platform_domain=str(merged["platform_domain"]).lower(),
            currency=str(merged["currency"]),
            base_fee_percentage=Decimal(str(merged["base_fee_percentage"])),
            flat_fee=Decimal(str(merged["flat_fee"])),
            minimum_payout=Decimal(str(merged["minimum_payout"])),
            tax_rate=Decimal(str(merged["tax_rate"])),
            flat_shipping=Decimal(str(merged["flat_shipping"])),
            order_number_prefix=str(merged["order_number_prefix"]),
            gateway_timeout_seconds=float(merged["gateway_timeout_seconds"]),
            cors_origins=list(merged["cors_origins"]),
        )


def get_settings() -> MarketplaceSettings:
    """Settings for the active domain context."""
    custom = current_domain.config.get("custom", {}) or {}
    return MarketplaceSettings.from_mapping(custom)


def is_production() -> bool:
    return os.environ.get("PROTEAN_ENV") == "production"
