"""SubscriptionPlan aggregate: what a vendor pays the platform, and what they get."""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text

from marketplace.domain import marketplace
from marketplace.shared.money import ZERO, format_money, to_decimal
from marketplace.subscription.events import SubscriptionPlanCreated, SubscriptionPlanUpdated


class SupportLevel(Enum):
    EMAIL = "email"
    PRIORITY_EMAIL = "priority_email"
    PHONE_EMAIL = "phone_email"
    DEDICATED = "dedicated"


# Fields an admin may change after the plan is created
PLAN_FIELDS = (
    "description",
    "price",
    "yearly_price",
    "features",
    "product_limit",
    "storage_limit",
    "custom_domain_limit",
    "support_level",
    "trial_days",
    "is_active",
)

DEFAULT_PLANS = (
    {
        "name": "Free",
        "description": "Basic solution for small businesses or individuals just starting out.",
        "price": "0",
        "features": ["1 subdomain", "Up to 50 products", "Basic analytics", "Email support"],
        "product_limit": 50,
        "storage_limit": 1,
        "custom_domain_limit": 0,
        "support_level": SupportLevel.EMAIL.value,
    },
    {
        "name": "Basic",
        "description": "For growing businesses looking to expand their online presence.",
        "price": "29",
        "features": [
            "1 custom domain",
            "Up to 500 products",
            "Advanced analytics",
            "Priority email support",
            "Basic customization",
        ],
        "product_limit": 500,
        "storage_limit": 5,
        "custom_domain_limit": 1,
        "support_level": SupportLevel.PRIORITY_EMAIL.value,
    },
    {
        "name": "Pro",
        "description": "Complete solution for established businesses with comprehensive needs.",
        "price": "79",
        "features": [
            "3 custom domains",
            "Unlimited products",
            "Full analytics suite",
            "Phone & email support",
            "Advanced customization",
        ],
        "product_limit": 10000,
        "storage_limit": 20,
        "custom_domain_limit": 3,
        "support_level": SupportLevel.PHONE_EMAIL.value,
    },
    {
        "name": "Enterprise",
        "description": "Custom solution for large businesses with complex requirements.",
        "price": "199",
        "features": [
            "10 custom domains",
            "Unlimited products",
            "Enterprise analytics",
            "Dedicated support",
            "Custom development",
        ],
        "product_limit": 100000,
        "storage_limit": 100,
        "custom_domain_limit": 10,
        "support_level": SupportLevel.DEDICATED.value,
    },
)


def _price(value, field):
    if value is None:
        return None
    amount = to_decimal(value, field)
    if amount < ZERO:
        raise ValidationError({field: ["Price cannot be negative"]})
    return format_money(amount)


@marketplace.aggregate
class SubscriptionPlan:
    name = String(max_length=100, required=True, unique=True)
    description = Text(required=True)
    price = String(max_length=20, required=True)  # monthly
    yearly_price = String(max_length=20)
    features = Text(default="[]")  # JSON array of strings
    product_limit = Integer(required=True, min_value=0)
    storage_limit = Integer(required=True, min_value=0)  # GB
    custom_domain_limit = Integer(required=True, min_value=0)
    support_level = String(choices=SupportLevel, default=SupportLevel.EMAIL.value)
    trial_days = Integer(default=14, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def create(cls, name, description, price, product_limit, storage_limit, custom_domain_limit,
               support_level=SupportLevel.EMAIL.value, features=None, yearly_price=None, trial_days=14,
               is_active=True):
        plan = cls(
            name=name.strip(),
            description=description,
            price=_price(price, "price"),
            yearly_price=_price(yearly_price, "yearly_price"),
            features=json.dumps(list(features or [])),
            product_limit=product_limit,
            storage_limit=storage_limit,
            custom_domain_limit=custom_domain_limit,
            support_level=support_level,
            trial_days=trial_days,
            is_active=is_active,
            created_at=datetime.now(UTC),
        )
        plan.raise_(SubscriptionPlanCreated(plan_id=plan.id, name=plan.name, price=plan.price))
        return plan

    @property
    def feature_list(self) -> list[str]:
        return json.loads(self.features or "[]")

    def price_for(self, billing_cycle: str) -> str:
        """The charge per billing cycle; a plan without a yearly price bills its monthly price."""
        if billing_cycle == "yearly" and self.yearly_price:
            return self.yearly_price
        return self.price

    def update(self, **changes):
        unknown = set(changes) - set(PLAN_FIELDS)
        if unknown:
            raise ValidationError({"plan": [f"Cannot update {', '.join(sorted(unknown))}"]})
        if not changes:
            return

        if "price" in changes:
            changes["price"] = _price(changes["price"], "price")
        if "yearly_price" in changes:
            changes["yearly_price"] = _price(changes["yearly_price"], "yearly_price")
        if "features" in changes:
            changes["features"] = json.dumps(list(changes["features"]))

        for name, value in changes.items():
            setattr(self, name, value)
        self.raise_(SubscriptionPlanUpdated(plan_id=self.id, changed_fields=json.dumps(sorted(changes))))

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "yearly_price": self.yearly_price,
            "features": self.feature_list,
            "product_limit": self.product_limit,
            "storage_limit": self.storage_limit,
            "custom_domain_limit": self.custom_domain_limit,
            "support_level": self.support_level,
            "trial_days": self.trial_days,
            "is_active": bool(self.is_active),
        }


@marketplace.repository(part_of=SubscriptionPlan)
class SubscriptionPlanRepository:
    def find_by_name(self, name: str) -> SubscriptionPlan | None:
        results = self._dao.query.filter(name=name.strip()).all().items
        return results[0] if results else None

    def listing(self, include_inactive: bool = False) -> list[SubscriptionPlan]:
        """Plans ordered by monthly price, cheapest first."""
        query = self._dao.query if include_inactive else self._dao.query.filter(is_active=True)
        return sorted(query.all().items, key=lambda plan: to_decimal(plan.price))
