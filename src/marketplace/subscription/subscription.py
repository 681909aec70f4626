"""VendorSubscription aggregate: one vendor's subscription to a platform plan.

Keyed by the vendor id, so a vendor has at most one subscription. Trials
start on the monthly cycle and renew when the trial ends. Cancelling at the
period end keeps the subscription usable until its renewal date; cancelling
immediately ends it now.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, String

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStateError
from marketplace.subscription.events import (
    BillingCycleChanged,
    SubscriptionCanceled,
    SubscriptionPastDue,
    SubscriptionPlanChanged,
    SubscriptionRenewed,
    TrialStarted,
)


class SubscriptionState(Enum):
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


class BillingCycle(Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


CYCLE_LENGTH = {
    BillingCycle.MONTHLY.value: timedelta(days=30),
    BillingCycle.YEARLY.value: timedelta(days=365),
}


@marketplace.aggregate
class VendorSubscription:
    plan_id = Identifier(required=True)
    status = String(choices=SubscriptionState, default=SubscriptionState.TRIALING.value)
    billing_cycle = String(choices=BillingCycle, default=BillingCycle.MONTHLY.value)
    amount = String(max_length=20, required=True)
    currency = String(max_length=3, default="USD")
    start_date = DateTime(required=True)
    trial_ends_at = DateTime()
    renewal_date = DateTime()
    end_date = DateTime()
    cancel_at_period_end = Boolean(default=False)
    cancel_reason = String(max_length=500)
    canceled_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def start_trial(cls, vendor_id, plan, currency="USD"):
        now = datetime.now(UTC)
        trial_ends_at = now + timedelta(days=plan.trial_days or 0)
        subscription = cls(
            id=str(vendor_id),
            plan_id=plan.id,
            status=SubscriptionState.TRIALING.value,
            billing_cycle=BillingCycle.MONTHLY.value,
            amount=plan.price_for(BillingCycle.MONTHLY.value),
            currency=currency,
            start_date=now,
            trial_ends_at=trial_ends_at,
            renewal_date=trial_ends_at,
            updated_at=now,
        )
        subscription.raise_(TrialStarted(vendor_id=subscription.id, plan_id=plan.id, trial_ends_at=trial_ends_at))
        return subscription

    @property
    def vendor_id(self) -> str:
        return str(self.id)

    @property
    def is_canceled(self) -> bool:
        return self.status == SubscriptionState.CANCELED.value or bool(self.cancel_at_period_end)

    def _ensure_not_canceled(self):
        if self.is_canceled:
            raise InvalidStateError({"status": ["Subscription is canceled"]})

    def change_plan(self, plan):
        self._ensure_not_canceled()
        if str(plan.id) == str(self.plan_id):
            return

        previous_plan_id = self.plan_id
        self.plan_id = plan.id
        self.amount = plan.price_for(self.billing_cycle)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            SubscriptionPlanChanged(
                vendor_id=self.id,
                previous_plan_id=previous_plan_id,
                plan_id=plan.id,
                amount=self.amount,
            )
        )

    def change_billing_cycle(self, billing_cycle, plan):
        self._ensure_not_canceled()
        cycle = BillingCycle(billing_cycle).value
        if cycle == self.billing_cycle:
            raise InvalidStateError({"billing_cycle": [f"Subscription is already on {cycle} billing cycle"]})

        self.billing_cycle = cycle
        self.amount = plan.price_for(cycle)
        self.updated_at = datetime.now(UTC)
        self.raise_(BillingCycleChanged(vendor_id=self.id, billing_cycle=cycle, amount=self.amount))

    def cancel(self, at_period_end=True, reason=None):
        if self.is_canceled:
            raise InvalidStateError({"status": ["Subscription is already canceled"]})

        now = datetime.now(UTC)
        self.cancel_reason = reason
        self.canceled_at = now
        if at_period_end:
            self.cancel_at_period_end = True
            self.end_date = self.renewal_date
        else:
            self.status = SubscriptionState.CANCELED.value
            self.end_date = now
        self.updated_at = now
        self.raise_(SubscriptionCanceled(vendor_id=self.id, at_period_end=bool(at_period_end), reason=reason))

    def record_payment(self):
        """Mark the current period paid and move the renewal date one cycle on."""
        self._ensure_not_canceled()
        now = datetime.now(UTC)
        period_start = max(self.renewal_date, now) if self.renewal_date else now
        self.status = SubscriptionState.ACTIVE.value
        self.renewal_date = period_start + CYCLE_LENGTH[self.billing_cycle]
        self.updated_at = now
        self.raise_(SubscriptionRenewed(vendor_id=self.id, amount=self.amount, renewal_date=self.renewal_date))

    def mark_past_due(self):
        if self.status not in (SubscriptionState.TRIALING.value, SubscriptionState.ACTIVE.value) or self.is_canceled:
            raise InvalidStateError({"status": ["Only trialing or active subscriptions can become past due"]})

        self.status = SubscriptionState.PAST_DUE.value
        self.updated_at = datetime.now(UTC)
        self.raise_(SubscriptionPastDue(vendor_id=self.id))

    def to_dict(self) -> dict:
        def _iso(value):
            return value.isoformat() if value else None

        return {
            "vendor_id": self.vendor_id,
            "plan_id": str(self.plan_id),
            "status": self.status,
            "billing_cycle": self.billing_cycle,
            "amount": self.amount,
            "currency": self.currency,
            "start_date": _iso(self.start_date),
            "trial_ends_at": _iso(self.trial_ends_at),
            "renewal_date": _iso(self.renewal_date),
            "end_date": _iso(self.end_date),
            "cancel_at_period_end": bool(self.cancel_at_period_end),
            "cancel_reason": self.cancel_reason,
            "canceled_at": _iso(self.canceled_at),
        }
