"""Domain events for subscription plans and vendor subscriptions."""

from protean.fields import Boolean, DateTime, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="SubscriptionPlan")
class SubscriptionPlanCreated:
    __version__ = 1

    plan_id = Identifier(required=True)
    name = String(required=True)
    price = String(required=True)


@marketplace.event(part_of="SubscriptionPlan")
class SubscriptionPlanUpdated:
    __version__ = 1

    plan_id = Identifier(required=True)
    changed_fields = String(required=True)  # JSON array of field names


@marketplace.event(part_of="VendorSubscription")
class TrialStarted:
    """A vendor started the free trial of a plan."""

    __version__ = 1

    vendor_id = Identifier(required=True)
    plan_id = Identifier(required=True)
    trial_ends_at = DateTime(required=True)


@marketplace.event(part_of="VendorSubscription")
class SubscriptionPlanChanged:
    __version__ = 1

    vendor_id = Identifier(required=True)
    previous_plan_id = Identifier(required=True)
    plan_id = Identifier(required=True)
    amount = String(required=True)


@marketplace.event(part_of="VendorSubscription")
class BillingCycleChanged:
    __version__ = 1

    vendor_id = Identifier(required=True)
    billing_cycle = String(required=True)
    amount = String(required=True)


@marketplace.event(part_of="VendorSubscription")
class SubscriptionCanceled:
    __version__ = 1

    vendor_id = Identifier(required=True)
    at_period_end = Boolean(required=True)
    reason = String()


@marketplace.event(part_of="VendorSubscription")
class SubscriptionRenewed:
    """A subscription charge was collected and the renewal date moved forward."""

    __version__ = 1

    vendor_id = Identifier(required=True)
    amount = String(required=True)
    renewal_date = DateTime(required=True)


@marketplace.event(part_of="VendorSubscription")
class SubscriptionPastDue:
    __version__ = 1

    vendor_id = Identifier(required=True)
