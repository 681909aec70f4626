"""Subscription plans and vendor subscriptions: commands and handlers.

Every change to a vendor's subscription is mirrored on the Vendor aggregate
(``subscription_plan_id`` and ``subscription_status``) so storefront and
admin screens can read it without loading the subscription.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, Integer, List, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import logger, marketplace
from marketplace.exceptions import InvalidStateError
from marketplace.ledger.commission import commission_in_effect
from marketplace.ledger.ledger import EntryStatus, EntryType, VendorLedger
from marketplace.settings import get_settings
from marketplace.shared.money import ZERO, to_decimal
from marketplace.subscription.plan import DEFAULT_PLANS, PLAN_FIELDS, SubscriptionPlan, SupportLevel
from marketplace.subscription.subscription import BillingCycle, SubscriptionState, VendorSubscription
from marketplace.vendor.vendor import SubscriptionStatus, Vendor

_VENDOR_STATUS = {
    SubscriptionState.TRIALING.value: SubscriptionStatus.TRIAL.value,
    SubscriptionState.ACTIVE.value: SubscriptionStatus.ACTIVE.value,
    SubscriptionState.PAST_DUE.value: SubscriptionStatus.OVERDUE.value,
    SubscriptionState.CANCELED.value: SubscriptionStatus.CANCELED.value,
}


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------
@marketplace.command(part_of="SubscriptionPlan")
class CreateSubscriptionPlan:
    name = String(max_length=100, required=True)
    description = Text(required=True)
    price = String(max_length=20, required=True)
    yearly_price = String(max_length=20)
    features = List(content_type=String)
    product_limit = Integer(required=True, min_value=0)
    storage_limit = Integer(required=True, min_value=0)
    custom_domain_limit = Integer(required=True, min_value=0)
    support_level = String(choices=SupportLevel, default=SupportLevel.EMAIL.value)
    trial_days = Integer(default=14, min_value=0)
    is_active = Boolean(default=True)


@marketplace.command(part_of="SubscriptionPlan")
class UpdateSubscriptionPlan:
    """Partial update; fields left as None are not touched."""

    plan_id = Identifier(required=True)
    description = Text()
    price = String(max_length=20)
    yearly_price = String(max_length=20)
    features = List(content_type=String)
    product_limit = Integer(min_value=0)
    storage_limit = Integer(min_value=0)
    custom_domain_limit = Integer(min_value=0)
    support_level = String(choices=SupportLevel)
    trial_days = Integer(min_value=0)
    is_active = Boolean()


def load_plan(plan_id) -> SubscriptionPlan:
    try:
        return current_domain.repository_for(SubscriptionPlan).get(str(plan_id))
    except ObjectNotFoundError:
        raise ObjectNotFoundError({"plan_id": ["Subscription plan not found"]}) from None


@marketplace.command_handler(part_of=SubscriptionPlan)
class SubscriptionPlanHandler:
    @handle(CreateSubscriptionPlan)
    def create_plan(self, command):
        repo = current_domain.repository_for(SubscriptionPlan)
        if repo.find_by_name(command.name) is not None:
            raise ValidationError({"name": [f"A plan named '{command.name.strip()}' already exists"]})

        plan = SubscriptionPlan.create(
            name=command.name,
            description=command.description,
            price=command.price,
            yearly_price=command.yearly_price,
            features=command.features,
            product_limit=command.product_limit,
            storage_limit=command.storage_limit,
            custom_domain_limit=command.custom_domain_limit,
            support_level=command.support_level,
            trial_days=command.trial_days,
            is_active=command.is_active,
        )
        repo.add(plan)
        logger.info("subscription_plan_created", plan_id=plan.id, name=plan.name)
        return plan.id

    @handle(UpdateSubscriptionPlan)
    def update_plan(self, command):
        repo = current_domain.repository_for(SubscriptionPlan)
        plan = load_plan(command.plan_id)
        changes = {name: getattr(command, name) for name in PLAN_FIELDS if getattr(command, name) is not None}
        # An empty features list means "not sent"
        if not changes.get("features", True):
            changes.pop("features")
        plan.update(**changes)
        repo.add(plan)


def seed_default_plans() -> list[str]:
    """Create the standard Free, Basic, Pro and Enterprise plans that are missing.

    Returns the names of the plans created.
    """
    repo = current_domain.repository_for(SubscriptionPlan)
    created = []
    for values in DEFAULT_PLANS:
        if repo.find_by_name(values["name"]) is not None:
            continue
        current_domain.process(CreateSubscriptionPlan(**values), asynchronous=False)
        created.append(values["name"])
    return created


# ---------------------------------------------------------------------------
# Vendor subscriptions
# ---------------------------------------------------------------------------
@marketplace.command(part_of="VendorSubscription")
class StartTrial:
    vendor_id = Identifier(required=True)
    plan_id = Identifier(required=True)


@marketplace.command(part_of="VendorSubscription")
class ChangePlan:
    vendor_id = Identifier(required=True)
    plan_id = Identifier(required=True)


@marketplace.command(part_of="VendorSubscription")
class ChangeBillingCycle:
    vendor_id = Identifier(required=True)
    billing_cycle = String(required=True, choices=BillingCycle)


@marketplace.command(part_of="VendorSubscription")
class CancelSubscription:
    vendor_id = Identifier(required=True)
    at_period_end = Boolean(default=True)
    reason = String(max_length=500)


@marketplace.command(part_of="VendorSubscription")
class RecordSubscriptionPayment:
    """A subscription charge was collected; the platform books it in the vendor's ledger."""

    vendor_id = Identifier(required=True)


@marketplace.command(part_of="VendorSubscription")
class MarkSubscriptionPastDue:
    vendor_id = Identifier(required=True)


def load_subscription(vendor_id) -> VendorSubscription:
    try:
        return current_domain.repository_for(VendorSubscription).get(str(vendor_id))
    except ObjectNotFoundError:
        raise ObjectNotFoundError({"subscription": ["No active subscription found"]}) from None


def _sync_vendor(subscription: VendorSubscription) -> None:
    repo = current_domain.repository_for(Vendor)
    vendor = repo.get(subscription.vendor_id)
    vendor.sync_subscription(subscription.plan_id, _VENDOR_STATUS[subscription.status])
    repo.add(vendor)


@marketplace.command_handler(part_of=VendorSubscription)
class VendorSubscriptionHandler:
    @handle(StartTrial)
    def start_trial(self, command):
        current_domain.repository_for(Vendor).get(command.vendor_id)
        repo = current_domain.repository_for(VendorSubscription)
        try:
            repo.get(str(command.vendor_id))
        except ObjectNotFoundError:
            pass
        else:
            raise InvalidStateError({"subscription": ["Vendor already has a subscription"]})

        plan = load_plan(command.plan_id)
        if not plan.is_active:
            raise InvalidStateError({"plan_id": ["Subscription plan is not available"]})

        subscription = VendorSubscription.start_trial(command.vendor_id, plan, currency=get_settings().currency)
        repo.add(subscription)
        _sync_vendor(subscription)
        logger.info("subscription_trial_started", vendor_id=command.vendor_id, plan_id=plan.id)
        return subscription.to_dict()

    @handle(ChangePlan)
    def change_plan(self, command):
        subscription = load_subscription(command.vendor_id)
        plan = load_plan(command.plan_id)
        if not plan.is_active:
            raise InvalidStateError({"plan_id": ["Subscription plan is not available"]})

        subscription.change_plan(plan)
        current_domain.repository_for(VendorSubscription).add(subscription)
        _sync_vendor(subscription)
        logger.info("subscription_plan_changed", vendor_id=command.vendor_id, plan_id=plan.id)
        return subscription.to_dict()

    @handle(ChangeBillingCycle)
    def change_billing_cycle(self, command):
        subscription = load_subscription(command.vendor_id)
        subscription.change_billing_cycle(command.billing_cycle, load_plan(subscription.plan_id))
        current_domain.repository_for(VendorSubscription).add(subscription)
        return subscription.to_dict()

    @handle(CancelSubscription)
    def cancel_subscription(self, command):
        subscription = load_subscription(command.vendor_id)
        subscription.cancel(at_period_end=command.at_period_end, reason=command.reason)
        current_domain.repository_for(VendorSubscription).add(subscription)
        _sync_vendor(subscription)
        logger.info(
            "subscription_canceled",
            vendor_id=command.vendor_id,
            at_period_end=command.at_period_end,
        )
        return subscription.to_dict()

    @handle(RecordSubscriptionPayment)
    def record_subscription_payment(self, command):
        subscription = load_subscription(command.vendor_id)
        plan = load_plan(subscription.plan_id)
        subscription.record_payment()
        current_domain.repository_for(VendorSubscription).add(subscription)
        _sync_vendor(subscription)

        # Free plans renew without a charge
        if to_decimal(subscription.amount) > ZERO:
            ledger_repo = current_domain.repository_for(VendorLedger)
            ledger = ledger_repo.get_or_open(command.vendor_id, currency=subscription.currency)
            ledger.record_transaction(
                entry_type=EntryType.PLATFORM_SUBSCRIPTION.value,
                amount=subscription.amount,
                fee_schedule=commission_in_effect().fee_schedule,
                status=EntryStatus.COMPLETED.value,
                description=f"{plan.name} subscription ({subscription.billing_cycle})",
            )
            ledger_repo.add(ledger)

        logger.info(
            "subscription_payment_recorded",
            vendor_id=command.vendor_id,
            amount=subscription.amount,
            renewal_date=subscription.renewal_date.isoformat(),
        )
        return subscription.to_dict()

    @handle(MarkSubscriptionPastDue)
    def mark_past_due(self, command):
        subscription = load_subscription(command.vendor_id)
        subscription.mark_past_due()
        current_domain.repository_for(VendorSubscription).add(subscription)
        _sync_vendor(subscription)
        logger.info("subscription_past_due", vendor_id=command.vendor_id)
        return subscription.to_dict()
