"""Tests for subscription plans and the VendorSubscription aggregate."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from marketplace.exceptions import InvalidStateError
from marketplace.subscription.events import SubscriptionCanceled, TrialStarted
from marketplace.subscription.plan import DEFAULT_PLANS, SubscriptionPlan
from marketplace.subscription.subscription import VendorSubscription


def _plan(name="Basic", price="29", yearly_price="290", trial_days=14):
    return SubscriptionPlan.create(
        name=name,
        description="For growing businesses",
        price=price,
        yearly_price=yearly_price,
        features=["1 custom domain", "Up to 500 products"],
        product_limit=500,
        storage_limit=5,
        custom_domain_limit=1,
        trial_days=trial_days,
    )


def _trial(plan=None):
    return VendorSubscription.start_trial("vendor-1", plan or _plan())


class TestSubscriptionPlan:
    def test_prices_are_two_decimal_strings(self):
        plan = _plan()
        assert plan.price == "29.00"
        assert plan.yearly_price == "290.00"

    def test_features_round_trip_as_a_list(self):
        assert _plan().to_dict()["features"] == ["1 custom domain", "Up to 500 products"]

    def test_yearly_price_falls_back_to_monthly(self):
        plan = _plan(yearly_price=None)
        assert plan.price_for("yearly") == "29.00"
        assert _plan().price_for("yearly") == "290.00"

    def test_negative_price_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _plan(price="-1")
        assert "price" in exc.value.messages

    def test_partial_update(self):
        plan = _plan()
        plan.update(price="39", is_active=False)
        assert plan.price == "39.00"
        assert plan.is_active is False
        assert plan.name == "Basic"

    def test_name_cannot_be_updated(self):
        with pytest.raises(ValidationError):
            _plan().update(name="Renamed")

    def test_default_catalogue(self):
        assert [p["name"] for p in DEFAULT_PLANS] == ["Free", "Basic", "Pro", "Enterprise"]
        assert [p["price"] for p in DEFAULT_PLANS] == ["0", "29", "79", "199"]


class TestTrial:
    def test_trial_starts_monthly_at_plan_price(self):
        subscription = _trial()
        assert subscription.id == "vendor-1"
        assert subscription.status == "trialing"
        assert subscription.billing_cycle == "monthly"
        assert subscription.amount == "29.00"

    def test_trial_renews_when_it_ends(self):
        subscription = _trial(_plan(trial_days=7))
        assert subscription.trial_ends_at - subscription.start_date == timedelta(days=7)
        assert subscription.renewal_date == subscription.trial_ends_at

    def test_trial_raises_event(self):
        assert isinstance(_trial()._events[-1], TrialStarted)


class TestPlanAndCycleChanges:
    def test_change_plan_uses_current_cycle_price(self):
        subscription = _trial()
        pro = _plan(name="Pro", price="79", yearly_price="790")
        subscription.change_plan(pro)
        assert subscription.plan_id == pro.id
        assert subscription.amount == "79.00"

    def test_yearly_cycle_uses_yearly_price(self):
        plan = _plan()
        subscription = _trial(plan)
        subscription.change_billing_cycle("yearly", plan)
        assert subscription.billing_cycle == "yearly"
        assert subscription.amount == "290.00"

    def test_same_cycle_is_rejected(self):
        plan = _plan()
        with pytest.raises(InvalidStateError) as exc:
            _trial(plan).change_billing_cycle("monthly", plan)
        assert exc.value.messages["billing_cycle"] == ["Subscription is already on monthly billing cycle"]


class TestCancellation:
    def test_cancel_at_period_end_keeps_status(self):
        subscription = _trial()
        subscription.cancel(at_period_end=True, reason="Too expensive")
        assert subscription.status == "trialing"
        assert subscription.cancel_at_period_end is True
        assert subscription.end_date == subscription.renewal_date
        assert subscription.cancel_reason == "Too expensive"
        assert isinstance(subscription._events[-1], SubscriptionCanceled)

    def test_immediate_cancel_ends_now(self):
        subscription = _trial()
        subscription.cancel(at_period_end=False)
        assert subscription.status == "canceled"
        assert subscription.end_date <= datetime.now(UTC)

    @pytest.mark.parametrize("at_period_end", [True, False])
    def test_second_cancel_is_rejected(self, at_period_end):
        subscription = _trial()
        subscription.cancel(at_period_end=at_period_end)
        with pytest.raises(InvalidStateError) as exc:
            subscription.cancel()
        assert exc.value.messages["status"] == ["Subscription is already canceled"]

    def test_canceled_subscription_cannot_change_plan(self):
        subscription = _trial()
        subscription.cancel(at_period_end=False)
        with pytest.raises(InvalidStateError):
            subscription.change_plan(_plan(name="Pro", price="79"))


class TestBilling:
    def test_payment_activates_and_extends_from_renewal_date(self):
        subscription = _trial()
        renewal = subscription.renewal_date
        subscription.record_payment()
        assert subscription.status == "active"
        assert subscription.renewal_date == renewal + timedelta(days=30)

    def test_yearly_payment_extends_a_year(self):
        plan = _plan()
        subscription = _trial(plan)
        subscription.change_billing_cycle("yearly", plan)
        renewal = subscription.renewal_date
        subscription.record_payment()
        assert subscription.renewal_date == renewal + timedelta(days=365)

    def test_past_due_then_paid(self):
        subscription = _trial()
        subscription.mark_past_due()
        assert subscription.status == "past_due"
        subscription.record_payment()
        assert subscription.status == "active"

    def test_past_due_twice_is_rejected(self):
        subscription = _trial()
        subscription.mark_past_due()
        with pytest.raises(InvalidStateError):
            subscription.mark_past_due()
