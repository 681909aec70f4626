"""FastAPI routes for subscription plans and vendor subscriptions."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.access.identity import Role, current_identity, optional_identity, require_role
from marketplace.api.dependencies import owned_vendor, process, process_retrying
from marketplace.api.schemas import (
    BillingCycleRequest,
    CancelSubscriptionRequest,
    ChoosePlanRequest,
    CreatePlanRequest,
    PlanIdResponse,
    StatusResponse,
    UpdatePlanRequest,
)
from marketplace.subscription.management import (
    CancelSubscription,
    ChangeBillingCycle,
    ChangePlan,
    CreateSubscriptionPlan,
    MarkSubscriptionPastDue,
    RecordSubscriptionPayment,
    StartTrial,
    UpdateSubscriptionPlan,
    load_plan,
    load_subscription,
)
from marketplace.subscription.plan import SubscriptionPlan

admin_only = require_role(Role.SUPER_ADMIN)

# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------
plan_router = APIRouter(prefix="/api/subscription-plans", tags=["subscriptions"])


@plan_router.get("")
async def list_plans(include_inactive: bool = False, identity=Depends(optional_identity)) -> list[dict]:
    show_inactive = include_inactive and identity is not None and identity.is_admin
    plans = current_domain.repository_for(SubscriptionPlan).listing(include_inactive=show_inactive)
    return [plan.to_dict() for plan in plans]


@plan_router.get("/{plan_id}")
async def get_plan(plan_id: str) -> dict:
    return load_plan(plan_id).to_dict()


@plan_router.post("", status_code=201, response_model=PlanIdResponse)
async def create_plan(body: CreatePlanRequest, identity=Depends(admin_only)) -> PlanIdResponse:
    plan_id = process(CreateSubscriptionPlan(**body.model_dump(exclude_none=True)))
    return PlanIdResponse(plan_id=plan_id)


@plan_router.patch("/{plan_id}", response_model=StatusResponse)
async def update_plan(plan_id: str, body: UpdatePlanRequest, identity=Depends(admin_only)) -> StatusResponse:
    process_retrying(UpdateSubscriptionPlan(plan_id=plan_id, **body.model_dump(exclude_none=True)))
    return StatusResponse(status="updated")


# ---------------------------------------------------------------------------
# A vendor's subscription
# ---------------------------------------------------------------------------
subscription_router = APIRouter(prefix="/api/vendors", tags=["subscriptions"])


@subscription_router.get("/{vendor_id}/subscription")
async def get_subscription(vendor_id: str, identity=Depends(current_identity)) -> dict:
    owned_vendor(vendor_id, identity)
    return load_subscription(vendor_id).to_dict()


@subscription_router.post("/{vendor_id}/subscription/start-trial", status_code=201)
async def start_trial(vendor_id: str, body: ChoosePlanRequest, identity=Depends(current_identity)) -> dict:
    owned_vendor(vendor_id, identity)
    return process(StartTrial(vendor_id=vendor_id, plan_id=body.plan_id))


@subscription_router.post("/{vendor_id}/subscription/change-plan")
async def change_plan(vendor_id: str, body: ChoosePlanRequest, identity=Depends(current_identity)) -> dict:
    owned_vendor(vendor_id, identity)
    return process_retrying(ChangePlan(vendor_id=vendor_id, plan_id=body.plan_id))


@subscription_router.post("/{vendor_id}/subscription/change-billing-cycle")
async def change_billing_cycle(vendor_id: str, body: BillingCycleRequest, identity=Depends(current_identity)) -> dict:
    owned_vendor(vendor_id, identity)
    return process_retrying(ChangeBillingCycle(vendor_id=vendor_id, billing_cycle=body.billing_cycle))


@subscription_router.post("/{vendor_id}/subscription/cancel")
async def cancel_subscription(
    vendor_id: str, body: CancelSubscriptionRequest, identity=Depends(current_identity)
) -> dict:
    owned_vendor(vendor_id, identity)
    command = CancelSubscription(vendor_id=vendor_id, at_period_end=body.at_period_end, reason=body.reason)
    return process_retrying(command)


@subscription_router.post("/{vendor_id}/subscription/payments")
async def record_subscription_payment(vendor_id: str, identity=Depends(admin_only)) -> dict:
    return process_retrying(RecordSubscriptionPayment(vendor_id=vendor_id))


@subscription_router.post("/{vendor_id}/subscription/past-due")
async def mark_subscription_past_due(vendor_id: str, identity=Depends(admin_only)) -> dict:
    return process_retrying(MarkSubscriptionPastDue(vendor_id=vendor_id))
