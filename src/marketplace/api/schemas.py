"""Pydantic request/response schemas for the MultiVend API.

These are external contracts, separate from the internal Protean commands.
Money travels as decimal strings.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

MoneyStr = Annotated[str, Field(pattern=r"^-?\d+(\.\d{1,2})?$")]


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class AddressSchema(BaseModel):
    name: str | None = None
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str = Field(min_length=2, max_length=2)


# ---------------------------------------------------------------------------
# Vendors
# ---------------------------------------------------------------------------
class RegisterVendorRequest(BaseModel):
    company_name: str = Field(min_length=1, max_length=200)
    email: str | None = None
    phone: str | None = None
    description: str | None = None
    subscription_plan_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "company_name": "Acme Outfitters",
                    "email": "owner@acme.example",
                    "phone": "+1-555-0100",
                }
            ]
        }
    }


class VendorIdResponse(BaseModel):
    vendor_id: str


class StoreSettingsRequest(BaseModel):
    company_name: str | None = None
    email: str | None = None
    phone: str | None = None
    description: str | None = None
    store_theme: str | None = None
    custom_css: str | None = None
    logo_url: str | None = None
    banner_url: str | None = None


class VendorStatusRequest(BaseModel):
    status: Literal["pending", "active", "suspended"]
    reason: str | None = None


# ---------------------------------------------------------------------------
# Store domains
# ---------------------------------------------------------------------------
class AddDomainRequest(BaseModel):
    name: str = Field(min_length=1, max_length=253)
    type: Literal["subdomain", "custom"] = "custom"


class DomainIdResponse(BaseModel):
    domain_id: str


class VerifyDomainRequest(BaseModel):
    succeeded: bool = True


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class CreateProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    price: MoneyStr
    description: str | None = None
    compare_at_price: str | None = None
    sku: str | None = None
    inventory: int = Field(default=0, ge=0)
    status: Literal["draft", "active", "archived"] = "active"


class UpdateProductRequest(BaseModel):
    name: str | None = None
    price: str | None = None
    description: str | None = None
    compare_at_price: str | None = None
    sku: str | None = None
    inventory: int | None = Field(default=None, ge=0)
    status: Literal["draft", "active", "archived"] | None = None


class ProductIdResponse(BaseModel):
    product_id: str


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)
    variant: str | None = None


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


class MergeCartRequest(BaseModel):
    session_id: str | None = None


class MergeCartResponse(BaseModel):
    merged_items: int


# ---------------------------------------------------------------------------
# Checkout and orders
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    vendor_id: str | None = None
    payment_method: Literal["card", "paypal", "cod"] = "card"
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    notes: str | None = None
    capture: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "email": "shopper@example.com",
                    "first_name": "Sam",
                    "payment_method": "card",
                    "shipping_address": {
                        "street": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "postal_code": "62701",
                        "country": "US",
                    },
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    order_id: str
    order_number: str
    total: str
    payment_status: str


class RecordPaymentRequest(BaseModel):
    reference: str | None = None


class PaymentStatusResponse(BaseModel):
    order_id: str
    payment_status: str


class OrderStatusRequest(BaseModel):
    status: Literal["pending", "processing", "shipped", "delivered", "canceled"]


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------
class AddressRequest(BaseModel):
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str = Field(min_length=2, max_length=2)
    label: Literal["home", "work", "other"] = "home"
    is_default: bool = False


class AddressIdResponse(BaseModel):
    address_id: str


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
class RecordTransactionRequest(BaseModel):
    type: Literal["order_payment", "platform_subscription", "adjustment"]
    amount: MoneyStr
    status: Literal["pending", "completed", "failed"] = "completed"
    order_id: str | None = None
    description: str | None = None


class TransactionIdResponse(BaseModel):
    transaction_id: str


class TransactionStatusRequest(BaseModel):
    status: Literal["completed", "failed"]


class RefundRequest(BaseModel):
    amount: MoneyStr
    reason: str | None = None


class PayoutRequest(BaseModel):
    amount: str | None = None
    method: str = "bank_transfer"
    notes: str | None = None


class PayoutIdResponse(BaseModel):
    payout_id: str


class RejectPayoutRequest(BaseModel):
    reason: str | None = None


class BalanceResponse(BaseModel):
    vendor_id: str
    available_balance: str
    pending_balance: str
    currency: str
    minimum_payout: str


class UpdateCommissionSettingsRequest(BaseModel):
    base_fee_percentage: Annotated[str, Field(pattern=r"^\d+(\.\d+)?$")] | None = None
    flat_fee: MoneyStr | None = None
    minimum_payout: MoneyStr | None = None


# ---------------------------------------------------------------------------
# Vendor payment methods
# ---------------------------------------------------------------------------
class PaymentMethodRequest(BaseModel):
    type: Literal["card", "bank_account", "paypal"]
    name: str = Field(min_length=1, max_length=100)
    is_default: bool = False
    last_four: str | None = Field(default=None, pattern=r"^\d{4}$")
    expiry_month: str | None = Field(default=None, pattern=r"^(0?[1-9]|1[0-2])$")
    expiry_year: str | None = Field(default=None, pattern=r"^\d{4}$")
    brand: str | None = None
    gateway_id: str | None = None


class UpdatePaymentMethodRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    status: Literal["active", "inactive", "expired", "failed"] | None = None
    last_four: str | None = Field(default=None, pattern=r"^\d{4}$")
    expiry_month: str | None = Field(default=None, pattern=r"^(0?[1-9]|1[0-2])$")
    expiry_year: str | None = Field(default=None, pattern=r"^\d{4}$")
    brand: str | None = None
    gateway_id: str | None = None


class PaymentMethodIdResponse(BaseModel):
    payment_method_id: str


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------
class CreatePlanRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str
    price: MoneyStr
    yearly_price: MoneyStr | None = None
    features: list[str] = []
    product_limit: int = Field(ge=0)
    storage_limit: int = Field(ge=0)
    custom_domain_limit: int = Field(ge=0)
    support_level: Literal["email", "priority_email", "phone_email", "dedicated"] = "email"
    trial_days: int = Field(default=14, ge=0)
    is_active: bool = True


class UpdatePlanRequest(BaseModel):
    description: str | None = None
    price: MoneyStr | None = None
    yearly_price: MoneyStr | None = None
    features: list[str] | None = None
    product_limit: int | None = Field(default=None, ge=0)
    storage_limit: int | None = Field(default=None, ge=0)
    custom_domain_limit: int | None = Field(default=None, ge=0)
    support_level: Literal["email", "priority_email", "phone_email", "dedicated"] | None = None
    trial_days: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class PlanIdResponse(BaseModel):
    plan_id: str


class ChoosePlanRequest(BaseModel):
    plan_id: str


class BillingCycleRequest(BaseModel):
    billing_cycle: Literal["monthly", "yearly"]


class CancelSubscriptionRequest(BaseModel):
    at_period_end: bool = True
    reason: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Gateway (non-production)
# ---------------------------------------------------------------------------
class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"
    simulate_timeout: bool = False


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    simulate_timeout: bool
