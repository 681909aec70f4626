"""FastAPI routes for vendors: store domains, payment methods and products."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.access.identity import (
    Role,
    can_manage_vendor,
    current_identity,
    optional_identity,
    require_role,
)
from marketplace.api.dependencies import load_vendor, owned_vendor, process, process_retrying
from marketplace.api.schemas import (
    AddDomainRequest,
    CreateProductRequest,
    DomainIdResponse,
    PaymentMethodIdResponse,
    PaymentMethodRequest,
    ProductIdResponse,
    RegisterVendorRequest,
    StatusResponse,
    StoreSettingsRequest,
    UpdatePaymentMethodRequest,
    UpdateProductRequest,
    VendorIdResponse,
    VendorStatusRequest,
    VerifyDomainRequest,
)
from marketplace.catalogue.management import ArchiveProduct, CreateProduct, UpdateProduct
from marketplace.catalogue.product import Product, ProductStatus
from marketplace.storefront.domains import (
    AddStoreDomain,
    RemoveStoreDomain,
    SetPrimaryDomain,
    VerifyStoreDomain,
)
from marketplace.storefront.store_domain import StoreDomain
from marketplace.vendor.payment_methods import (
    AddPaymentMethod,
    RemovePaymentMethod,
    SetDefaultPaymentMethod,
    UpdatePaymentMethod,
)
from marketplace.vendor.registration import ChangeVendorStatus, RegisterVendor, UpdateStoreSettings

admin_only = require_role(Role.SUPER_ADMIN)

# ---------------------------------------------------------------------------
# Vendor Router
# ---------------------------------------------------------------------------
vendor_router = APIRouter(prefix="/api/vendors", tags=["vendors"])


@vendor_router.post("", status_code=201, response_model=VendorIdResponse)
async def register_vendor(body: RegisterVendorRequest, identity=Depends(current_identity)) -> VendorIdResponse:
    command = RegisterVendor(
        user_id=identity.user_id,
        company_name=body.company_name,
        email=body.email or identity.email,
        phone=body.phone,
        description=body.description,
        subscription_plan_id=body.subscription_plan_id,
    )
    vendor_id = process(command)
    return VendorIdResponse(vendor_id=vendor_id)


@vendor_router.get("/{vendor_id}")
async def get_vendor(vendor_id: str, identity=Depends(current_identity)) -> dict:
    return owned_vendor(vendor_id, identity).to_dict()


@vendor_router.patch("/{vendor_id}/settings", response_model=StatusResponse)
async def update_store_settings(
    vendor_id: str, body: StoreSettingsRequest, identity=Depends(current_identity)
) -> StatusResponse:
    owned_vendor(vendor_id, identity)
    process(UpdateStoreSettings(vendor_id=vendor_id, **body.model_dump(exclude_none=True)))
    return StatusResponse(status="updated")


@vendor_router.put("/{vendor_id}/status", response_model=StatusResponse)
async def change_vendor_status(vendor_id: str, body: VendorStatusRequest, identity=Depends(admin_only)) -> StatusResponse:
    process(ChangeVendorStatus(vendor_id=vendor_id, status=body.status, reason=body.reason))
    return StatusResponse(status=body.status)


# ---------------------------------------------------------------------------
# Store domains
# ---------------------------------------------------------------------------
@vendor_router.get("/{vendor_id}/domains")
async def list_domains(vendor_id: str, identity=Depends(current_identity)) -> list[dict]:
    owned_vendor(vendor_id, identity)
    domains = current_domain.repository_for(StoreDomain).find_for_vendor(vendor_id)
    return [d.to_dict() for d in domains]


@vendor_router.post("/{vendor_id}/domains", status_code=201, response_model=DomainIdResponse)
async def add_domain(vendor_id: str, body: AddDomainRequest, identity=Depends(current_identity)) -> DomainIdResponse:
    owned_vendor(vendor_id, identity)
    domain_id = process(AddStoreDomain(vendor_id=vendor_id, name=body.name, domain_type=body.type))
    return DomainIdResponse(domain_id=domain_id)


# ---------------------------------------------------------------------------
# Payment methods
# ---------------------------------------------------------------------------
@vendor_router.get("/{vendor_id}/payment-methods")
async def list_payment_methods(vendor_id: str, identity=Depends(current_identity)) -> list[dict]:
    vendor = owned_vendor(vendor_id, identity)
    return [method.to_dict() for method in vendor.payment_methods]


@vendor_router.post("/{vendor_id}/payment-methods", status_code=201, response_model=PaymentMethodIdResponse)
async def add_payment_method(
    vendor_id: str, body: PaymentMethodRequest, identity=Depends(current_identity)
) -> PaymentMethodIdResponse:
    owned_vendor(vendor_id, identity)
    details = body.model_dump(exclude_none=True, exclude={"type"})
    payment_method_id = process_retrying(AddPaymentMethod(vendor_id=vendor_id, method_type=body.type, **details))
    return PaymentMethodIdResponse(payment_method_id=payment_method_id)


@vendor_router.get("/{vendor_id}/payment-methods/{payment_method_id}")
async def get_payment_method(vendor_id: str, payment_method_id: str, identity=Depends(current_identity)) -> dict:
    return owned_vendor(vendor_id, identity).payment_method(payment_method_id).to_dict()


@vendor_router.patch("/{vendor_id}/payment-methods/{payment_method_id}", response_model=StatusResponse)
async def update_payment_method(
    vendor_id: str, payment_method_id: str, body: UpdatePaymentMethodRequest, identity=Depends(current_identity)
) -> StatusResponse:
    owned_vendor(vendor_id, identity)
    command = UpdatePaymentMethod(
        vendor_id=vendor_id, payment_method_id=payment_method_id, **body.model_dump(exclude_none=True)
    )
    process_retrying(command)
    return StatusResponse(status="updated")


@vendor_router.post("/{vendor_id}/payment-methods/{payment_method_id}/default", response_model=StatusResponse)
async def set_default_payment_method(
    vendor_id: str, payment_method_id: str, identity=Depends(current_identity)
) -> StatusResponse:
    owned_vendor(vendor_id, identity)
    process_retrying(SetDefaultPaymentMethod(vendor_id=vendor_id, payment_method_id=payment_method_id))
    return StatusResponse(status="default")


@vendor_router.delete("/{vendor_id}/payment-methods/{payment_method_id}", response_model=StatusResponse)
async def remove_payment_method(
    vendor_id: str, payment_method_id: str, identity=Depends(current_identity)
) -> StatusResponse:
    owned_vendor(vendor_id, identity)
    process_retrying(RemovePaymentMethod(vendor_id=vendor_id, payment_method_id=payment_method_id))
    return StatusResponse(status="removed")


domain_router = APIRouter(prefix="/api/domains", tags=["domains"])


def _owned_domain(domain_id, identity) -> StoreDomain:
    store_domain = current_domain.repository_for(StoreDomain).get(domain_id)
    owned_vendor(store_domain.vendor_id, identity)
    return store_domain


@domain_router.post("/{domain_id}/verify", response_model=StatusResponse)
async def verify_domain(domain_id: str, body: VerifyDomainRequest, identity=Depends(admin_only)) -> StatusResponse:
    process(VerifyStoreDomain(domain_id=domain_id, succeeded=body.succeeded))
    store_domain = current_domain.repository_for(StoreDomain).get(domain_id)
    return StatusResponse(status=store_domain.status)


@domain_router.post("/{domain_id}/primary", response_model=StatusResponse)
async def set_primary_domain(domain_id: str, identity=Depends(current_identity)) -> StatusResponse:
    _owned_domain(domain_id, identity)
    process(SetPrimaryDomain(domain_id=domain_id))
    return StatusResponse(status="primary")


@domain_router.delete("/{domain_id}", response_model=StatusResponse)
async def remove_domain(domain_id: str, identity=Depends(current_identity)) -> StatusResponse:
    _owned_domain(domain_id, identity)
    process(RemoveStoreDomain(domain_id=domain_id))
    return StatusResponse(status="removed")


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
@vendor_router.get("/{vendor_id}/products")
async def list_products(vendor_id: str, status: str | None = None, identity=Depends(optional_identity)) -> list[dict]:
    """Shoppers see active products; the vendor and admins can filter by any status."""
    if not can_manage_vendor(identity, load_vendor(vendor_id)):
        status = ProductStatus.ACTIVE.value

    products = current_domain.repository_for(Product).find_for_vendor(vendor_id, status=status)
    return [p.to_dict() for p in products]


@vendor_router.post("/{vendor_id}/products", status_code=201, response_model=ProductIdResponse)
async def create_product(
    vendor_id: str, body: CreateProductRequest, identity=Depends(current_identity)
) -> ProductIdResponse:
    owned_vendor(vendor_id, identity)
    product_id = process(CreateProduct(vendor_id=vendor_id, **body.model_dump(exclude_none=True)))
    return ProductIdResponse(product_id=product_id)


product_router = APIRouter(prefix="/api/products", tags=["products"])


def _owned_product(product_id, identity) -> Product:
    product = current_domain.repository_for(Product).get(product_id)
    owned_vendor(product.vendor_id, identity)
    return product


@product_router.patch("/{product_id}", response_model=StatusResponse)
async def update_product(product_id: str, body: UpdateProductRequest, identity=Depends(current_identity)) -> StatusResponse:
    _owned_product(product_id, identity)
    process(UpdateProduct(product_id=product_id, **body.model_dump(exclude_none=True)))
    return StatusResponse(status="updated")


@product_router.post("/{product_id}/archive", response_model=StatusResponse)
async def archive_product(product_id: str, identity=Depends(current_identity)) -> StatusResponse:
    _owned_product(product_id, identity)
    process(ArchiveProduct(product_id=product_id))
    return StatusResponse(status=ProductStatus.ARCHIVED.value)
