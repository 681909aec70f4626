"""FastAPI application factory.

Expects ``marketplace.init()`` to have run; ``src/app.py`` does that for the
server and the test suite does it through its domain fixture.
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.api.cart import cart_router
from marketplace.api.customers import customer_router, vendor_customers_router
from marketplace.api.errors import register_error_handlers
from marketplace.api.gateway import gateway_router
from marketplace.api.ledger import (
    admin_router,
    payout_router,
    settings_router,
    transaction_router,
    vendor_ledger_router,
)
from marketplace.api.orders import checkout_router, order_router, vendor_orders_router
from marketplace.api.platform import platform_router
from marketplace.api.storefront import storefront_router
from marketplace.api.subscriptions import plan_router, subscription_router
from marketplace.api.vendors import domain_router, product_router, vendor_router
from marketplace.domain import marketplace
from marketplace.settings import get_settings
from marketplace.storefront.middleware import attach_storefront
from marketplace.storefront.resolver import NOT_A_STORE
from marketplace.utils.logging import add_context, clear_context

ROUTERS = [
    storefront_router,
    vendor_router,
    domain_router,
    product_router,
    cart_router,
    checkout_router,
    order_router,
    vendor_orders_router,
    vendor_customers_router,
    customer_router,
    vendor_ledger_router,
    transaction_router,
    payout_router,
    admin_router,
    settings_router,
    platform_router,
    plan_router,
    subscription_router,
    gateway_router,
]


def create_app() -> FastAPI:
    with marketplace.domain_context():
        settings = get_settings()

    app = FastAPI(
        title="MultiVend API",
        description="Multi-tenant marketplace: vendor storefronts, carts, orders and payouts",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the marketplace domain context and resolve the storefront for each request."""
        clear_context()
        add_context(request_id=request.headers.get("x-request-id") or uuid4().hex, path=request.url.path)
        with marketplace.domain_context():
            return await attach_storefront(request, call_next)

    for router in ROUTERS:
        app.include_router(router)

    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": marketplace.name})

    @app.get("/")
    async def storefront_home(request: Request):
        """Platform landing page, or the vendor's storefront when the host maps to one."""
        storefront = getattr(request.state, "storefront", NOT_A_STORE)
        return JSONResponse(content={"platform": marketplace.name, "storefront": storefront.to_dict()})

    return app
