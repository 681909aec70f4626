"""HTTP middleware attaching the storefront context to each request."""

from fastapi import Request

from marketplace.settings import get_settings, is_production
from marketplace.storefront.resolver import NOT_A_STORE, resolve_storefront
from marketplace.utils.logging import add_context

CURRENT_STORE_PATH = "/api/storefront/current"
TEST_DOMAIN_HEADER = "x-test-domain"
TEST_DOMAIN_PARAM = "domain"

_STATIC_SUFFIXES = (
    ".js",
    ".css",
    ".map",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".ico",
    ".webp",
    ".woff",
    ".woff2",
    ".ttf",
)


def needs_resolution(path: str) -> bool:
    """API calls and static assets skip resolution, except the current-store endpoint."""
    if path == CURRENT_STORE_PATH:
        return True
    if path.startswith("/api/"):
        return False
    return not path.lower().endswith(_STATIC_SUFFIXES)


async def attach_storefront(request: Request, call_next):
    """Resolve the Host header and expose the result as ``request.state.storefront``.

    Expects the marketplace domain context to be active.
    """
    storefront = NOT_A_STORE
    if needs_resolution(request.url.path):
        settings = get_settings()
        storefront = resolve_storefront(
            request.headers.get("host"),
            platform_domain=settings.platform_domain,
            production=is_production(),
            test_hint=request.headers.get(TEST_DOMAIN_HEADER) or request.query_params.get(TEST_DOMAIN_PARAM),
        )
        if storefront.is_vendor_store:
            add_context(vendor_id=storefront.vendor.id, store_domain=storefront.domain.name)

    request.state.storefront = storefront
    return await call_next(request)
