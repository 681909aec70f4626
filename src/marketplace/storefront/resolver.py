"""Storefront resolution: inbound hostname -> vendor storefront context.

A request targets a vendor storefront only when its hostname matches an
``active`` StoreDomain whose vendor can be loaded. Everything else, including
lookup failures, resolves to ``NOT_A_STORE`` so the request carries on as a
regular platform request.
"""

from dataclasses import asdict, dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.domain import logger
from marketplace.storefront.store_domain import StoreDomain, strip_port
from marketplace.vendor.vendor import Vendor

LOCAL_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0", "[::1]", "testserver"}


@dataclass(frozen=True)
class DomainSummary:
    id: str
    name: str
    domain_type: str
    is_primary: bool


@dataclass(frozen=True)
class VendorSummary:
    """Display-safe vendor fields for rendering a storefront."""

    id: str
    company_name: str
    store_theme: str
    custom_css: str | None
    logo_url: str | None


@dataclass(frozen=True)
class StorefrontContext:
    is_vendor_store: bool
    domain: DomainSummary | None = None
    vendor: VendorSummary | None = None

    def to_dict(self) -> dict:
        return asdict(self)


NOT_A_STORE = StorefrontContext(is_vendor_store=False)


def lookup_hostname(host: str | None, test_hint: str | None, platform_domain: str, production: bool) -> str:
    """The hostname to look up for a request.

    Outside production a test hint (header or query parameter) replaces the
    Host header, and a bare label gets the platform domain appended.
    """
    hostname = strip_port(host)
    if test_hint and not production:
        hostname = strip_port(test_hint)
        if "." not in hostname:
            return f"{hostname}.{platform_domain}"

    suffix = "." + platform_domain
    if hostname.endswith(suffix):
        # acme.eu.multivend.com is served by acme.multivend.com
        label = hostname[: -len(suffix)].split(".")[0]
        return f"{label}{suffix}"
    return hostname


def resolve_storefront(
    host: str | None,
    *,
    platform_domain: str,
    production: bool,
    test_hint: str | None = None,
) -> StorefrontContext:
    hostname = lookup_hostname(host, test_hint, platform_domain, production)
    if not hostname or hostname in LOCAL_HOSTS or hostname == platform_domain:
        return NOT_A_STORE

    try:
        store_domain = current_domain.repository_for(StoreDomain).find_by_name(hostname)
        if store_domain is None or not store_domain.is_active:
            return NOT_A_STORE

        try:
            vendor = current_domain.repository_for(Vendor).get(store_domain.vendor_id)
        except ObjectNotFoundError:
            logger.warning("storefront_vendor_missing", hostname=hostname, vendor_id=store_domain.vendor_id)
            return NOT_A_STORE
    except Exception:
        # Storefront lookup must never take the request pipeline down
        logger.exception("storefront_resolution_failed", hostname=hostname)
        return NOT_A_STORE

    return StorefrontContext(
        is_vendor_store=True,
        domain=DomainSummary(
            id=str(store_domain.id),
            name=store_domain.name,
            domain_type=store_domain.domain_type,
            is_primary=bool(store_domain.is_primary),
        ),
        vendor=VendorSummary(
            id=str(vendor.id),
            company_name=vendor.company_name,
            store_theme=vendor.store_theme or "default",
            custom_css=vendor.custom_css,
            logo_url=vendor.logo_url,
        ),
    )
