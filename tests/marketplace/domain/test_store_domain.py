import pytest
from protean.exceptions import ValidationError

from marketplace.exceptions import InvalidStateError
from marketplace.storefront.events import PrimaryDomainChanged, StoreDomainAdded
from marketplace.storefront.middleware import needs_resolution
from marketplace.storefront.resolver import lookup_hostname
from marketplace.storefront.store_domain import (
    DomainStatus,
    StoreDomain,
    VerificationStatus,
    normalize_hostname,
    strip_port,
    subdomain_hostname,
)

PLATFORM = "multivend.com"


class TestHostnames:
    def test_strip_port_lowercases(self):
        assert strip_port("Shop.Example.com:8443") == "shop.example.com"

    def test_strip_port_blank(self):
        assert strip_port(None) == ""

    def test_trailing_dot_is_dropped(self):
        assert strip_port("shop.example.com.") == "shop.example.com"

    @pytest.mark.parametrize("name", ["localhost", "bad host.com", "-shop.example.com", "shop..example.com"])
    def test_invalid_hostnames(self, name):
        with pytest.raises(ValidationError):
            normalize_hostname(name)

    def test_bare_label_gets_platform_domain(self):
        assert subdomain_hostname("acme", PLATFORM) == "acme.multivend.com"

    def test_full_subdomain_is_kept(self):
        assert subdomain_hostname("acme.multivend.com", PLATFORM) == "acme.multivend.com"

    @pytest.mark.parametrize("name", ["shop.acme", "shop.acme.multivend.com"])
    def test_subdomain_must_be_a_single_label(self, name):
        with pytest.raises(ValidationError):
            subdomain_hostname(name, PLATFORM)


class TestStoreDomainCreation:
    def test_subdomain_is_active_immediately(self):
        store_domain = StoreDomain.create("vendor-1", "acme", "subdomain", PLATFORM)
        assert store_domain.name == "acme.multivend.com"
        assert store_domain.status == DomainStatus.ACTIVE.value
        assert store_domain.verification_status == VerificationStatus.VERIFIED.value
        assert store_domain.is_active

    def test_custom_domain_starts_pending(self):
        store_domain = StoreDomain.create("vendor-1", "Shop.Example.com", "custom", PLATFORM)
        assert store_domain.name == "shop.example.com"
        assert store_domain.status == DomainStatus.PENDING.value
        assert not store_domain.is_active
        assert any(isinstance(e, StoreDomainAdded) for e in store_domain._events)

    def test_custom_domain_under_platform_is_rejected(self):
        with pytest.raises(ValidationError):
            StoreDomain.create("vendor-1", "acme.multivend.com", "custom", PLATFORM)


class TestVerification:
    def test_successful_verification_activates(self):
        store_domain = StoreDomain.create("vendor-1", "shop.example.com", "custom", PLATFORM)
        store_domain.record_verification(True)
        assert store_domain.status == DomainStatus.ACTIVE.value
        assert store_domain.verified_at is not None

    def test_failed_verification_marks_error(self):
        store_domain = StoreDomain.create("vendor-1", "shop.example.com", "custom", PLATFORM)
        store_domain.record_verification(False)
        assert store_domain.status == DomainStatus.ERROR.value
        assert store_domain.verification_status == VerificationStatus.FAILED.value

    def test_subdomains_are_not_verified(self):
        store_domain = StoreDomain.create("vendor-1", "acme", "subdomain", PLATFORM)
        with pytest.raises(InvalidStateError):
            store_domain.record_verification(True)

    def test_set_primary_raises_event_once(self):
        store_domain = StoreDomain.create("vendor-1", "acme", "subdomain", PLATFORM)
        store_domain.set_primary(True)
        store_domain.set_primary(True)
        assert len([e for e in store_domain._events if isinstance(e, PrimaryDomainChanged)]) == 1


class TestLookupHostname:
    def test_host_header_port_is_ignored(self):
        assert lookup_hostname("acme.multivend.com:8000", None, PLATFORM, production=False) == "acme.multivend.com"

    def test_nested_subdomain_maps_to_first_label(self):
        assert lookup_hostname("shop.acme.multivend.com", None, PLATFORM, production=False) == "shop.multivend.com"

    def test_custom_host_is_unchanged(self):
        assert lookup_hostname("shop.example.com", None, PLATFORM, production=False) == "shop.example.com"

    def test_test_hint_label_outside_production(self):
        assert lookup_hostname("localhost:8000", "acme", PLATFORM, production=False) == "acme.multivend.com"

    def test_test_hint_full_hostname(self):
        assert lookup_hostname("localhost", "shop.example.com", PLATFORM, production=False) == "shop.example.com"

    def test_test_hint_ignored_in_production(self):
        assert lookup_hostname("shop.example.com", "acme", PLATFORM, production=True) == "shop.example.com"


class TestNeedsResolution:
    @pytest.mark.parametrize("path", ["/", "/products/widget", "/api/storefront/current"])
    def test_pages_are_resolved(self, path):
        assert needs_resolution(path)

    @pytest.mark.parametrize("path", ["/api/cart", "/static/app.js", "/favicon.ico"])
    def test_api_and_assets_are_skipped(self, path):
        assert not needs_resolution(path)
