"""StoreDomain aggregate: a hostname that serves a vendor's storefront.

Platform subdomains (``acme.multivend.com``) are live as soon as they are
created because the platform owns their DNS. Custom domains start out
pending and only serve the storefront after DNS verification succeeds.
"""

import re
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStateError
from marketplace.storefront.events import (
    PrimaryDomainChanged,
    StoreDomainAdded,
    StoreDomainVerified,
)


class DomainType(Enum):
    SUBDOMAIN = "subdomain"
    CUSTOM = "custom"


class DomainStatus(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    ERROR = "error"


class VerificationStatus(Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class SslStatus(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    FAILED = "failed"


_LABEL = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")


def strip_port(host: str | None) -> str:
    """``"Shop.Example.com:8443"`` -> ``"shop.example.com"``."""
    if not host:
        return ""
    host = host.strip().lower()
    if host.startswith("["):  # IPv6 literal
        return host.split("]")[0] + "]"
    return host.split(":")[0].rstrip(".")


def normalize_hostname(name: str) -> str:
    hostname = strip_port(name)
    labels = hostname.split(".")
    if len(labels) < 2 or not all(_LABEL.match(label) for label in labels):
        raise ValidationError({"name": [f"'{name}' is not a valid hostname"]})
    return hostname


def subdomain_hostname(label: str, platform_domain: str) -> str:
    """Expand a single label to a hostname under the platform domain."""
    label = strip_port(label)
    suffix = "." + platform_domain
    if label.endswith(suffix):
        label = label[: -len(suffix)]
    if not _LABEL.match(label):
        raise ValidationError({"name": [f"'{label}' is not a valid subdomain"]})
    return f"{label}.{platform_domain}"


@marketplace.aggregate
class StoreDomain:
    vendor_id = Identifier(required=True)
    name = String(max_length=253, required=True, unique=True)
    domain_type = String(choices=DomainType, default=DomainType.CUSTOM.value)
    status = String(choices=DomainStatus, default=DomainStatus.PENDING.value)
    verification_status = String(choices=VerificationStatus, default=VerificationStatus.PENDING.value)
    ssl_status = String(choices=SslStatus, default=SslStatus.PENDING.value)
    is_primary = Boolean(default=False)
    created_at = DateTime()
    verified_at = DateTime()

    @classmethod
    def create(cls, vendor_id, name, domain_type, platform_domain, is_primary=False):
        now = datetime.now(UTC)
        if DomainType(domain_type) == DomainType.SUBDOMAIN:
            store_domain = cls(
                vendor_id=vendor_id,
                name=subdomain_hostname(name, platform_domain),
                domain_type=DomainType.SUBDOMAIN.value,
                status=DomainStatus.ACTIVE.value,
                verification_status=VerificationStatus.VERIFIED.value,
                ssl_status=SslStatus.ACTIVE.value,
                is_primary=is_primary,
                created_at=now,
                verified_at=now,
            )
        else:
            hostname = normalize_hostname(name)
            if hostname == platform_domain or hostname.endswith("." + platform_domain):
                raise ValidationError({"name": ["Use a subdomain for hostnames under the platform domain"]})
            store_domain = cls(
                vendor_id=vendor_id,
                name=hostname,
                domain_type=DomainType.CUSTOM.value,
                is_primary=is_primary,
                created_at=now,
            )

        store_domain.raise_(
            StoreDomainAdded(
                domain_id=store_domain.id,
                vendor_id=vendor_id,
                name=store_domain.name,
                domain_type=store_domain.domain_type,
                status=store_domain.status,
            )
        )
        return store_domain

    @property
    def is_active(self) -> bool:
        return self.status == DomainStatus.ACTIVE.value

    def record_verification(self, succeeded: bool):
        if self.domain_type == DomainType.SUBDOMAIN.value:
            raise InvalidStateError({"domain": ["Platform subdomains do not need verification"]})

        now = datetime.now(UTC)
        if succeeded:
            self.status = DomainStatus.ACTIVE.value
            self.verification_status = VerificationStatus.VERIFIED.value
            self.verified_at = now
        else:
            self.status = DomainStatus.ERROR.value
            self.verification_status = VerificationStatus.FAILED.value

        self.raise_(
            StoreDomainVerified(
                domain_id=self.id,
                vendor_id=self.vendor_id,
                succeeded=succeeded,
                checked_at=now,
            )
        )

    def record_ssl_status(self, ssl_status):
        self.ssl_status = SslStatus(ssl_status).value

    def set_primary(self, is_primary: bool = True):
        if self.is_primary == is_primary:
            return
        self.is_primary = is_primary
        self.raise_(PrimaryDomainChanged(domain_id=self.id, vendor_id=self.vendor_id, is_primary=is_primary))

