"""Domain events for the StoreDomain aggregate."""

from protean.fields import Boolean, DateTime, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="StoreDomain")
class StoreDomainAdded:
    """A hostname was attached to a vendor's storefront."""

    __version__ = 1

    domain_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    name = String(required=True)
    domain_type = String(required=True)
    status = String(required=True)


@marketplace.event(part_of="StoreDomain")
class StoreDomainVerified:
    """A DNS verification attempt finished (successfully or not)."""

    __version__ = 1

    domain_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    succeeded = Boolean(default=False)
    checked_at = DateTime(required=True)


@marketplace.event(part_of="StoreDomain")
class PrimaryDomainChanged:
    __version__ = 1

    domain_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    is_primary = Boolean(default=False)

