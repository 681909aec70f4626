"""Store domain lifecycle: commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import logger, marketplace
from marketplace.settings import get_settings
from marketplace.storefront.store_domain import (
    DomainType,
    SslStatus,
    StoreDomain,
    normalize_hostname,
    subdomain_hostname,
)
from marketplace.vendor.vendor import Vendor


@marketplace.command(part_of="StoreDomain")
class AddStoreDomain:
    vendor_id = Identifier(required=True)
    name = String(max_length=253, required=True)
    domain_type = String(choices=DomainType, default=DomainType.CUSTOM.value)


@marketplace.command(part_of="StoreDomain")
class VerifyStoreDomain:
    domain_id = Identifier(required=True)
    succeeded = Boolean(default=False)


@marketplace.command(part_of="StoreDomain")
class RecordSslStatus:
    domain_id = Identifier(required=True)
    ssl_status = String(required=True, choices=SslStatus)


@marketplace.command(part_of="StoreDomain")
class SetPrimaryDomain:
    domain_id = Identifier(required=True)


@marketplace.command(part_of="StoreDomain")
class RemoveStoreDomain:
    domain_id = Identifier(required=True)


@marketplace.command_handler(part_of=StoreDomain)
class StoreDomainHandler:
    @handle(AddStoreDomain)
    def add_store_domain(self, command):
        settings = get_settings()
        current_domain.repository_for(Vendor).get(command.vendor_id)

        repo = current_domain.repository_for(StoreDomain)
        if command.domain_type == DomainType.SUBDOMAIN.value:
            hostname = subdomain_hostname(command.name, settings.platform_domain)
        else:
            hostname = normalize_hostname(command.name)
        if repo.find_by_name(hostname) is not None:
            raise ValidationError({"name": [f"Domain {hostname} is already registered"]})

        store_domain = StoreDomain.create(
            vendor_id=command.vendor_id,
            name=command.name,
            domain_type=command.domain_type,
            platform_domain=settings.platform_domain,
            is_primary=not repo.find_for_vendor(command.vendor_id),
        )
        repo.add(store_domain)
        logger.info("store_domain_added", vendor_id=command.vendor_id, name=store_domain.name)
        return store_domain.id

    @handle(VerifyStoreDomain)
    def verify_store_domain(self, command):
        repo = current_domain.repository_for(StoreDomain)
        store_domain = repo.get(command.domain_id)
        store_domain.record_verification(command.succeeded)
        repo.add(store_domain)
        logger.info("store_domain_verified", domain_id=command.domain_id, succeeded=command.succeeded)

    @handle(RecordSslStatus)
    def record_ssl_status(self, command):
        repo = current_domain.repository_for(StoreDomain)
        store_domain = repo.get(command.domain_id)
        store_domain.record_ssl_status(command.ssl_status)
        repo.add(store_domain)

    @handle(SetPrimaryDomain)
    def set_primary_domain(self, command):
        repo = current_domain.repository_for(StoreDomain)
        store_domain = repo.get(command.domain_id)

        # Siblings are cleared in the same unit of work, so a vendor never
        # ends up with two primaries.
        for sibling in repo.find_for_vendor(store_domain.vendor_id):
            if sibling.id != store_domain.id and sibling.is_primary:
                sibling.set_primary(False)
                repo.add(sibling)

        store_domain.set_primary(True)
        repo.add(store_domain)

    @handle(RemoveStoreDomain)
    def remove_store_domain(self, command):
        repo = current_domain.repository_for(StoreDomain)
        store_domain = repo.get(command.domain_id)
        was_primary = store_domain.is_primary
        repo._dao.delete(store_domain)

        if was_primary:
            remaining = [d for d in repo.find_for_vendor(store_domain.vendor_id) if d.id != store_domain.id]
            if remaining:
                successor = next((d for d in remaining if d.is_active), remaining[0])
                successor.set_primary(True)
                repo.add(successor)
        logger.info("store_domain_removed", domain_id=command.domain_id, name=store_domain.name)
