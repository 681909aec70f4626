"""Product management: commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.product import EDITABLE_FIELDS, Product, ProductStatus
from marketplace.domain import marketplace
from marketplace.vendor.vendor import Vendor


@marketplace.command(part_of="Product")
class CreateProduct:
    vendor_id = Identifier(required=True)
    name = String(max_length=200, required=True)
    price = String(max_length=20, required=True)
    description = Text()
    compare_at_price = String(max_length=20)
    sku = String(max_length=64)
    inventory = Integer(default=0, min_value=0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)


@marketplace.command(part_of="Product")
class UpdateProduct:
    """Partial update; fields left as None are not touched."""

    product_id = Identifier(required=True)
    name = String(max_length=200)
    price = String(max_length=20)
    description = Text()
    compare_at_price = String(max_length=20)
    sku = String(max_length=64)
    inventory = Integer(min_value=0)
    status = String(choices=ProductStatus)


@marketplace.command(part_of="Product")
class ArchiveProduct:
    product_id = Identifier(required=True)


@marketplace.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        current_domain.repository_for(Vendor).get(command.vendor_id)
        product = Product.create(
            vendor_id=command.vendor_id,
            name=command.name,
            price=command.price,
            description=command.description,
            compare_at_price=command.compare_at_price,
            sku=command.sku,
            inventory=command.inventory,
            status=command.status,
        )
        current_domain.repository_for(Product).add(product)
        return product.id

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.update(
            **{name: getattr(command, name) for name in EDITABLE_FIELDS if getattr(command, name) is not None}
        )
        repo.add(product)

    @handle(ArchiveProduct)
    def archive_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.archive()
        repo.add(product)
