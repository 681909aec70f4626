"""Cart item management: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.owner import CartOwner
from marketplace.cart.pricing import PricingPolicy
from marketplace.catalogue.product import Product
from marketplace.domain import marketplace
from marketplace.settings import get_settings


@marketplace.command(part_of="ShoppingCart")
class AddToCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    variant = String(max_length=100)


@marketplace.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    user_id = Identifier()
    session_id = String(max_length=255)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="ShoppingCart")
class RemoveFromCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    item_id = Identifier(required=True)


@marketplace.command(part_of="ShoppingCart")
class ClearCart:
    user_id = Identifier()
    session_id = String(max_length=255)


def _owner(command) -> CartOwner:
    return CartOwner(user_id=command.user_id, session_id=command.session_id)


def _existing_cart(repo, command) -> ShoppingCart:
    cart = repo.find_for_owner(_owner(command))
    if cart is None:
        raise ObjectNotFoundError({"cart": ["No cart found"]})
    return cart


@marketplace.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)

        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get_or_create(_owner(command))
        item = cart.add_item(
            product,
            quantity=command.quantity,
            variant=command.variant,
            policy=PricingPolicy.from_settings(get_settings()),
        )
        repo.add(cart)
        return {"cart_id": cart.id, "item_id": item.id}

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = _existing_cart(repo, command)
        cart.update_item_quantity(
            command.item_id,
            command.quantity,
            policy=PricingPolicy.from_settings(get_settings()),
        )
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = _existing_cart(repo, command)
        cart.remove_item(command.item_id, policy=PricingPolicy.from_settings(get_settings()))
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.find_for_owner(_owner(command))
        if cart is None:
            return
        cart.clear(policy=PricingPolicy.from_settings(get_settings()))
        repo.add(cart)
