"""Guest cart merge on sign-in: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.owner import CartOwner
from marketplace.cart.pricing import PricingPolicy
from marketplace.domain import logger, marketplace
from marketplace.settings import get_settings


@marketplace.command(part_of="ShoppingCart")
class MergeGuestCart:
    session_id = String(max_length=255, required=True)
    user_id = Identifier(required=True)


@marketplace.command_handler(part_of=ShoppingCart)
class MergeGuestCartHandler:
    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        guest_cart = repo.find_for_owner(CartOwner(session_id=command.session_id))
        if guest_cart is None or not guest_cart.items:
            return 0

        user_cart = repo.get_or_create(CartOwner(user_id=command.user_id))
        merged = user_cart.absorb(guest_cart, policy=PricingPolicy.from_settings(get_settings()))
        repo.add(user_cart)
        repo.discard(guest_cart)

        logger.info("guest_cart_merged", user_id=command.user_id, items=merged)
        return merged
