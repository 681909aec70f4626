"""Read-side cart lookup."""

from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart, empty_cart
from marketplace.cart.owner import CartOwner


def get_cart(owner: CartOwner) -> dict:
    """The owner's cart, or the zeroed empty-cart shape when there is none."""
    cart = current_domain.repository_for(ShoppingCart).find_for_owner(owner)
    if cart is None:
        return empty_cart()
    return cart.to_dict()
