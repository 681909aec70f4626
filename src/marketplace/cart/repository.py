"""Repository for the ShoppingCart aggregate."""

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.owner import CartOwner
from marketplace.domain import marketplace


@marketplace.repository(part_of=ShoppingCart)
class ShoppingCartRepository:
    def find_for_owner(self, owner: CartOwner) -> ShoppingCart | None:
        results = self._dao.query.filter(**owner.filters()).all().items
        return results[0] if results else None

    def get_or_create(self, owner: CartOwner) -> ShoppingCart:
        """The owner's cart, or a new empty one (not yet saved)."""
        return self.find_for_owner(owner) or ShoppingCart.create(owner)

    def discard(self, cart: ShoppingCart) -> None:
        self._dao.delete(cart)
