"""Shopping cart aggregate.

One cart per owner (signed-in user or anonymous session), bound to the vendor
of the first product added. Lines carry the product's name and price at the
time they were added; totals are recomputed with exact decimals after every
change.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated, CartsMerged
from marketplace.cart.owner import CartOwner
from marketplace.cart.pricing import PricingPolicy
from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStateError
from marketplace.shared.money import ZERO, format_money, to_decimal


@marketplace.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    name = String(max_length=200, required=True)
    price = String(max_length=20, required=True)
    quantity = Integer(required=True, min_value=1)
    variant = String(max_length=100)
    added_at = DateTime()

    @property
    def line_total(self):
        return to_decimal(self.price) * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "product_id": str(self.product_id),
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "variant": self.variant,
            "total": format_money(self.line_total),
        }


@marketplace.aggregate
class ShoppingCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    vendor_id = Identifier()
    items = HasMany(CartItem)
    subtotal = String(max_length=20, default="0.00")
    tax = String(max_length=20, default="0.00")
    shipping = String(max_length=20, default="0.00")
    discount = String(max_length=20, default="0.00")
    total = String(max_length=20, default="0.00")
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_has_exactly_one_owner(self):
        if bool(self.user_id) == bool(self.session_id):
            raise ValidationError({"owner": ["A cart belongs to exactly one user or session"]})

    @classmethod
    def create(cls, owner: CartOwner):
        now = datetime.now(UTC)
        return cls(
            user_id=owner.user_id,
            session_id=owner.session_id,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def recalculate(self, policy: PricingPolicy):
        subtotal = sum((item.line_total for item in self.items), ZERO)
        totals = policy.totals(subtotal, discount=to_decimal(self.discount))
        self.subtotal = format_money(totals.subtotal)
        self.tax = format_money(totals.tax)
        self.shipping = format_money(totals.shipping)
        self.discount = format_money(totals.discount)
        self.total = format_money(totals.total)
        self.updated_at = datetime.now(UTC)

    def _find_item(self, item_id) -> CartItem:
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ObjectNotFoundError({"item_id": [f"Item {item_id} not found in cart"]})
        return item

    def _bind_vendor(self, vendor_id):
        if self.items and self.vendor_id and str(self.vendor_id) != str(vendor_id):
            raise InvalidStateError({"cart": ["Cart already holds products from another store"]})
        self.vendor_id = vendor_id

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product, quantity: int, policy: PricingPolicy, variant: str | None = None):
        """Add ``quantity`` of ``product``, merging with an existing line for the same variant."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if not product.is_available:
            raise ValidationError({"product_id": [f"Product {product.id} is not available"]})

        self._bind_vendor(product.vendor_id)
        variant = variant or None

        existing = next(
            (i for i in self.items if str(i.product_id) == str(product.id) and (i.variant or None) == variant),
            None,
        )
        if existing:
            existing.quantity += quantity
            item = existing
        else:
            item = CartItem(
                product_id=product.id,
                name=product.name,
                price=product.price,
                quantity=quantity,
                variant=variant,
                added_at=datetime.now(UTC),
            )
            self.add_items(item)

        self.recalculate(policy)
        self.raise_(
            CartItemAdded(
                cart_id=self.id,
                item_id=item.id,
                product_id=product.id,
                variant=variant,
                quantity=quantity,
                subtotal=self.subtotal,
            )
        )
        return item

    def update_item_quantity(self, item_id, quantity: int, policy: PricingPolicy):
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be a positive integer; remove the item instead"]})

        item = self._find_item(item_id)
        previous_quantity = item.quantity
        item.quantity = quantity

        self.recalculate(policy)
        self.raise_(
            CartQuantityUpdated(
                cart_id=self.id,
                item_id=item.id,
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                subtotal=self.subtotal,
            )
        )

    def remove_item(self, item_id, policy: PricingPolicy):
        item = self._find_item(item_id)
        self.remove_items(item)
        if not self.items:
            self.vendor_id = None

        self.recalculate(policy)
        self.raise_(CartItemRemoved(cart_id=self.id, item_id=item_id, subtotal=self.subtotal))

    def clear(self, policy: PricingPolicy, reason: str = "cleared"):
        for item in list(self.items):
            self.remove_items(item)
        self.vendor_id = None
        self.discount = format_money(ZERO)

        self.recalculate(policy)
        self.raise_(CartCleared(cart_id=self.id, reason=reason))

    # -------------------------------------------------------------------
    # Guest cart merge
    # -------------------------------------------------------------------
    def absorb(self, guest_cart: "ShoppingCart", policy: PricingPolicy) -> int:
        """Fold a guest cart's lines into this cart; same product and variant add up."""
        if not guest_cart.items:
            return 0
        self._bind_vendor(guest_cart.vendor_id)

        merged = 0
        for guest_item in guest_cart.items:
            existing = next(
                (
                    i
                    for i in self.items
                    if str(i.product_id) == str(guest_item.product_id)
                    and (i.variant or None) == (guest_item.variant or None)
                ),
                None,
            )
            if existing:
                existing.quantity += guest_item.quantity
            else:
                self.add_items(
                    CartItem(
                        product_id=guest_item.product_id,
                        name=guest_item.name,
                        price=guest_item.price,
                        quantity=guest_item.quantity,
                        variant=guest_item.variant,
                        added_at=guest_item.added_at or datetime.now(UTC),
                    )
                )
            merged += 1

        self.recalculate(policy)
        self.raise_(CartsMerged(cart_id=self.id, source_cart_id=guest_cart.id, items_merged_count=merged))
        return merged

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "vendor_id": str(self.vendor_id) if self.vendor_id else None,
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping": self.shipping,
            "discount": self.discount,
            "total": self.total,
        }


def empty_cart() -> dict:
    """Shape returned for an owner who has no cart yet."""
    zero = format_money(ZERO)
    return {
        "id": None,
        "vendor_id": None,
        "items": [],
        "subtotal": zero,
        "tax": zero,
        "shipping": zero,
        "discount": zero,
        "total": zero,
    }
