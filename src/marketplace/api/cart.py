"""FastAPI routes for the shopper's cart.

The cart is addressed implicitly: signed-in shoppers by their user id,
anonymous ones by the ``mv_session`` cookie issued on first contact.
"""

from fastapi import APIRouter, Depends, Request

from marketplace.access.identity import current_identity
from marketplace.api.dependencies import SESSION_COOKIE, cart_owner, process_retrying
from marketplace.api.schemas import (
    AddToCartRequest,
    MergeCartRequest,
    MergeCartResponse,
    UpdateCartItemRequest,
)
from marketplace.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from marketplace.cart.merge import MergeGuestCart
from marketplace.cart.owner import CartOwner
from marketplace.cart.queries import get_cart

cart_router = APIRouter(prefix="/api/cart", tags=["cart"])


@cart_router.get("")
async def show_cart(owner: CartOwner = Depends(cart_owner)) -> dict:
    return get_cart(owner)


@cart_router.post("/items", status_code=201)
async def add_cart_item(body: AddToCartRequest, owner: CartOwner = Depends(cart_owner)) -> dict:
    command = AddToCart(
        user_id=owner.user_id,
        session_id=owner.session_id,
        product_id=body.product_id,
        quantity=body.quantity,
        variant=body.variant,
    )
    process_retrying(command)
    return get_cart(owner)


@cart_router.patch("/items/{item_id}")
async def update_cart_item(item_id: str, body: UpdateCartItemRequest, owner: CartOwner = Depends(cart_owner)) -> dict:
    command = UpdateCartQuantity(
        user_id=owner.user_id,
        session_id=owner.session_id,
        item_id=item_id,
        quantity=body.quantity,
    )
    process_retrying(command)
    return get_cart(owner)


@cart_router.delete("/items/{item_id}")
async def remove_cart_item(item_id: str, owner: CartOwner = Depends(cart_owner)) -> dict:
    process_retrying(RemoveFromCart(user_id=owner.user_id, session_id=owner.session_id, item_id=item_id))
    return get_cart(owner)


@cart_router.delete("")
async def clear_cart(owner: CartOwner = Depends(cart_owner)) -> dict:
    process_retrying(ClearCart(user_id=owner.user_id, session_id=owner.session_id))
    return get_cart(owner)


@cart_router.post("/merge", response_model=MergeCartResponse)
async def merge_guest_cart(
    request: Request, body: MergeCartRequest | None = None, identity=Depends(current_identity)
) -> MergeCartResponse:
    """Fold the anonymous session's cart into the signed-in shopper's cart."""
    session_id = (body.session_id if body else None) or request.cookies.get(SESSION_COOKIE)
    if not session_id:
        return MergeCartResponse(merged_items=0)

    merged = process_retrying(MergeGuestCart(session_id=session_id, user_id=identity.user_id))
    return MergeCartResponse(merged_items=merged or 0)
