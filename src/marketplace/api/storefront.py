"""Storefront context endpoint."""

from fastapi import APIRouter, Request

from marketplace.storefront.resolver import NOT_A_STORE

storefront_router = APIRouter(prefix="/api/storefront", tags=["storefront"])


@storefront_router.get("/current")
async def current_storefront(request: Request) -> dict:
    """The vendor storefront the request was resolved to, if any."""
    storefront = getattr(request.state, "storefront", NOT_A_STORE)
    return storefront.to_dict()
