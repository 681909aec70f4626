"""Shared helpers for the API routers: command dispatch, loaders and the cart owner."""

from uuid import uuid4

from fastapi import Depends, Request, Response
from protean.utils.globals import current_domain

from marketplace.access.identity import ensure_vendor_owner, optional_identity
from marketplace.cart.owner import CartOwner
from marketplace.settings import is_production
from marketplace.shared.concurrency import process_with_retry
from marketplace.vendor.vendor import Vendor

SESSION_COOKIE = "mv_session"


def process(command):
    """Run a command synchronously and return the handler's result."""
    return current_domain.process(command, asynchronous=False)


def process_retrying(command):
    """Run a command, re-running it on aggregate version conflicts."""
    return process_with_retry(command)


def load_vendor(vendor_id) -> Vendor:
    return current_domain.repository_for(Vendor).get(vendor_id)


def owned_vendor(vendor_id, identity) -> Vendor:
    """Load the vendor and check that ``identity`` may manage it."""
    vendor = load_vendor(vendor_id)
    ensure_vendor_owner(identity, vendor)
    return vendor


def cart_owner(request: Request, response: Response, identity=Depends(optional_identity)) -> CartOwner:
    """Signed-in shoppers own their cart; anonymous ones get an ``mv_session`` cookie."""
    if identity is not None:
        return CartOwner.for_request(identity.user_id, None)

    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        session_id = uuid4().hex
        response.set_cookie(
            SESSION_COOKIE,
            session_id,
            httponly=True,
            samesite="lax",
            secure=is_production(),
            max_age=60 * 60 * 24 * 30,
        )
    return CartOwner.for_request(None, session_id)
