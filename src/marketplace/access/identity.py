"""Who is calling, and what they may touch.

Credentials are checked upstream (a gateway or session layer); by the time a
request reaches the API the caller's identity travels in headers:

    X-User-Id, X-User-Role, X-User-Email

A super-admin can act on behalf of another user by adding ``X-Act-As-User``
(and optionally ``X-Act-As-Role``, default ``customer``). Ownership checks use
the impersonated user; logs record both.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from fastapi import Request

from marketplace.domain import logger
from marketplace.exceptions import AuthenticationRequired, PermissionDenied
from marketplace.utils.logging import add_context


class Role(Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    SUPER_ADMIN = "super_admin"


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: Role
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN


@dataclass(frozen=True)
class ActingAs:
    """A super-admin (``real``) acting as another user (``target``)."""

    real: Identity
    target: Identity

    @property
    def user_id(self) -> str:
        return self.target.user_id

    @property
    def role(self) -> Role:
        return self.target.role

    @property
    def email(self) -> str | None:
        return self.target.email

    @property
    def is_admin(self) -> bool:
        return self.target.is_admin


def _parse_role(value: str | None) -> Role:
    try:
        return Role((value or Role.CUSTOMER.value).strip().lower())
    except ValueError:
        raise PermissionDenied(f"Unknown role '{value}'") from None


class IdentityResolver(ABC):
    @abstractmethod
    def resolve(self, request: Request) -> Identity | ActingAs | None:
        """The caller's identity, or None for an anonymous request."""


class HeaderIdentityResolver(IdentityResolver):
    USER_ID = "x-user-id"
    ROLE = "x-user-role"
    EMAIL = "x-user-email"
    ACT_AS_USER = "x-act-as-user"
    ACT_AS_ROLE = "x-act-as-role"

    def resolve(self, request: Request) -> Identity | ActingAs | None:
        user_id = request.headers.get(self.USER_ID)
        if not user_id:
            return None

        identity = Identity(
            user_id=user_id,
            role=_parse_role(request.headers.get(self.ROLE)),
            email=request.headers.get(self.EMAIL),
        )

        target_user = request.headers.get(self.ACT_AS_USER)
        if not target_user:
            return identity
        if not identity.is_admin:
            raise PermissionDenied("Only a super-admin can act as another user")

        acting = ActingAs(
            real=identity,
            target=Identity(user_id=target_user, role=_parse_role(request.headers.get(self.ACT_AS_ROLE))),
        )
        logger.info(
            "impersonation",
            admin_id=identity.user_id,
            target_user_id=acting.user_id,
            target_role=acting.role.value,
            path=request.url.path,
        )
        return acting


_resolver: IdentityResolver = HeaderIdentityResolver()


def get_identity_resolver() -> IdentityResolver:
    return _resolver


def set_identity_resolver(resolver: IdentityResolver) -> None:
    global _resolver
    _resolver = resolver


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------
def optional_identity(request: Request) -> Identity | ActingAs | None:
    identity = get_identity_resolver().resolve(request)
    if identity is not None:
        add_context(user_id=identity.user_id)
        if isinstance(identity, ActingAs):
            add_context(acting_admin_id=identity.real.user_id)
    return identity


def current_identity(request: Request) -> Identity | ActingAs:
    identity = optional_identity(request)
    if identity is None:
        raise AuthenticationRequired("Authentication required")
    return identity


def require_role(*roles: Role):
    """Dependency factory: the caller must hold one of ``roles``."""

    def dependency(request: Request) -> Identity | ActingAs:
        identity = current_identity(request)
        if identity.role not in roles:
            raise PermissionDenied("You do not have permission to perform this action")
        return identity

    return dependency


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------
def can_manage_vendor(identity, vendor) -> bool:
    """The caller owns ``vendor``, or is a super-admin."""
    if identity is None:
        return False
    if identity.is_admin:
        return True
    return identity.role == Role.VENDOR and str(vendor.user_id) == str(identity.user_id)


def ensure_vendor_owner(identity, vendor) -> None:
    if not can_manage_vendor(identity, vendor):
        raise PermissionDenied("You do not have access to this vendor")


def ensure_customer_access(identity, customer, vendor) -> None:
    """The caller is the customer, the vendor they bought from, or a super-admin."""
    if identity.is_admin:
        return
    if customer.user_id and str(customer.user_id) == str(identity.user_id):
        return
    if identity.role == Role.VENDOR and str(vendor.user_id) == str(identity.user_id):
        return
    raise PermissionDenied("You do not have access to this customer")
