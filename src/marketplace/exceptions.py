"""Marketplace error taxonomy.

Field-level input problems are plain ``protean.exceptions.ValidationError``
and missing records are ``protean.exceptions.ObjectNotFoundError``. The
classes below cover the remaining kinds; the API maps each kind to a status
code in ``marketplace.api.errors``.
"""

from decimal import Decimal

from protean.exceptions import ValidationError


class InvalidStateError(ValidationError):
    """The operation is not permitted in the entity's current state."""


class InsufficientFundsError(InvalidStateError):
    """A payout was requested for more than the vendor can withdraw."""

    def __init__(self, messages, available_balance: Decimal, **kwargs):
        super().__init__(messages, **kwargs)
        self.available_balance = available_balance


class AuthenticationRequired(Exception):
    """No identity accompanies the request."""


class PermissionDenied(Exception):
    """The identity lacks the role or ownership the operation needs."""
