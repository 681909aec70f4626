"""Human-readable order numbers: ``MV`` + four random digits + ``YYYYMMDD``.

The random part alone only gives 9000 numbers a day, so allocation checks
the repository and draws again on a collision.
"""

import random
from datetime import UTC, datetime

MAX_ATTEMPTS = 10


class OrderNumberExhausted(Exception):
    """No free order number was found within the allowed attempts."""


def generate_order_number(prefix: str = "MV", now: datetime | None = None, rng=random) -> str:
    now = now or datetime.now(UTC)
    return f"{prefix}{rng.randint(1000, 9999)}{now:%Y%m%d}"


def allocate_order_number(is_taken, prefix: str = "MV", attempts: int = MAX_ATTEMPTS, generate=None) -> str:
    """Draw order numbers until ``is_taken(number)`` is false."""
    generate = generate or (lambda: generate_order_number(prefix))
    for _ in range(attempts):
        number = generate()
        if not is_taken(number):
            return number
    raise OrderNumberExhausted(f"No free order number after {attempts} attempts")
