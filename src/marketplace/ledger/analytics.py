"""Read-side revenue analytics over ledger entries.

Pure functions: they take entries (anything with ``entry_type``, ``status``,
``amount``, ``fee``, ``net``, ``refunded_amount`` and ``created_at``) and
never touch persistence. Empty input gives empty results.
"""

from collections import defaultdict
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from enum import Enum

from protean.exceptions import ValidationError

from marketplace.shared.money import ZERO, format_money, quantize, to_decimal

_PAYMENT = "order_payment"
_REFUND = "refund"
_SETTLED_PAYMENT = {"completed", "partial_refund", "refunded"}


class Period(Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def parse_period(period) -> Period:
    try:
        return Period(period)
    except ValueError:
        raise ValidationError({"period": [f"Unknown period '{period}'; use day, week or month"]}) from None


def period_key(moment: datetime, period) -> str:
    """Bucket label: ``2024-05-17`` (day), the Monday of the week, or ``2024-05`` (month)."""
    period = parse_period(period)

    day = moment.date()
    if period == Period.DAY:
        return day.isoformat()
    if period == Period.WEEK:
        return (day - timedelta(days=day.weekday())).isoformat()
    return f"{day:%Y-%m}"


def _is_payment(entry) -> bool:
    return entry.entry_type == _PAYMENT and entry.status in _SETTLED_PAYMENT


def _is_refund(entry) -> bool:
    return entry.entry_type == _REFUND and entry.status == "completed"


def revenue_series(entries, period: str = "day") -> list[dict]:
    """Sales, fees, net revenue, order count and refunds per period, oldest first."""
    parse_period(period)
    buckets = defaultdict(
        lambda: {"sales": ZERO, "fees": ZERO, "net": ZERO, "orders": 0, "refunds": ZERO, "refund_count": 0}
    )

    for entry in entries:
        if entry.created_at is None:
            continue
        if _is_payment(entry):
            bucket = buckets[period_key(entry.created_at, period)]
            bucket["sales"] += to_decimal(entry.amount)
            bucket["fees"] += to_decimal(entry.fee)
            bucket["net"] += to_decimal(entry.net)
            bucket["orders"] += 1
        elif _is_refund(entry):
            bucket = buckets[period_key(entry.created_at, period)]
            bucket["refunds"] += to_decimal(entry.amount)
            bucket["refund_count"] += 1

    return [
        {
            "date": key,
            "sales": format_money(values["sales"]),
            "fees": format_money(values["fees"]),
            "net": format_money(values["net"]),
            "refunds": format_money(values["refunds"]),
            "orders": values["orders"],
            "refund_count": values["refund_count"],
        }
        for key, values in sorted(buckets.items())
    ]


def transaction_stats(entries, now: datetime | None = None) -> dict:
    """Lifetime and current-month totals plus the refund rate (percent of sales)."""
    now = now or datetime.now(UTC)
    payments = [e for e in entries if _is_payment(e)]
    month = [e for e in payments if e.created_at and (e.created_at.year, e.created_at.month) == (now.year, now.month)]

    total_amount = sum((to_decimal(e.amount) for e in payments), ZERO)
    total_refunded = sum((to_decimal(e.amount) for e in entries if _is_refund(e)), ZERO)
    refund_rate = quantize(total_refunded / total_amount * Decimal(100)) if total_amount else ZERO

    return {
        "total_transactions": len(payments),
        "total_amount": format_money(total_amount),
        "total_fees": format_money(sum((to_decimal(e.fee) for e in payments), ZERO)),
        "total_net": format_money(sum((to_decimal(e.net) for e in payments), ZERO)),
        "total_refunded": format_money(total_refunded),
        "month_transactions": len(month),
        "month_amount": format_money(sum((to_decimal(e.amount) for e in month), ZERO)),
        "month_net": format_money(sum((to_decimal(e.net) for e in month), ZERO)),
        "refund_rate": format_money(refund_rate),
    }
