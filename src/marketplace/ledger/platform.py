"""Platform-wide earnings across every vendor's ledger.

Pure functions over transaction and payout records (anything with
``entry_type``, ``status``, ``amount``, ``fee`` and ``recorded_at``, and
``status``/``amount`` for payouts). The platform earns the fee on each order
payment and the full amount of each subscription charge.
"""

from collections import defaultdict
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from protean.exceptions import ValidationError

from marketplace.ledger.analytics import Period, period_key
from marketplace.shared.money import ZERO, format_money, to_decimal

_PAYMENT = "order_payment"
_SUBSCRIPTION = "platform_subscription"
_SETTLED_PAYMENT = {"completed", "partial_refund", "refunded"}
_UNPAID_PAYOUT = {"pending", "processing"}


class DateRange(Enum):
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "year"


_RANGE_DAYS = {DateRange.WEEK: 7, DateRange.MONTH: 30, DateRange.QUARTER: 90, DateRange.YEAR: 365}

_VIEWS = {"daily": Period.DAY, "weekly": Period.WEEK, "monthly": Period.MONTH}


def parse_date_range(value) -> DateRange:
    try:
        return DateRange(value)
    except ValueError:
        raise ValidationError({"date_range": [f"Unknown date range '{value}'; use 7d, 30d, 90d or year"]}) from None


def parse_view(value) -> Period:
    try:
        return _VIEWS[value]
    except KeyError:
        raise ValidationError({"view": [f"Unknown view '{value}'; use daily, weekly or monthly"]}) from None


def window(date_range, now: datetime | None = None) -> tuple[datetime, datetime]:
    now = now or datetime.now(UTC)
    return now - timedelta(days=_RANGE_DAYS[parse_date_range(date_range)]), now


def _is_payment(record) -> bool:
    return record.entry_type == _PAYMENT and record.status in _SETTLED_PAYMENT


def _is_subscription(record) -> bool:
    return record.entry_type == _SUBSCRIPTION and record.status == "completed"


def _between(records, start, end, include_end=True):
    for record in records:
        moment = record.recorded_at
        if moment is None:
            continue
        if start <= moment and (moment <= end if include_end else moment < end):
            yield record


def change_percentage(current: Decimal, previous: Decimal) -> float:
    """Growth against the previous period, to one decimal; 100.0 when there was nothing before."""
    if previous == ZERO:
        return 100.0
    change = (current - previous) / previous * Decimal(100)
    return float(change.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _totals(records) -> dict:
    records = list(records)
    commission = sum((to_decimal(r.fee) for r in records if _is_payment(r)), ZERO)
    subscriptions = sum((to_decimal(r.amount) for r in records if _is_subscription(r)), ZERO)
    sales = sum((to_decimal(r.amount) for r in records if _is_payment(r)), ZERO)
    return {"total": sales + subscriptions, "commission": commission, "subscription": subscriptions}


def earnings_summary(transactions, payouts, date_range: str = "30d", now: datetime | None = None) -> dict:
    """Revenue, commission and subscription income for the range, with change against the range before it."""
    start, end = window(date_range, now)
    previous_start = start - (end - start)
    transactions = list(transactions)

    current = _totals(_between(transactions, start, end))
    previous = _totals(_between(transactions, previous_start, start, include_end=False))
    pending_payouts = sum((to_decimal(p.amount) for p in payouts if p.status in _UNPAID_PAYOUT), ZERO)

    return {
        "date_range": parse_date_range(date_range).value,
        "total_revenue": format_money(current["total"]),
        "commission_revenue": format_money(current["commission"]),
        "subscription_revenue": format_money(current["subscription"]),
        "pending_payouts": format_money(pending_payouts),
        "revenue_change": change_percentage(current["total"], previous["total"]),
        "commission_change": change_percentage(current["commission"], previous["commission"]),
        "subscription_change": change_percentage(current["subscription"], previous["subscription"]),
    }


def revenue_series(transactions, date_range: str = "30d", view: str = "daily", now: datetime | None = None) -> list:
    """Revenue and order count per day, week (Monday) or month, oldest first."""
    period = parse_view(view)
    start, end = window(date_range, now)
    buckets = defaultdict(lambda: {"revenue": ZERO, "orders": 0})

    for record in _between(transactions, start, end):
        if _is_payment(record):
            bucket = buckets[period_key(record.recorded_at, period)]
            bucket["revenue"] += to_decimal(record.amount)
            bucket["orders"] += 1
        elif _is_subscription(record):
            buckets[period_key(record.recorded_at, period)]["revenue"] += to_decimal(record.amount)

    return [
        {"date": key, "revenue": format_money(values["revenue"]), "orders": values["orders"]}
        for key, values in sorted(buckets.items())
    ]


def transactions_in_range(transactions, date_range: str = "30d", entry_type=None, now: datetime | None = None):
    """Every vendor's transactions in the range, newest first."""
    start, end = window(date_range, now)
    records = [r for r in _between(transactions, start, end) if entry_type is None or r.entry_type == entry_type]
    return sorted(records, key=lambda r: r.recorded_at, reverse=True)
