"""Tests for the platform-wide earnings, revenue and transaction views."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from protean.exceptions import ValidationError

from marketplace.ledger.platform import (
    change_percentage,
    earnings_summary,
    parse_date_range,
    revenue_series,
    transactions_in_range,
)

NOW = datetime(2026, 5, 31, 12, 0, tzinfo=UTC)


def _record(entry_type="order_payment", status="completed", amount="100.00", fee="2.80", days_ago=1):
    return SimpleNamespace(
        entry_type=entry_type,
        status=status,
        amount=amount,
        fee=fee,
        recorded_at=NOW - timedelta(days=days_ago),
    )


def _payout(status="pending", amount="50.00"):
    return SimpleNamespace(status=status, amount=amount)


class TestDateRanges:
    @pytest.mark.parametrize("value", ["7d", "30d", "90d", "year"])
    def test_known_ranges(self, value):
        assert parse_date_range(value).value == value

    def test_unknown_range(self):
        with pytest.raises(ValidationError) as exc:
            parse_date_range("2w")
        assert "date_range" in exc.value.messages


class TestChangePercentage:
    def test_nothing_before_counts_as_full_growth(self):
        assert change_percentage(Decimal("10"), Decimal("0")) == 100.0

    def test_rounds_to_one_decimal(self):
        assert change_percentage(Decimal("2"), Decimal("3")) == -33.3

    def test_doubling(self):
        assert change_percentage(Decimal("200"), Decimal("100")) == 100.0


class TestEarningsSummary:
    def test_empty_platform(self):
        summary = earnings_summary([], [], now=NOW)
        assert summary["total_revenue"] == "0.00"
        assert summary["pending_payouts"] == "0.00"
        assert summary["revenue_change"] == 100.0

    def test_commission_and_subscription_income(self):
        records = [
            _record(),
            _record(amount="50.00", fee="1.55"),
            _record(entry_type="platform_subscription", amount="29.00", fee="0.00"),
        ]
        summary = earnings_summary(records, [], now=NOW)
        assert summary["total_revenue"] == "179.00"
        assert summary["commission_revenue"] == "4.35"
        assert summary["subscription_revenue"] == "29.00"

    def test_unsettled_entries_are_ignored(self):
        records = [_record(status="pending"), _record(status="failed"), _record(entry_type="refund")]
        assert earnings_summary(records, [], now=NOW)["total_revenue"] == "0.00"

    def test_refunded_payments_keep_their_commission(self):
        summary = earnings_summary([_record(status="refunded")], [], now=NOW)
        assert summary["commission_revenue"] == "2.80"

    def test_change_against_previous_period(self):
        records = [_record(days_ago=1), _record(days_ago=1), _record(days_ago=10)]
        summary = earnings_summary(records, [], date_range="7d", now=NOW)
        assert summary["total_revenue"] == "200.00"
        assert summary["revenue_change"] == 100.0
        assert summary["commission_change"] == 100.0
        assert summary["subscription_change"] == 100.0

    def test_older_entries_fall_outside_both_periods(self):
        summary = earnings_summary([_record(days_ago=20)], [], date_range="7d", now=NOW)
        assert summary["total_revenue"] == "0.00"
        assert summary["revenue_change"] == 100.0

    def test_decline_is_negative(self):
        records = [_record(days_ago=1), _record(days_ago=10), _record(days_ago=11)]
        assert earnings_summary(records, [], date_range="7d", now=NOW)["revenue_change"] == -50.0

    def test_pending_payouts_include_processing(self):
        payouts = [_payout(), _payout(status="processing", amount="25.00"), _payout(status="completed")]
        assert earnings_summary([], payouts, now=NOW)["pending_payouts"] == "75.00"


class TestRevenueSeries:
    def test_daily_buckets_count_only_orders(self):
        records = [
            _record(days_ago=1),
            _record(days_ago=1, entry_type="platform_subscription", amount="29.00"),
            _record(days_ago=2),
        ]
        assert revenue_series(records, view="daily", now=NOW) == [
            {"date": "2026-05-29", "revenue": "100.00", "orders": 1},
            {"date": "2026-05-30", "revenue": "129.00", "orders": 1},
        ]

    def test_monthly_view(self):
        records = [_record(days_ago=1), _record(days_ago=40)]
        series = revenue_series(records, date_range="90d", view="monthly", now=NOW)
        assert [point["date"] for point in series] == ["2026-04", "2026-05"]

    def test_unknown_view(self):
        with pytest.raises(ValidationError):
            revenue_series([], view="hourly", now=NOW)


class TestTransactionsInRange:
    def test_newest_first_within_range(self):
        old, newer, outside = _record(days_ago=5), _record(days_ago=1), _record(days_ago=45)
        assert transactions_in_range([old, outside, newer], now=NOW) == [newer, old]

    def test_type_filter(self):
        subscription = _record(entry_type="platform_subscription", amount="29.00")
        assert transactions_in_range([_record(), subscription], entry_type="platform_subscription", now=NOW) == [
            subscription
        ]
