from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from marketplace.ledger.commission import CommissionSettings
from marketplace.ledger.events import CommissionSettingsUpdated
from marketplace.settings import get_settings


def _defaults():
    return CommissionSettings.from_settings(get_settings())


class TestCommissionSettings:
    def test_defaults_come_from_configuration(self):
        commission = _defaults()
        assert commission.id == "platform"
        assert commission.fee_schedule.fee_for("100.00") == (Decimal("2.80"), Decimal("97.20"))
        assert commission.minimum == Decimal("25.00")

    def test_partial_update_keeps_other_values(self):
        commission = _defaults()
        commission.update(updated_by="admin-1", base_fee_percentage="5")
        assert commission.base_fee_percentage == "5"
        assert commission.flat_fee == "0.30"
        assert commission.minimum_payout == "25.00"
        assert commission.updated_by == "admin-1"

    def test_new_schedule_applies_to_fees(self):
        commission = _defaults()
        commission.update(base_fee_percentage="5", flat_fee="0.5")
        assert commission.fee_schedule.fee_for("100.00") == (Decimal("5.50"), Decimal("94.50"))

    def test_update_raises_event(self):
        commission = _defaults()
        commission.update(minimum_payout="50")
        event = commission._events[-1]
        assert isinstance(event, CommissionSettingsUpdated)
        assert event.minimum_payout == "50.00"

    @pytest.mark.parametrize(
        "changes, field",
        [
            ({"base_fee_percentage": "101"}, "base_fee_percentage"),
            ({"base_fee_percentage": "-1"}, "base_fee_percentage"),
            ({"flat_fee": "-0.01"}, "flat_fee"),
            ({"minimum_payout": "0"}, "minimum_payout"),
        ],
    )
    def test_out_of_range_values_are_rejected(self, changes, field):
        with pytest.raises(ValidationError) as exc:
            _defaults().update(**changes)
        assert field in exc.value.messages

    def test_rejected_update_changes_nothing(self):
        commission = _defaults()
        with pytest.raises(ValidationError):
            commission.update(base_fee_percentage="3", minimum_payout="-5")
        assert commission.base_fee_percentage == "2.5"

    def test_summary(self):
        assert _defaults().summary("USD") == {
            "base_fee_percentage": "2.5",
            "flat_fee": "0.30",
            "minimum_payout": "25.00",
            "currency": "USD",
            "updated_at": None,
        }
