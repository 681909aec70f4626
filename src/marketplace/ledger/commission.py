"""Platform commission settings: the fee schedule and the payout minimum.

A single ``CommissionSettings`` record (id ``"platform"``) overrides the
``[custom]`` defaults once a super-admin has saved it. New payments use the
schedule in effect when they are recorded; existing entries keep the fee they
were recorded with.
"""

from datetime import UTC, datetime
from decimal import Decimal

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import logger, marketplace
from marketplace.ledger.events import CommissionSettingsUpdated
from marketplace.ledger.fees import FeeSchedule
from marketplace.settings import get_settings
from marketplace.shared.money import ZERO, format_money, to_decimal

PLATFORM_ID = "platform"


@marketplace.aggregate
class CommissionSettings:
    base_fee_percentage = String(max_length=10, required=True)
    flat_fee = String(max_length=20, required=True)
    minimum_payout = String(max_length=20, required=True)
    updated_by = Identifier()
    updated_at = DateTime()

    @classmethod
    def from_settings(cls, settings) -> "CommissionSettings":
        return cls(
            id=PLATFORM_ID,
            base_fee_percentage=str(settings.base_fee_percentage),
            flat_fee=format_money(settings.flat_fee),
            minimum_payout=format_money(settings.minimum_payout),
        )

    @property
    def fee_schedule(self) -> FeeSchedule:
        return FeeSchedule(
            base_fee_percentage=Decimal(self.base_fee_percentage),
            flat_fee=to_decimal(self.flat_fee),
        )

    @property
    def minimum(self) -> Decimal:
        return to_decimal(self.minimum_payout)

    def update(self, updated_by=None, base_fee_percentage=None, flat_fee=None, minimum_payout=None):
        """Apply a partial update; values left as None keep their current setting."""
        changes, errors = {}, {}
        if base_fee_percentage is not None:
            percentage = to_decimal(base_fee_percentage, "base_fee_percentage")
            if not ZERO <= percentage <= Decimal(100):
                errors["base_fee_percentage"] = ["Fee percentage must be between 0 and 100"]
            changes["base_fee_percentage"] = str(percentage)
        if flat_fee is not None:
            if to_decimal(flat_fee, "flat_fee") < ZERO:
                errors["flat_fee"] = ["Flat fee cannot be negative"]
            changes["flat_fee"] = format_money(flat_fee)
        if minimum_payout is not None:
            if to_decimal(minimum_payout, "minimum_payout") <= ZERO:
                errors["minimum_payout"] = ["Minimum payout must be greater than zero"]
            changes["minimum_payout"] = format_money(minimum_payout)
        if errors:
            raise ValidationError(errors)

        for name, value in changes.items():
            setattr(self, name, value)
        self.updated_by = updated_by
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CommissionSettingsUpdated(
                base_fee_percentage=self.base_fee_percentage,
                flat_fee=self.flat_fee,
                minimum_payout=self.minimum_payout,
                updated_by=updated_by,
                updated_at=self.updated_at,
            )
        )

    def summary(self, currency: str) -> dict:
        return {
            **self.fee_schedule.to_dict(),
            "minimum_payout": self.minimum_payout,
            "currency": currency,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@marketplace.repository(part_of=CommissionSettings)
class CommissionSettingsRepository:
    def current(self, settings=None) -> CommissionSettings:
        """The saved settings, or the ``[custom]`` defaults (not yet saved)."""
        try:
            return self.get(PLATFORM_ID)
        except ObjectNotFoundError:
            return CommissionSettings.from_settings(settings or get_settings())


def commission_in_effect() -> CommissionSettings:
    return current_domain.repository_for(CommissionSettings).current()


@marketplace.command(part_of="CommissionSettings")
class UpdateCommissionSettings:
    base_fee_percentage = String(max_length=10)
    flat_fee = String(max_length=20)
    minimum_payout = String(max_length=20)
    updated_by = Identifier()


@marketplace.command_handler(part_of=CommissionSettings)
class CommissionSettingsHandler:
    @handle(UpdateCommissionSettings)
    def update_commission_settings(self, command):
        repo = current_domain.repository_for(CommissionSettings)
        commission = repo.current()
        commission.update(
            updated_by=command.updated_by,
            base_fee_percentage=command.base_fee_percentage,
            flat_fee=command.flat_fee,
            minimum_payout=command.minimum_payout,
        )
        repo.add(commission)
        logger.info(
            "commission_settings_updated",
            base_fee_percentage=commission.base_fee_percentage,
            flat_fee=commission.flat_fee,
            minimum_payout=commission.minimum_payout,
            updated_by=command.updated_by,
        )
        return commission.summary(get_settings().currency)
