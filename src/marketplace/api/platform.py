"""FastAPI routes for the super-admin's platform-wide earnings views."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.access.identity import Role, require_role
from marketplace.ledger.platform import earnings_summary, revenue_series, transactions_in_range
from marketplace.projections.payout_record import PayoutRecord
from marketplace.projections.transaction_record import TransactionRecord

admin_only = require_role(Role.SUPER_ADMIN)

platform_router = APIRouter(prefix="/api/platform", tags=["platform"])


def _all(record_class):
    return current_domain.repository_for(record_class)._dao.query.limit(None).all().items


@platform_router.get("/earnings")
async def platform_earnings(date_range: str = "30d", identity=Depends(admin_only)) -> dict:
    return earnings_summary(_all(TransactionRecord), _all(PayoutRecord), date_range=date_range)


@platform_router.get("/revenue")
async def platform_revenue(date_range: str = "30d", view: str = "daily", identity=Depends(admin_only)) -> dict:
    return {
        "date_range": date_range,
        "view": view,
        "series": revenue_series(_all(TransactionRecord), date_range=date_range, view=view),
    }


@platform_router.get("/transactions")
async def platform_transactions(
    date_range: str = "30d", type: str | None = None, identity=Depends(admin_only)
) -> list[dict]:
    records = transactions_in_range(_all(TransactionRecord), date_range=date_range, entry_type=type)
    return [record.to_dict() for record in records]
