"""FastAPI routes for vendor transactions, balances, analytics and payouts."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.access.identity import Role, current_identity, require_role
from marketplace.api.dependencies import owned_vendor, process
from marketplace.api.schemas import (
    BalanceResponse,
    PayoutIdResponse,
    PayoutRequest,
    RecordTransactionRequest,
    RefundRequest,
    RejectPayoutRequest,
    UpdateCommissionSettingsRequest,
    StatusResponse,
    TransactionIdResponse,
    TransactionStatusRequest,
)
from marketplace.ledger.analytics import parse_period, revenue_series, transaction_stats
from marketplace.ledger.commission import UpdateCommissionSettings, commission_in_effect
from marketplace.ledger.ledger import VendorLedger
from marketplace.ledger.payouts import ApprovePayout, CompletePayout, RejectPayout, RequestPayout
from marketplace.ledger.transactions import RecordTransaction, RefundTransaction, UpdateTransactionStatus
from marketplace.projections.payout_record import PayoutRecord
from marketplace.projections.transaction_record import TransactionRecord
from marketplace.settings import get_settings
from marketplace.shared.money import format_money

admin_only = require_role(Role.SUPER_ADMIN)


def _ledger(vendor_id) -> VendorLedger:
    return current_domain.repository_for(VendorLedger).get_or_open(vendor_id, currency=get_settings().currency)


# ---------------------------------------------------------------------------
# Vendor-scoped ledger
# ---------------------------------------------------------------------------
vendor_ledger_router = APIRouter(prefix="/api/vendors", tags=["ledger"])


@vendor_ledger_router.get("/{vendor_id}/transactions")
async def list_transactions(
    vendor_id: str,
    type: str | None = None,
    status: str | None = None,
    identity=Depends(current_identity),
) -> list[dict]:
    owned_vendor(vendor_id, identity)
    entries = [
        entry
        for entry in _ledger(vendor_id).entries
        if (type is None or entry.entry_type == type) and (status is None or entry.status == status)
    ]
    entries.sort(key=lambda entry: entry.created_at, reverse=True)
    return [entry.to_dict() for entry in entries]


@vendor_ledger_router.post("/{vendor_id}/transactions", status_code=201, response_model=TransactionIdResponse)
async def record_transaction(
    vendor_id: str, body: RecordTransactionRequest, identity=Depends(admin_only)
) -> TransactionIdResponse:
    command = RecordTransaction(
        vendor_id=vendor_id,
        entry_type=body.type,
        amount=body.amount,
        status=body.status,
        order_id=body.order_id,
        description=body.description,
    )
    transaction_id = process(command)
    return TransactionIdResponse(transaction_id=transaction_id)


@vendor_ledger_router.get("/{vendor_id}/balance", response_model=BalanceResponse)
async def get_balance(vendor_id: str, identity=Depends(current_identity)) -> BalanceResponse:
    owned_vendor(vendor_id, identity)
    ledger = _ledger(vendor_id)
    return BalanceResponse(
        vendor_id=vendor_id,
        available_balance=format_money(ledger.available_balance()),
        pending_balance=format_money(ledger.pending_balance()),
        currency=ledger.currency,
        minimum_payout=commission_in_effect().minimum_payout,
    )


@vendor_ledger_router.get("/{vendor_id}/analytics")
async def get_revenue_analytics(vendor_id: str, period: str = "day", identity=Depends(current_identity)) -> dict:
    owned_vendor(vendor_id, identity)
    period = parse_period(period).value
    return {"period": period, "series": revenue_series(_ledger(vendor_id).entries, period=period)}


@vendor_ledger_router.get("/{vendor_id}/transaction-stats")
async def get_transaction_stats(vendor_id: str, identity=Depends(current_identity)) -> dict:
    owned_vendor(vendor_id, identity)
    return transaction_stats(_ledger(vendor_id).entries)


@vendor_ledger_router.get("/{vendor_id}/payouts")
async def list_payouts(vendor_id: str, identity=Depends(current_identity)) -> list[dict]:
    owned_vendor(vendor_id, identity)
    payouts = sorted(_ledger(vendor_id).payouts, key=lambda payout: payout.requested_at, reverse=True)
    return [payout.to_dict() for payout in payouts]


@vendor_ledger_router.post("/{vendor_id}/payouts", status_code=201, response_model=PayoutIdResponse)
async def request_payout(vendor_id: str, body: PayoutRequest, identity=Depends(current_identity)) -> PayoutIdResponse:
    owned_vendor(vendor_id, identity)
    payout_id = process(RequestPayout(vendor_id=vendor_id, amount=body.amount, method=body.method, notes=body.notes))
    return PayoutIdResponse(payout_id=payout_id)


# ---------------------------------------------------------------------------
# Transactions by id
# ---------------------------------------------------------------------------
transaction_router = APIRouter(prefix="/api/transactions", tags=["ledger"])


def _transaction_vendor(transaction_id) -> str:
    return str(current_domain.repository_for(TransactionRecord).get(transaction_id).vendor_id)


@transaction_router.post("/{transaction_id}/refund", status_code=201, response_model=TransactionIdResponse)
async def refund_transaction(
    transaction_id: str, body: RefundRequest, identity=Depends(current_identity)
) -> TransactionIdResponse:
    vendor_id = _transaction_vendor(transaction_id)
    owned_vendor(vendor_id, identity)
    command = RefundTransaction(
        vendor_id=vendor_id,
        transaction_id=transaction_id,
        amount=body.amount,
        reason=body.reason,
    )
    refund_id = process(command)
    return TransactionIdResponse(transaction_id=refund_id)


@transaction_router.put("/{transaction_id}/status", response_model=StatusResponse)
async def update_transaction_status(
    transaction_id: str, body: TransactionStatusRequest, identity=Depends(admin_only)
) -> StatusResponse:
    command = UpdateTransactionStatus(
        vendor_id=_transaction_vendor(transaction_id),
        transaction_id=transaction_id,
        status=body.status,
    )
    process(command)
    return StatusResponse(status=body.status)


# ---------------------------------------------------------------------------
# Payout administration
# ---------------------------------------------------------------------------
payout_router = APIRouter(prefix="/api/payouts", tags=["payouts"])


def _payout_vendor(payout_id) -> str:
    return str(current_domain.repository_for(PayoutRecord).get(payout_id).vendor_id)


@payout_router.post("/{payout_id}/approve", response_model=StatusResponse)
async def approve_payout(payout_id: str, identity=Depends(admin_only)) -> StatusResponse:
    process(ApprovePayout(vendor_id=_payout_vendor(payout_id), payout_id=payout_id))
    return StatusResponse(status="processing")


@payout_router.post("/{payout_id}/complete", response_model=StatusResponse)
async def complete_payout(payout_id: str, identity=Depends(admin_only)) -> StatusResponse:
    process(CompletePayout(vendor_id=_payout_vendor(payout_id), payout_id=payout_id))
    return StatusResponse(status="completed")


@payout_router.post("/{payout_id}/reject", response_model=StatusResponse)
async def reject_payout(payout_id: str, body: RejectPayoutRequest, identity=Depends(admin_only)) -> StatusResponse:
    process(RejectPayout(vendor_id=_payout_vendor(payout_id), payout_id=payout_id, reason=body.reason))
    return StatusResponse(status="failed")


admin_router = APIRouter(prefix="/api/admin", tags=["admin"])


@admin_router.get("/payouts")
async def list_all_payouts(status: str | None = None, identity=Depends(admin_only)) -> list[dict]:
    repo = current_domain.repository_for(PayoutRecord)
    query = repo._dao.query.filter(status=status) if status else repo._dao.query
    return [record.to_dict() for record in query.order_by("-requested_at").all().items]


settings_router = APIRouter(prefix="/api", tags=["ledger"])


@settings_router.get("/commission-settings")
async def commission_settings(identity=Depends(current_identity)) -> dict:
    return commission_in_effect().summary(get_settings().currency)


@settings_router.put("/commission-settings")
async def update_commission_settings(body: UpdateCommissionSettingsRequest, identity=Depends(admin_only)) -> dict:
    command = UpdateCommissionSettings(
        base_fee_percentage=body.base_fee_percentage,
        flat_fee=body.flat_fee,
        minimum_payout=body.minimum_payout,
        updated_by=identity.user_id,
    )
    return process(command)
