"""Fake payment gateway controls for manual testing."""

from fastapi import APIRouter, HTTPException

from marketplace.api.schemas import ConfigureGatewayRequest, GatewayConfigResponse
from marketplace.gateway import FakeGateway, get_gateway
from marketplace.settings import is_production

gateway_router = APIRouter(prefix="/api/gateway", tags=["gateway"])


@gateway_router.post("/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Make the FakeGateway approve, decline or time out (non-production only)."""
    if is_production():
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        simulate_timeout=body.simulate_timeout,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        simulate_timeout=gateway.simulate_timeout,
    )
