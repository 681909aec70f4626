"""FastAPI routes for a vendor's customers and their address books."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.access.identity import current_identity, ensure_customer_access
from marketplace.api.dependencies import load_vendor, owned_vendor, process, process_retrying
from marketplace.api.schemas import AddressIdResponse, AddressRequest, StatusResponse
from marketplace.customer.addresses import AddAddress, SetDefaultAddress
from marketplace.customer.customer import Customer

vendor_customers_router = APIRouter(prefix="/api/vendors", tags=["customers"])


@vendor_customers_router.get("/{vendor_id}/customers")
async def list_customers(vendor_id: str, identity=Depends(current_identity)) -> list[dict]:
    owned_vendor(vendor_id, identity)
    customers = current_domain.repository_for(Customer).find_for_vendor(vendor_id)
    return [customer.to_dict() for customer in customers]


customer_router = APIRouter(prefix="/api/customers", tags=["customers"])


def _accessible_customer(customer_id, identity) -> Customer:
    customer = current_domain.repository_for(Customer).get(customer_id)
    ensure_customer_access(identity, customer, load_vendor(customer.vendor_id))
    return customer


@customer_router.post("/{customer_id}/addresses", status_code=201, response_model=AddressIdResponse)
async def add_address(customer_id: str, body: AddressRequest, identity=Depends(current_identity)) -> AddressIdResponse:
    _accessible_customer(customer_id, identity)
    address_id = process(AddAddress(customer_id=customer_id, **body.model_dump(exclude_none=True)))
    return AddressIdResponse(address_id=address_id)


@customer_router.post("/{customer_id}/addresses/{address_id}/default", response_model=StatusResponse)
async def set_default_address(customer_id: str, address_id: str, identity=Depends(current_identity)) -> StatusResponse:
    _accessible_customer(customer_id, identity)
    process_retrying(SetDefaultAddress(customer_id=customer_id, address_id=address_id))
    return StatusResponse(status="default")
