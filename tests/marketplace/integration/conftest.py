import pytest
from fastapi.testclient import TestClient

from marketplace.api.application import create_app

VENDOR = {"X-User-Id": "vendor-owner", "X-User-Role": "vendor"}
OTHER_VENDOR = {"X-User-Id": "other-owner", "X-User-Role": "vendor"}
SHOPPER = {"X-User-Id": "shopper-1", "X-User-Role": "customer", "X-User-Email": "shopper@example.com"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "super_admin"}


@pytest.fixture()
def client():
    return TestClient(create_app())


@pytest.fixture()
def vendor_id(client):
    response = client.post("/api/vendors", json={"company_name": "Acme Goods"}, headers=VENDOR)
    assert response.status_code == 201
    return response.json()["vendor_id"]


@pytest.fixture()
def make_product(client, vendor_id):
    def _make(price="100.00", name="Widget", status="active"):
        response = client.post(
            f"/api/vendors/{vendor_id}/products",
            json={"name": name, "price": price, "status": status},
            headers=VENDOR,
        )
        assert response.status_code == 201
        return response.json()["product_id"]

    return _make
