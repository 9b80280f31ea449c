"""API tests for the payment initiate/verify endpoints.

The orchestrator dependency is overridden with one wired to a controlled
gateway so each scenario is deterministic.
"""

import pytest

from storefront.payments import reference
from storefront.payments.adapters import GatewayStub
from storefront.payments.domain import (
    GatewayRejected,
    GatewayUnavailable,
    PaymentOrchestrator,
)
from storefront.payments.providers import get_payment_orchestrator

INITIATE_URL = "/api/payment/initiate"
VERIFY_URL = "/api/payment/verify"

CHECKOUT = {
    "customerName": "Ada Obi",
    "address": "12 Allen Avenue, Ikeja",
    "phone": "08030000000",
    "busStop": "Allen",
    "deliveryMode": "doorstep",
    "email": "ada@example.com",
    "cartItems": [{"id": "p1", "name": "Ankara Dress", "qty": 2, "price": 2500}],
    "amount": 5000,
}


@pytest.fixture
def gateway(app):
    stub = GatewayStub(public_key="pk_test_api")
    app.dependency_overrides[get_payment_orchestrator] = lambda: PaymentOrchestrator(stub, currency="NGN")
    return stub


def test_initiate_returns_reference_and_public_key(client, gateway):
    r = client.post(INITIATE_URL, json=CHECKOUT)
    assert r.status_code == 200
    body = r.json()
    assert reference.is_reference(body["reference"])
    assert body["publicKey"] == "pk_test_api"
    assert gateway.initialized[0].amount == 500000
    assert gateway.initialized[0].metadata["cart_items"] == CHECKOUT["cartItems"]


@pytest.mark.parametrize("missing", ["customerName", "address", "phone", "email", "cartItems", "amount"])
def test_initiate_missing_field_is_400_without_gateway_call(client, gateway, missing):
    payload = {k: v for k, v in CHECKOUT.items() if k != missing}
    r = client.post(INITIATE_URL, json=payload)
    assert r.status_code == 400
    assert "error" in r.json()
    assert gateway.initialized == []


@pytest.mark.parametrize("changes", [{"amount": 0}, {"amount": -5}, {"cartItems": []}, {"email": "not-an-email"}])
def test_initiate_invalid_values_are_400(client, gateway, changes):
    r = client.post(INITIATE_URL, json={**CHECKOUT, **changes})
    assert r.status_code == 400
    assert gateway.initialized == []


class FailingGateway(GatewayStub):
    def __init__(self, error):
        super().__init__()
        self.error = error

    async def initialize_transaction(self, payload):
        raise self.error

    async def verify_transaction(self, ref):
        raise self.error


@pytest.mark.parametrize(
    "error, status_code",
    [(GatewayRejected("declined by gateway"), 400), (GatewayUnavailable("gateway down"), 500)],
)
def test_initiate_gateway_failure_returns_generic_error(client, app, error, status_code):
    app.dependency_overrides[get_payment_orchestrator] = lambda: PaymentOrchestrator(FailingGateway(error))
    r = client.post(INITIATE_URL, json=CHECKOUT)
    assert r.status_code == status_code
    assert r.json() == {"error": "Payment initiation failed"}


def test_verify_success_after_initiate(client, gateway):
    ref = client.post(INITIATE_URL, json=CHECKOUT).json()["reference"]
    r = client.post(VERIFY_URL, json={"reference": ref})
    assert r.status_code == 200
    assert r.json()["status"] == "success"
    assert r.json()["message"]


def test_verify_abandoned_is_200_failed(client, gateway):
    ref = client.post(INITIATE_URL, json=CHECKOUT).json()["reference"]
    gateway.statuses[ref] = "abandoned"
    r = client.post(VERIFY_URL, json={"reference": ref})
    assert r.status_code == 200
    assert r.json()["status"] == "failed"


def test_verify_transport_failure_is_200_failed(client, app):
    app.dependency_overrides[get_payment_orchestrator] = lambda: PaymentOrchestrator(
        FailingGateway(GatewayUnavailable("down"))
    )
    r = client.post(VERIFY_URL, json={"reference": "ABW-1700000000000-3"})
    assert r.status_code == 200
    assert r.json()["status"] == "failed"


@pytest.mark.parametrize("body", [{}, {"reference": ""}, {"reference": "   "}])
def test_verify_requires_reference(client, gateway, body):
    r = client.post(VERIFY_URL, json=body)
    assert r.status_code == 400
    assert "error" in r.json()


@pytest.mark.parametrize("ref", ["x/../../customer?perPage=1#", "ABW-1-1", "not-a-reference"])
def test_verify_malformed_reference_is_400(client, app, ref):
    failing = FailingGateway(AssertionError("gateway must not be called"))
    app.dependency_overrides[get_payment_orchestrator] = lambda: PaymentOrchestrator(failing)
    r = client.post(VERIFY_URL, json={"reference": ref})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid reference"}


def test_response_carries_request_id(client, gateway):
    r = client.post(VERIFY_URL, json={"reference": "ABW-1700000000000-9"}, headers={"X-Request-ID": "rid-123"})
    assert r.headers["X-Request-ID"] == "rid-123"


def test_default_wiring_uses_stub_gateway(client):
    r = client.post(INITIATE_URL, json=CHECKOUT)
    assert r.status_code == 200
    assert r.json()["publicKey"] == "pk_test_stub"
