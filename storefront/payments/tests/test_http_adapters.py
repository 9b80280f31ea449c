"""Unit tests for the Paystack HTTP adapter.

These tests verify that the gateway client maps gateway answers, transport
errors and timeouts correctly by monkeypatching ``httpx.AsyncClient``
methods, and that the secret key never leaks.
"""

import asyncio

import httpx
import pytest

from storefront import settings
from storefront.payments.domain import (
    GatewayPayload,
    GatewayRejected,
    GatewayUnavailable,
    VerifyOutcome,
)
from storefront.payments.http_adapters import PaystackClient

SECRET = "sk_test_super_secret"
REF = "ABW-1700000000000-7"


class DummyResp:
    """Minimal httpx-like response stub for adapter tests."""

    def __init__(self, status_code=200, json_data=None):
        self.status_code = status_code
        self._json = json_data if json_data is not None else {}

    def json(self):
        return self._json


def make_client():
    return PaystackClient(secret_key=SECRET, public_key="pk_test_abc", base_url="https://gateway.test")


def make_payload():
    return GatewayPayload(
        reference="ABW-1700000000000-7",
        email="ada@example.com",
        amount=500000,
        currency="NGN",
        metadata={"customer_name": "Ada"},
    )


def test_initialize_ok_sends_authenticated_request(monkeypatch):
    seen = {}

    async def fake_post(self, url, json=None, headers=None, **kw):
        seen.update(url=url, json=json, headers=headers)
        return DummyResp(200, {"status": True, "data": {"reference": json["reference"], "access_code": "ac_1"}})

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post, raising=True)
    out = asyncio.run(make_client().initialize_transaction(make_payload()))

    assert out.reference == "ABW-1700000000000-7"
    assert out.public_key == "pk_test_abc"
    assert out.access_code == "ac_1"
    assert seen["url"] == "https://gateway.test/transaction/initialize"
    assert seen["headers"]["Authorization"] == f"Bearer {SECRET}"
    assert seen["json"]["amount"] == 500000
    assert seen["json"]["currency"] == "NGN"
    assert seen["json"]["email"] == "ada@example.com"
    assert seen["json"]["metadata"] == {"customer_name": "Ada"}


@pytest.mark.parametrize(
    "resp",
    [
        DummyResp(200, {"status": False, "message": "Invalid email"}),
        DummyResp(400, {"status": False, "message": "Duplicate reference"}),
        DummyResp(401, {"status": False, "message": "Invalid key"}),
    ],
)
def test_initialize_rejected(monkeypatch, resp):
    async def fake_post(self, url, json=None, headers=None, **kw):
        return resp

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post, raising=True)
    with pytest.raises(GatewayRejected) as e:
        asyncio.run(make_client().initialize_transaction(make_payload()))
    assert SECRET not in str(e.value)


def test_initialize_network_error_is_unavailable_and_not_retried(monkeypatch):
    calls = {"n": 0}

    async def fake_post(self, url, json=None, headers=None, **kw):
        calls["n"] += 1
        raise httpx.ConnectError("boom")

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post, raising=True)
    with pytest.raises(GatewayUnavailable):
        asyncio.run(make_client().initialize_transaction(make_payload()))
    assert calls["n"] == 1


def test_initialize_timeout_is_unavailable(monkeypatch):
    async def fake_post(self, url, json=None, headers=None, **kw):
        raise httpx.ReadTimeout("slow")

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post, raising=True)
    with pytest.raises(GatewayUnavailable):
        asyncio.run(make_client().initialize_transaction(make_payload()))


def test_verify_success(monkeypatch):
    seen = {}

    async def fake_get(self, url, headers=None, **kw):
        seen.update(url=url, headers=headers)
        return DummyResp(200, {"status": True, "data": {"reference": REF, "status": "success"}})

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get, raising=True)
    out = asyncio.run(make_client().verify_transaction(REF))
    assert out.outcome == VerifyOutcome.SUCCESS
    assert seen["url"] == f"https://gateway.test/transaction/verify/{REF}"
    assert seen["headers"]["Authorization"] == f"Bearer {SECRET}"


def test_verify_abandoned_is_failed(monkeypatch):
    async def fake_get(self, url, headers=None, **kw):
        return DummyResp(200, {"status": True, "data": {"reference": REF, "status": "abandoned"}})

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get, raising=True)
    out = asyncio.run(make_client().verify_transaction(REF))
    assert out.outcome == VerifyOutcome.FAILED
    assert out.gateway_status == "abandoned"


def test_verify_gateway_call_failure_is_error(monkeypatch):
    async def fake_get(self, url, headers=None, **kw):
        return DummyResp(400, {"status": False, "message": "Transaction reference not found"})

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get, raising=True)
    out = asyncio.run(make_client().verify_transaction(REF))
    assert out.outcome == VerifyOutcome.ERROR


def test_verify_answer_for_another_reference_is_error(monkeypatch):
    async def fake_get(self, url, headers=None, **kw):
        return DummyResp(200, {"status": True, "data": {"reference": "ABW-1700000000000-8", "status": "success"}})

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get, raising=True)
    out = asyncio.run(make_client().verify_transaction(REF))
    assert out.outcome == VerifyOutcome.ERROR


def test_verify_answer_without_reference_is_error(monkeypatch):
    async def fake_get(self, url, headers=None, **kw):
        return DummyResp(200, {"status": True, "data": {"status": "success"}})

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get, raising=True)
    out = asyncio.run(make_client().verify_transaction(REF))
    assert out.outcome == VerifyOutcome.ERROR


def test_verify_quotes_reference_into_a_single_path_segment(monkeypatch):
    seen = {}

    async def fake_get(self, url, headers=None, **kw):
        seen["url"] = url
        return DummyResp(404, {"status": False})

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get, raising=True)
    asyncio.run(make_client().verify_transaction("x/../../customer?perPage=1#"))
    tail = seen["url"].removeprefix("https://gateway.test/transaction/verify/")
    assert "/" not in tail
    assert "?" not in tail and "#" not in tail
    assert "%2F" in tail


def test_verify_retries_on_5xx_then_succeeds(monkeypatch):
    monkeypatch.setattr(settings, "GATEWAY_RETRY_MAX", 3)
    monkeypatch.setattr(settings, "GATEWAY_RETRY_BACKOFF_BASE", 0.0)
    calls = {"n": 0}

    async def fake_get(self, url, headers=None, **kw):
        calls["n"] += 1
        if calls["n"] == 1:
            return DummyResp(502, {})
        return DummyResp(200, {"status": True, "data": {"reference": REF, "status": "success"}})

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get, raising=True)
    out = asyncio.run(make_client().verify_transaction(REF))
    assert out.outcome == VerifyOutcome.SUCCESS
    assert calls["n"] == 2


def test_verify_gives_up_after_max_retries(monkeypatch):
    monkeypatch.setattr(settings, "GATEWAY_RETRY_MAX", 2)
    monkeypatch.setattr(settings, "GATEWAY_RETRY_BACKOFF_BASE", 0.0)
    calls = {"n": 0}

    async def fake_get(self, url, headers=None, **kw):
        calls["n"] += 1
        raise httpx.ConnectError("boom")

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get, raising=True)
    with pytest.raises(GatewayUnavailable):
        asyncio.run(make_client().verify_transaction(REF))
    assert calls["n"] == 2


def test_verify_no_retry_on_4xx(monkeypatch):
    monkeypatch.setattr(settings, "GATEWAY_RETRY_MAX", 3)
    calls = {"n": 0}

    async def fake_get(self, url, headers=None, **kw):
        calls["n"] += 1
        return DummyResp(404, {"status": False})

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get, raising=True)
    asyncio.run(make_client().verify_transaction(REF))
    assert calls["n"] == 1


def test_repr_masks_secret():
    assert SECRET not in repr(make_client())
