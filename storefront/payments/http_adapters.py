"""HTTP adapter for the Paystack payment gateway.

This module implements the ``GatewayPort`` on top of ``httpx.AsyncClient``.
It adds:

- Bearer authentication with the configured secret key. The key is never
  logged, never placed in exception messages and masked in ``repr``.
- Request correlation: propagates ``X-Request-ID`` from the ContextVar set by
  the request-id middleware.
- An explicit timeout on every call; timeouts count as transport errors.
- A retry policy with exponential backoff for transport errors and 5xx on
  verification only. Initialization is never retried.
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from .. import settings
from ..middleware import REQUEST_ID_CTX
from .domain import (
    GatewayInitResult,
    GatewayPayload,
    GatewayPort,
    GatewayRejected,
    GatewayUnavailable,
    GatewayVerifyResult,
    VerifyOutcome,
)

logger = logging.getLogger(__name__)

SUCCESS_MARKER = "success"


# ---------------- Helpers ---------------- #

def _request_headers(secret: str, extra: Optional[dict] = None) -> dict:
    """Build outgoing headers: auth, content type, and X-Request-ID.

    Args:
        secret: Gateway secret key used as bearer token.
        extra: Optional dict of additional headers to include.

    Returns:
        dict: Final headers dictionary for the outgoing request.
    """
    headers = {
        "Authorization": f"Bearer {secret}",
        "Accept": "application/json",
    }
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


def _retry_policy():
    """Return retry configuration as (max_retries, backoff_base, max_sleep)."""
    return (
        settings.GATEWAY_RETRY_MAX,
        settings.GATEWAY_RETRY_BACKOFF_BASE,
        settings.GATEWAY_RETRY_MAX_SLEEP,
    )


def _should_retry(resp: Optional[httpx.Response], exc: Optional[Exception]) -> bool:
    """Retry only on transport exceptions or HTTP 5xx."""
    if exc is not None:
        return True
    if resp is not None and 500 <= resp.status_code < 600:
        return True
    return False


def _json_body(resp) -> dict:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


# ---------------- Gateway Adapter ---------------- #

class PaystackClient(GatewayPort):
    """Async HTTP client for the Paystack transaction API."""

    def __init__(
        self,
        secret_key: str | None = None,
        public_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self._secret_key = secret_key if secret_key is not None else settings.PAYSTACK_SECRET_KEY
        self.public_key = public_key if public_key is not None else settings.PAYSTACK_PUBLIC_KEY
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GATEWAY_TIMEOUT_SECS

    def __repr__(self) -> str:
        return f"PaystackClient(base_url={self.base_url!r}, secret_key='***')"

    async def initialize_transaction(self, payload: GatewayPayload) -> GatewayInitResult:
        """Open a transaction at the gateway.

        Business mappings:
        - 2xx with ``status: true`` → GatewayInitResult
        - any other answer → GatewayRejected

        Args:
            payload: Amount (minor units), currency, reference, email and
                metadata to send.

        Returns:
            GatewayInitResult: Reference echoed by the gateway, the configured
            public key, and the access code / authorization URL if provided.

        Raises:
            GatewayUnavailable: On transport error or timeout.
            GatewayRejected: When the gateway reports a non-success status.
        """
        body = {
            "email": payload.email,
            "amount": payload.amount,
            "currency": payload.currency,
            "reference": payload.reference,
            "metadata": payload.metadata,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    f"{self.base_url}/transaction/initialize",
                    json=body,
                    headers=_request_headers(self._secret_key),
                )
        except httpx.RequestError as e:
            logger.warning(
                "gateway initialize transport error",
                extra={"reference": payload.reference, "error": type(e).__name__},
            )
            raise GatewayUnavailable("Payment gateway unavailable") from None

        data = _json_body(resp)
        if not (200 <= resp.status_code < 300) or data.get("status") is not True:
            logger.warning(
                "gateway initialize rejected",
                extra={
                    "reference": payload.reference,
                    "http_status": resp.status_code,
                    "gateway_message": data.get("message"),
                },
            )
            raise GatewayRejected("Payment gateway rejected the transaction")

        info = data.get("data") or {}
        return GatewayInitResult(
            reference=info.get("reference") or payload.reference,
            public_key=self.public_key,
            access_code=info.get("access_code"),
            authorization_url=info.get("authorization_url"),
        )

    async def verify_transaction(self, reference: str) -> GatewayVerifyResult:
        """Look up a transaction and map it to a tri-state outcome.

        Applies retries with exponential backoff on transport errors and 5xx.
        Business mappings:
        - ``status: true`` and ``data.status == "success"`` → SUCCESS
        - ``status: true`` with any other transaction status → FAILED
        - ``status: false`` or a non-retriable non-2xx answer → ERROR

        Args:
            reference: Transaction reference issued at initiation.

        Returns:
            GatewayVerifyResult: The mapped outcome.

        Raises:
            GatewayUnavailable: When transport errors or 5xx persist after
                all retries.
        """
        max_retries, backoff, cap = _retry_policy()
        tries = 0
        headers = _request_headers(self._secret_key)
        url = f"{self.base_url}/transaction/verify/{quote(reference, safe='')}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                resp = None
                exc = None
                try:
                    resp = await client.get(url, headers=headers)
                    if not _should_retry(resp, None):
                        return self._map_verify(reference, resp)
                except httpx.RequestError as e:
                    exc = e

                tries += 1
                if tries >= max_retries:
                    logger.warning(
                        "gateway verify unavailable",
                        extra={
                            "reference": reference,
                            "tries": tries,
                            "error": type(exc).__name__ if exc else None,
                            "http_status": resp.status_code if resp is not None else None,
                        },
                    )
                    raise GatewayUnavailable("Payment gateway unavailable")

                sleep_s = backoff * (2 ** (tries - 1))  # exponential backoff
                if sleep_s > 0:
                    await asyncio.sleep(min(sleep_s, cap))

    @staticmethod
    def _map_verify(reference: str, resp) -> GatewayVerifyResult:
        data = _json_body(resp)
        message = str(data.get("message") or "")
        if not (200 <= resp.status_code < 300) or data.get("status") is not True:
            return GatewayVerifyResult(reference, VerifyOutcome.ERROR, None, message)

        info = data.get("data") or {}
        if info.get("reference") != reference:
            # the answer must describe the transaction that was asked for
            return GatewayVerifyResult(reference, VerifyOutcome.ERROR, None, "Reference mismatch")

        tx_status = info.get("status")
        outcome = VerifyOutcome.SUCCESS if tx_status == SUCCESS_MARKER else VerifyOutcome.FAILED
        return GatewayVerifyResult(reference, outcome, tx_status, message)
