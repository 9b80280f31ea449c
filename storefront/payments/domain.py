"""Domain models, ports and service for payments.

This module contains the dataclasses exchanged with the payment gateway, the
protocol (port) a gateway client implements, the payment error taxonomy, and
the orchestrator that drives a checkout from validation to gateway
initialization and later verification.

The orchestrator keeps no state between ``initiate`` and ``verify``: the
payment reference handed back to the caller is the only correlation token.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol

from . import reference as references

logger = logging.getLogger(__name__)

MINOR_UNITS_PER_MAJOR = 100


# ---- Enums ----
class PaymentState(str, Enum):
    """Lifecycle of a single payment as seen by the orchestrator."""

    PENDING_VALIDATION = "PENDING_VALIDATION"
    INITIATED = "INITIATED"
    VERIFIED_SUCCESS = "VERIFIED_SUCCESS"
    VERIFIED_FAILED = "VERIFIED_FAILED"


class VerifyOutcome(str, Enum):
    """Gateway verification result.

    ``SUCCESS`` requires both a successful gateway call and a successful
    transaction status. ``ERROR`` means the gateway answered but reported the
    call itself as failed. ``FAILED`` covers every other transaction status
    (abandoned, declined, pending...).
    """

    SUCCESS = "success"
    FAILED = "failed"
    ERROR = "error"


# ---- Errors ----
class PaymentError(Exception):
    """Base class for payment errors."""


class InvalidRequest(PaymentError):
    """Client input is missing or malformed. Safe to show to the caller."""


class GatewayUnavailable(PaymentError):
    """The gateway could not be reached (transport error or timeout)."""


class GatewayRejected(PaymentError):
    """The gateway answered but reported the request as unsuccessful."""


class PaymentInitiationFailed(PaymentError):
    """Initiation could not be completed; the cause is chained."""


# ---- Entities / DTOs ----
@dataclass
class CheckoutRequest:
    """Checkout data submitted by the storefront.

    Attributes:
        customer_name: Full name of the buyer.
        address: Delivery address.
        phone: Contact phone number.
        email: Buyer email, required by the gateway for receipts.
        cart_items: Opaque line items, forwarded verbatim as metadata.
        amount: Total in the main currency unit (e.g. naira).
        bus_stop: Optional nearest bus stop for delivery.
        delivery_mode: Optional delivery option chosen by the buyer.
    """

    customer_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    cart_items: List[Any] = field(default_factory=list)
    amount: Any = None
    bus_stop: Optional[str] = None
    delivery_mode: Optional[str] = None


@dataclass(frozen=True)
class GatewayPayload:
    """Request body sent to the gateway's initialize endpoint."""

    reference: str
    email: str
    amount: int  # minor units
    currency: str
    metadata: dict


@dataclass(frozen=True)
class GatewayInitResult:
    reference: str
    public_key: str
    access_code: Optional[str] = None
    authorization_url: Optional[str] = None


@dataclass(frozen=True)
class GatewayVerifyResult:
    reference: str
    outcome: VerifyOutcome
    gateway_status: Optional[str] = None
    message: str = ""


@dataclass(frozen=True)
class InitiationResult:
    reference: str
    public_key: str
    state: PaymentState = PaymentState.INITIATED


@dataclass(frozen=True)
class VerificationResult:
    reference: str
    state: PaymentState
    message: str

    @property
    def status(self) -> str:
        return "success" if self.state is PaymentState.VERIFIED_SUCCESS else "failed"


# ---- Ports (DIP) ----
class GatewayPort(Protocol):
    """Port describing the payment gateway operations used by the domain."""

    async def initialize_transaction(self, payload: GatewayPayload) -> GatewayInitResult:
        """Open a transaction at the gateway.

        Raises:
            GatewayUnavailable: On transport error or timeout.
            GatewayRejected: When the gateway reports a non-success status.
        """
        raise NotImplementedError()

    async def verify_transaction(self, reference: str) -> GatewayVerifyResult:
        """Look up the transaction identified by ``reference``.

        Raises:
            GatewayUnavailable: On transport error or timeout.
        """
        raise NotImplementedError()


# ---- Helpers ----
def to_minor_units(amount: Any) -> int:
    """Convert an amount in the main currency unit to integer minor units.

    Args:
        amount: Decimal, int, float or numeric string.

    Returns:
        int: ``amount * 100`` rounded half-up.

    Raises:
        InvalidRequest: If ``amount`` is not a finite number.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidRequest("Amount must be a number") from None
    if not value.is_finite():
        raise InvalidRequest("Amount must be a number")
    return int((value * MINOR_UNITS_PER_MAJOR).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ---- Domain service ----
class PaymentOrchestrator:
    """Domain service driving checkout payments through the gateway.

    The gateway client is injected, so the same orchestrator runs against the
    HTTP client in production and against stubs in tests.
    """

    REQUIRED_FIELDS = (
        ("customer_name", "customerName"),
        ("address", "address"),
        ("phone", "phone"),
        ("email", "email"),
    )

    def __init__(
        self,
        gateway: GatewayPort,
        currency: str = "NGN",
        references: Callable[[], str] = references.generate,
    ):
        """Initialize the orchestrator.

        Args:
            gateway: GatewayPort used to initialize and verify transactions.
            currency: ISO currency code sent with every transaction.
            references: Zero-argument callable returning a fresh reference.
        """
        self.gateway = gateway
        self.currency = currency
        self.references = references

    def validate(self, req: CheckoutRequest) -> int:
        """Check the checkout invariants and return the amount in minor units.

        Raises:
            InvalidRequest: When a required field is missing, the cart is
                empty, or the amount is not strictly positive.
        """
        missing = [name for attr, name in self.REQUIRED_FIELDS if _blank(getattr(req, attr))]
        if missing:
            raise InvalidRequest(f"Missing required fields: {', '.join(missing)}")
        if not req.cart_items:
            raise InvalidRequest("Cart is empty")
        if _blank(req.amount):
            raise InvalidRequest("Missing required fields: amount")
        minor = to_minor_units(req.amount)
        if minor <= 0:
            raise InvalidRequest("Amount must be greater than zero")
        return minor

    def build_payload(self, req: CheckoutRequest, reference: str, amount_minor: int) -> GatewayPayload:
        """Assemble the gateway request, copying checkout fields into metadata."""
        metadata = {
            "customer_name": req.customer_name,
            "phone": req.phone,
            "address": req.address,
            "bus_stop": req.bus_stop,
            "delivery_mode": req.delivery_mode,
            "cart_items": req.cart_items,
            # rendered on the gateway's receipt and dashboard
            "custom_fields": [
                {"display_name": "Customer Name", "variable_name": "customer_name", "value": req.customer_name},
                {"display_name": "Phone", "variable_name": "phone", "value": req.phone},
                {"display_name": "Address", "variable_name": "address", "value": req.address},
            ],
        }
        return GatewayPayload(
            reference=reference,
            email=req.email,
            amount=amount_minor,
            currency=self.currency,
            metadata=metadata,
        )

    async def initiate(self, req: CheckoutRequest) -> InitiationResult:
        """Validate a checkout and open a transaction at the gateway.

        Args:
            req: Checkout data submitted by the storefront.

        Returns:
            InitiationResult: Fresh reference plus the gateway public key the
            client needs to complete the payment widget flow.

        Raises:
            InvalidRequest: If validation fails; the gateway is not called.
            PaymentInitiationFailed: If the gateway rejects the request or is
                unavailable. The original error is chained as ``__cause__``.
        """
        amount_minor = self.validate(req)

        ref = self.references()
        payload = self.build_payload(req, ref, amount_minor)

        try:
            result = await self.gateway.initialize_transaction(payload)
        except (GatewayRejected, GatewayUnavailable) as e:
            logger.warning(
                "payment initiation failed",
                extra={"reference": ref, "reason": type(e).__name__},
            )
            raise PaymentInitiationFailed("Payment initiation failed") from e

        logger.info(
            "payment initiated",
            extra={"reference": ref, "amount": amount_minor, "currency": self.currency},
        )
        return InitiationResult(reference=ref, public_key=result.public_key)

    async def verify(self, reference: str) -> VerificationResult:
        """Ask the gateway whether the payment behind ``reference`` succeeded.

        Transport failures and gateway-side call errors are reported as a
        ``failed`` verification rather than raised; they are logged at
        warning level so they stay distinguishable from declined payments.

        Args:
            reference: Reference returned earlier by ``initiate``.

        Returns:
            VerificationResult: ``VERIFIED_SUCCESS`` or ``VERIFIED_FAILED``.

        Raises:
            InvalidRequest: If ``reference`` is empty or not one this service
                issues.
        """
        if _blank(reference):
            raise InvalidRequest("Reference is required")
        reference = reference.strip()
        if not references.is_reference(reference):
            raise InvalidRequest("Invalid reference")

        try:
            result = await self.gateway.verify_transaction(reference)
        except GatewayUnavailable:
            logger.warning("payment verification unavailable", extra={"reference": reference})
            return VerificationResult(reference, PaymentState.VERIFIED_FAILED, "Payment verification failed")

        if result.outcome is VerifyOutcome.SUCCESS:
            # no order record is written here, the log line is the only trace
            logger.info("payment verified", extra={"reference": reference})
            return VerificationResult(reference, PaymentState.VERIFIED_SUCCESS, "Payment verified successfully")

        if result.outcome is VerifyOutcome.ERROR:
            logger.warning(
                "payment verification error",
                extra={"reference": reference, "gateway_message": result.message},
            )
        else:
            logger.info(
                "payment not successful",
                extra={"reference": reference, "gateway_status": result.gateway_status},
            )
        return VerificationResult(reference, PaymentState.VERIFIED_FAILED, "Payment verification failed")
