"""Service provider helpers for wiring PaymentOrchestrator with its gateway.

``get_payment_orchestrator`` is used as a FastAPI dependency. It returns an
orchestrator wired to the Paystack HTTP client when
``settings.USE_HTTP_ADAPTERS`` is truthy, and to a process-wide
``GatewayStub`` otherwise (tests and local development without gateway
credentials).
"""

from .. import settings
from .adapters import GatewayStub
from .domain import PaymentOrchestrator
from .http_adapters import PaystackClient

_stub_gateway = GatewayStub()


def get_payment_orchestrator() -> PaymentOrchestrator:
    """Return a configured PaymentOrchestrator instance.

    Returns:
        PaymentOrchestrator: An orchestrator with the appropriate gateway.
    """
    if settings.USE_HTTP_ADAPTERS:
        gateway = PaystackClient()
    else:
        gateway = _stub_gateway
    return PaymentOrchestrator(gateway=gateway, currency=settings.PAYMENT_CURRENCY)
