"""HTTP views for payments.

Views are kept intentionally small: FastAPI validates the body against the
Pydantic schema, the view maps it to the domain DTO, delegates to the
``PaymentOrchestrator`` obtained from ``get_payment_orchestrator`` and shapes
the response. Domain errors are turned into JSON error bodies by the
exception handlers registered in ``storefront.main``.

A declined or abandoned payment is a normal business outcome: ``verify``
answers HTTP 200 with ``status: "failed"``.
"""

from fastapi import APIRouter, Depends

from .domain import PaymentOrchestrator
from .providers import get_payment_orchestrator
from .schemas import CheckoutIn, InitiateOut, VerifyIn, VerifyOut

router = APIRouter(prefix="/api/payment", tags=["payments"])


@router.post("/initiate", response_model=InitiateOut)
async def initiate_payment(
    body: CheckoutIn,
    orchestrator: PaymentOrchestrator = Depends(get_payment_orchestrator),
):
    """Open a gateway transaction for a checkout.

    Returns:
        InitiateOut: ``{reference, publicKey}`` for the client payment widget.
    """
    result = await orchestrator.initiate(body.to_domain())
    return InitiateOut(reference=result.reference, public_key=result.public_key)


@router.post("/verify", response_model=VerifyOut)
async def verify_payment(
    body: VerifyIn,
    orchestrator: PaymentOrchestrator = Depends(get_payment_orchestrator),
):
    """Check with the gateway whether a payment succeeded."""
    result = await orchestrator.verify(body.reference)
    return VerifyOut(status=result.status, message=result.message)
