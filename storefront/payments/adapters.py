"""In-process stub adapter for the payment gateway port.

The stub implements ``GatewayPort`` without any network calls. It is
intended for unit tests and local development where deterministic behavior
is useful and the real gateway is not reachable.
"""

from collections import OrderedDict
from typing import Dict, List

from .domain import (
    GatewayInitResult,
    GatewayPayload,
    GatewayPort,
    GatewayVerifyResult,
    VerifyOutcome,
)


class GatewayStub(GatewayPort):
    """Stub implementation of ``GatewayPort``.

    Every initialization succeeds and is recorded in ``initialized``.
    Verification reports SUCCESS for references this stub initialized and
    FAILED for anything else, unless ``statuses`` maps the reference to a
    specific gateway transaction status. Only the last ``max_entries``
    initializations are remembered.
    """

    def __init__(self, public_key: str = "pk_test_stub", max_entries: int = 1000):
        self.public_key = public_key
        self.max_entries = max_entries
        self._payloads: "OrderedDict[str, GatewayPayload]" = OrderedDict()
        self.statuses: Dict[str, str] = {}

    @property
    def initialized(self) -> List[GatewayPayload]:
        return list(self._payloads.values())

    async def initialize_transaction(self, payload: GatewayPayload) -> GatewayInitResult:
        self._payloads[payload.reference] = payload
        while len(self._payloads) > self.max_entries:
            self._payloads.popitem(last=False)
        return GatewayInitResult(
            reference=payload.reference,
            public_key=self.public_key,
            access_code=f"stub_{payload.reference}",
        )

    async def verify_transaction(self, reference: str) -> GatewayVerifyResult:
        known = reference in self._payloads
        status = self.statuses.get(reference, "success" if known else "abandoned")
        outcome = VerifyOutcome.SUCCESS if status == "success" else VerifyOutcome.FAILED
        return GatewayVerifyResult(reference, outcome, status, "Verification successful")
