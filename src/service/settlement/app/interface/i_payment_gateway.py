from typing import Any, Protocol

from src.service.settlement.app.dto.gateway_result import InitiateResult, PayoutResult, VerifyResult
from src.service.settlement.domain.value_object.payout_destination import (
    Customer,
    PayoutDestination,
)


class IPaymentGateway(Protocol):
    """
    Outbound port to the payment gateway

    Every method raises GatewayError on timeouts, non-2xx responses and
    malformed bodies. A rejected verification is a VerifyResult, not an error.
    """

    async def initiate(
        self,
        *,
        reference: str,
        amount: int,
        customer: Customer,
        narration: str,
        metadata: dict[str, Any],
    ) -> InitiateResult: ...

    async def verify(self, *, reference: str) -> VerifyResult: ...

    async def payout(
        self,
        *,
        reference: str,
        amount: int,
        customer: Customer,
        destination: PayoutDestination,
        narration: str,
        metadata: dict[str, Any],
    ) -> PayoutResult: ...
