"""
Payout Dispatcher

Single outbound path for money leaving the platform: resale seller payouts
(triggered by settlement) and wallet withdrawals (triggered by the user).
"""

from typing import Any, Optional

from src.platform.exception.exceptions import GatewayError, InvariantViolationError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.settlement_metrics import metrics
from src.service.settlement.app.dto.gateway_result import PayoutResult
from src.service.settlement.app.interface.i_payment_gateway import IPaymentGateway
from src.service.settlement.domain.value_object.payout_destination import (
    Customer,
    PayoutDestination,
)


def resale_payout_reference(*, transaction_reference: str, ticket_id: int) -> str:
    """Stable per ticket, so a re-driven settlement re-sends the same payout reference"""
    return f'resale_payout_{transaction_reference}_{ticket_id}'


class PayoutDispatcher:
    def __init__(self, *, payment_gateway: IPaymentGateway) -> None:
        self.payment_gateway = payment_gateway

    @Logger.io
    async def initiate_withdrawal(
        self,
        *,
        customer: Customer,
        amount: int,
        destination: PayoutDestination,
        reference: str,
        narration: str,
        metadata: Optional[dict[str, Any]] = None,
        kind: str = 'withdrawal',
    ) -> PayoutResult:
        if amount <= 0:
            raise InvariantViolationError('Payout amount must be positive')

        try:
            result = await self.payment_gateway.payout(
                reference=reference,
                amount=amount,
                customer=customer,
                destination=destination,
                narration=narration,
                metadata=metadata or {},
            )
        except GatewayError:
            metrics.record_payout(kind=kind, result='failed')
            raise

        metrics.record_payout(kind=kind, result='accepted')
        Logger.base.info(f'💸 [PAYOUT] {kind} {reference} accepted for {amount}')
        return result
