from src.service.settlement.domain.value_object.fee_policy import FeePolicy
from src.service.settlement.domain.value_object.payout_destination import (
    Customer,
    PayoutDestination,
)
from src.service.settlement.domain.value_object.ticket_qr_payload import TicketQrPayload

__all__ = ['Customer', 'FeePolicy', 'PayoutDestination', 'TicketQrPayload']
