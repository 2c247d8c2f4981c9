from typing import Optional

import attrs

from src.service.settlement.domain.entity.event_entity import Event
from src.service.settlement.domain.entity.ticket_entity import Ticket
from src.service.settlement.domain.entity.transaction_entity import Transaction
from src.service.settlement.domain.entity.user_entity import User
from src.service.settlement.domain.value_object.ticket_qr_payload import TicketQrPayload


@attrs.frozen
class SellerPayout:
    seller: User
    ticket_id: int
    amount: int
    reference: str


@attrs.frozen
class SettlementNotice:
    """Everything the notification layer needs once a settlement has committed"""

    transaction: Transaction
    buyer: User
    admin: User
    event: Optional[Event] = None
    organizer: Optional[User] = None
    tickets: list[Ticket] = attrs.field(factory=list)
    qr_payloads: list[TicketQrPayload] = attrs.field(factory=list)
    platform_cut: int = 0
    organizer_amount: int = 0
    seller_payouts: list[SellerPayout] = attrs.field(factory=list)
