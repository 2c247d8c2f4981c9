from datetime import datetime
from typing import Optional

import attrs

from src.service.settlement.domain.enum.transaction_status import TransactionStatus
from src.service.settlement.domain.enum.transaction_type import TransactionType


@attrs.frozen
class WalletTransactionView:
    """A ledger row as seen from an organizer's wallet"""

    id: int
    reference: str
    type: TransactionType
    status: TransactionStatus
    amount: int  # organizer's share for RESALE rows
    event_id: Optional[int] = None
    event_name: Optional[str] = None
    buyer_id: Optional[int] = None
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    ticket_codes: list[str] = attrs.field(factory=list)
    created_at: Optional[datetime] = None
