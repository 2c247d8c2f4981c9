from datetime import datetime
from typing import Optional

import attrs

from src.platform.exception.exceptions import DomainError, ForbiddenError
from src.service.settlement.domain.value_object.payout_destination import PayoutDestination


MAX_RESALES_PER_TICKET = 1


@attrs.define
class Ticket:
    id: int
    event_id: int
    ticket_category_id: int
    user_id: int
    code: str
    is_issued: bool = True
    is_used: bool = False
    is_listed: bool = False
    resale_price: Optional[int] = None
    listed_at: Optional[datetime] = None
    resale_count: int = 0
    resale_commission: Optional[int] = None
    sold_to: Optional[int] = None
    bank_code: Optional[str] = None
    account_number: Optional[str] = attrs.field(default=None, repr=False)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category_name: Optional[str] = None

    @property
    def payout_destination(self) -> Optional[PayoutDestination]:
        if not self.bank_code or not self.account_number:
            return None
        return PayoutDestination(account_number=self.account_number, bank_code=self.bank_code)

    def validate_can_list(self, *, seller_id: int) -> None:
        if self.user_id != seller_id:
            raise ForbiddenError(f'Ticket {self.id} does not belong to you')
        if not self.is_issued:
            raise DomainError(f'Ticket {self.id} has not been paid for')
        if self.is_used:
            raise DomainError(f'Ticket {self.id} has already been used')
        if self.is_listed:
            raise DomainError(f'Ticket {self.id} is already listed for resale')
        if self.resale_count >= MAX_RESALES_PER_TICKET:
            raise DomainError(f'Ticket {self.id} has already been resold once')

    def validate_can_unlist(self, *, seller_id: int) -> None:
        if self.user_id != seller_id:
            raise ForbiddenError(f'Ticket {self.id} does not belong to you')
        if not self.is_listed:
            raise DomainError(f'Ticket {self.id} is not listed for resale')

    def validate_can_be_bought_by(self, *, buyer_id: int) -> None:
        if not self.is_listed or self.resale_price is None:
            raise DomainError(f'Ticket {self.id} is not available for resale')
        if self.user_id == buyer_id:
            raise DomainError('You cannot buy your own ticket')
