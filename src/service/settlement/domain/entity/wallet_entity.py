from datetime import datetime
from typing import Optional

import attrs

from src.platform.exception.exceptions import InsufficientFundsError


@attrs.define
class Wallet:
    user_id: int
    balance: int = 0
    pin_hash: Optional[str] = attrs.field(default=None, repr=False)
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_pin(self) -> bool:
        return bool(self.pin_hash)

    def validate_can_withdraw(self, amount: int) -> None:
        if amount > self.balance:
            raise InsufficientFundsError('Insufficient wallet balance')
