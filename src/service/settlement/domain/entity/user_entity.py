from typing import Optional

import attrs

from src.service.settlement.domain.enum.user_role import UserRole
from src.service.settlement.domain.value_object.payout_destination import Customer


@attrs.define
class User:
    id: int
    email: str
    name: str
    role: UserRole = UserRole.USER
    phone: Optional[str] = None

    @property
    def can_withdraw(self) -> bool:
        return self.role != UserRole.USER

    def as_customer(self) -> Customer:
        return Customer(email=self.email, name=self.name)
