from typing import Protocol

from src.service.settlement.app.dto.settlement_notice import SettlementNotice
from src.service.settlement.domain.entity.user_entity import User


class INotificationDispatcher(Protocol):
    """
    Queues role-specific messages after a commit

    Implementations must not raise for delivery problems; callers treat
    notifications as best effort.
    """

    async def notify_settlement(self, *, notice: SettlementNotice) -> None: ...

    async def notify_withdrawal(self, *, user: User, amount: int, reference: str) -> None: ...
