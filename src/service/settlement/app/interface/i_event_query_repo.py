from abc import ABC, abstractmethod

from src.service.settlement.domain.entity.event_entity import Event
from src.service.settlement.domain.entity.ticket_category_entity import TicketCategory


class IEventQueryRepo(ABC):
    """Read-only view of the event catalog"""

    @abstractmethod
    async def get_event(self, *, event_id: int) -> Event | None:
        pass

    @abstractmethod
    async def get_category(self, *, category_id: int) -> TicketCategory | None:
        pass
