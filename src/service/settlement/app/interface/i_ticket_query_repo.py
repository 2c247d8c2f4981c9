from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.settlement.domain.entity.ticket_entity import Ticket


class ITicketQueryRepo(ABC):
    @abstractmethod
    async def get_by_ids(self, *, ticket_ids: List[int]) -> List[Ticket]:
        pass

    @abstractmethod
    async def list_owned_by(self, *, user_id: int) -> List[Ticket]:
        pass

    @abstractmethod
    async def list_listed(self, *, event_id: Optional[int] = None) -> List[Ticket]:
        pass

    @abstractmethod
    async def list_listed_by(self, *, seller_id: int) -> List[Ticket]:
        pass

    @abstractmethod
    async def list_bought_from_resale(self, *, user_id: int) -> List[Ticket]:
        pass
