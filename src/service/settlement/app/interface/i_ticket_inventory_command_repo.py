"""
Ticket Inventory Command Repository Interface

Minting, resale listing and ownership transfer. Capacity and double-sale races
are settled by conditional updates inside the caller's unit of work.
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from src.service.settlement.domain.entity.ticket_entity import Ticket
from src.service.settlement.domain.value_object.payout_destination import PayoutDestination


class ITicketInventoryCommandRepo(ABC):
    @abstractmethod
    async def mint(
        self, *, category_id: int, count: int, owner_id: int, event_id: int
    ) -> List[Ticket]:
        """
        Reserve capacity and create count unissued tickets with unique codes

        Raises:
            CapacityExceededError: If minted + count would exceed max_tickets
        """
        pass

    @abstractmethod
    async def issue(self, *, ticket_ids: List[int]) -> List[Ticket]:
        """Mark minted tickets as paid for; they become visible to their owner"""
        pass

    @abstractmethod
    async def release_unissued(self, *, ticket_ids: List[int]) -> int:
        """Delete unissued tickets and give their capacity back; returns tickets released"""
        pass

    @abstractmethod
    async def transfer_ownership(
        self, *, ticket_ids: List[int], to_user_id: int, commission_by_ticket: Dict[int, int]
    ) -> List[Ticket]:
        """
        Hand listed tickets to the buyer and reissue their codes

        Raises:
            NotFoundError: If any ticket is missing
            ForbiddenError: If any ticket is no longer listed
        """
        pass

    @abstractmethod
    async def list_for_resale(
        self,
        *,
        ticket_ids: List[int],
        seller_id: int,
        price: int,
        destination: PayoutDestination,
    ) -> List[Ticket]:
        pass

    @abstractmethod
    async def remove_from_resale(self, *, ticket_id: int, seller_id: int) -> Ticket:
        pass
