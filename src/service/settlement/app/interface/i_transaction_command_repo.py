"""
Transaction Command Repository Interface (Ledger Store)

Every state change of a transaction row goes through this port. Status flips are
conditional updates, so only one caller ever observes a successful flip.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from src.service.settlement.domain.entity.transaction_entity import Transaction
from src.service.settlement.domain.enum.transaction_type import TransactionType


class ITransactionCommandRepo(ABC):
    @abstractmethod
    async def create_pending(self, *, transaction: Transaction) -> Transaction:
        """
        Persist a new PENDING transaction

        Raises:
            ConflictError: If the reference already exists
        """
        pass

    @abstractmethod
    async def lock_and_read(self, *, reference: str) -> Transaction | None:
        """Read the row holding a write lock until the unit of work ends"""
        pass

    @abstractmethod
    async def mark_success_if_pending(self, *, reference: str) -> bool:
        """
        Flip PENDING -> SUCCESS

        Returns:
            True only for the caller whose update changed the row
        """
        pass

    @abstractmethod
    async def mark_failed_if_pending(self, *, reference: str) -> bool:
        pass

    @abstractmethod
    async def list_stale_pending(
        self, *, transaction_type: TransactionType, created_before: datetime, limit: int
    ) -> List[Transaction]:
        """PENDING rows of one type created before the cutoff, oldest first"""
        pass

    @abstractmethod
    async def link_tickets(self, *, transaction_id: int, ticket_ids: List[int]) -> None:
        pass

    @abstractmethod
    async def get_linked_ticket_ids(self, *, transaction_id: int) -> List[int]:
        pass

    @abstractmethod
    async def delete_pending(self, *, reference: str) -> bool:
        """Compensating delete after a failed initiation; never touches settled rows"""
        pass
