from abc import ABC, abstractmethod
from typing import List

from src.service.settlement.app.dto.wallet_transaction_view import WalletTransactionView


class ITransactionQueryRepo(ABC):
    @abstractmethod
    async def list_for_organizer(self, *, organizer_id: int) -> List[WalletTransactionView]:
        """
        Ledger rows that moved money into or out of an organizer's wallet

        Successful PURCHASE and RESALE transactions of the organizer's events
        (resales show only the organizer's royalty) plus the organizer's own
        WITHDRAW transactions, newest first.
        """
        pass
