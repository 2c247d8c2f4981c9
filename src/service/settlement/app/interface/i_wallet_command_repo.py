from abc import ABC, abstractmethod

from src.service.settlement.domain.entity.wallet_entity import Wallet


class IWalletCommandRepo(ABC):
    """Wallet balances only move through relative increments and guarded decrements"""

    @abstractmethod
    async def credit_wallet(self, *, user_id: int, amount: int) -> None:
        """Add amount to the user's wallet, creating the wallet on first credit"""
        pass

    @abstractmethod
    async def debit_wallet(self, *, user_id: int, amount: int) -> None:
        """
        Subtract amount when the balance covers it

        Raises:
            InsufficientFundsError: If no wallet row satisfies balance >= amount
        """
        pass

    @abstractmethod
    async def get_wallet(self, *, user_id: int) -> Wallet | None:
        pass

    @abstractmethod
    async def get_wallet_for_update(self, *, user_id: int) -> Wallet:
        """Lock the user's wallet row, creating an empty wallet if none exists"""
        pass

    @abstractmethod
    async def set_pin_hash(self, *, user_id: int, pin_hash: str) -> None:
        pass
