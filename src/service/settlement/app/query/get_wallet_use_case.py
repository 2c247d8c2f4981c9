from typing import Self

from fastapi import Depends

from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.logging.loguru_io import Logger


class GetWalletUseCase:
    """Wallets are created lazily on first credit; a missing wallet reads as empty"""

    def __init__(self, *, uow: AbstractUnitOfWork) -> None:
        self.uow = uow

    @classmethod
    def depends(cls, uow: AbstractUnitOfWork = Depends(get_unit_of_work)) -> Self:
        return cls(uow=uow)

    @Logger.io
    async def get_balance(self, *, user_id: int) -> int:
        async with self.uow:
            wallet = await self.uow.wallet_command_repo.get_wallet(user_id=user_id)
            return wallet.balance if wallet else 0

    @Logger.io
    async def has_pin(self, *, user_id: int) -> bool:
        async with self.uow:
            wallet = await self.uow.wallet_command_repo.get_wallet(user_id=user_id)
            return bool(wallet and wallet.has_pin)
