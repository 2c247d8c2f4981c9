from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.dto.wallet_transaction_view import WalletTransactionView
from src.service.settlement.app.interface.i_transaction_query_repo import ITransactionQueryRepo
from src.service.settlement.app.interface.i_user_query_repo import IUserQueryRepo
from src.service.settlement.domain.enum.user_role import UserRole


class ListWalletTransactionsUseCase:
    def __init__(
        self, *, transaction_query_repo: ITransactionQueryRepo, user_query_repo: IUserQueryRepo
    ) -> None:
        self.transaction_query_repo = transaction_query_repo
        self.user_query_repo = user_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        transaction_query_repo: ITransactionQueryRepo = Depends(
            Provide[Container.transaction_query_repo]
        ),
        user_query_repo: IUserQueryRepo = Depends(Provide[Container.user_query_repo]),
    ) -> Self:
        return cls(transaction_query_repo=transaction_query_repo, user_query_repo=user_query_repo)

    @Logger.io
    async def list_organizer_transactions(self, *, user_id: int) -> List[WalletTransactionView]:
        user = await self.user_query_repo.get_by_id(user_id=user_id)
        if user is None:
            raise NotFoundError('User not found')
        if user.role != UserRole.ORGANIZER:
            raise ForbiddenError('User is not an organizer')
        return await self.transaction_query_repo.list_for_organizer(organizer_id=user_id)
