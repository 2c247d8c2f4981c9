"""
Unit of Work Pattern - one database session and transaction per business operation

Architecture:
- UoW owns the session lifecycle
- UoW owns commit/rollback (leaving the block without commit rolls back)
- Repositories receive the shared session from the UoW
- Use cases coordinate repositories through the UoW so a settlement's status
  flip, ticket writes and wallet credits commit or roll back together
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.db_setting import get_async_session


if TYPE_CHECKING:
    from src.service.settlement.app.interface.i_event_query_repo import IEventQueryRepo
    from src.service.settlement.app.interface.i_ticket_inventory_command_repo import (
        ITicketInventoryCommandRepo,
    )
    from src.service.settlement.app.interface.i_ticket_query_repo import ITicketQueryRepo
    from src.service.settlement.app.interface.i_transaction_command_repo import (
        ITransactionCommandRepo,
    )
    from src.service.settlement.app.interface.i_user_query_repo import IUserQueryRepo
    from src.service.settlement.app.interface.i_wallet_command_repo import IWalletCommandRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for the Settlement Service

    Usage:
        async with uow:
            transaction = await uow.transaction_command_repo.lock_and_read(reference=...)
            await uow.wallet_command_repo.credit_wallet(user_id=..., amount=...)
            await uow.commit()
    """

    # Ledger
    transaction_command_repo: ITransactionCommandRepo
    wallet_command_repo: IWalletCommandRepo

    # Inventory
    ticket_inventory_command_repo: ITicketInventoryCommandRepo
    ticket_query_repo: ITicketQueryRepo

    # Read-only directories (read through the write session for a consistent view)
    event_query_repo: IEventQueryRepo
    user_query_repo: IUserQueryRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        """Commit the transaction"""
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    SQLAlchemy implementation of Unit of Work

    Usage in use case:
        async with uow:
            await uow.transaction_command_repo.create_pending(transaction=...)
            await uow.commit()
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        from src.service.settlement.driven_adapter.repo.event_query_repo_impl import (
            EventQueryRepoImpl,
        )
        from src.service.settlement.driven_adapter.repo.ticket_inventory_command_repo_impl import (
            TicketInventoryCommandRepoImpl,
        )
        from src.service.settlement.driven_adapter.repo.ticket_query_repo_impl import (
            TicketQueryRepoImpl,
        )
        from src.service.settlement.driven_adapter.repo.transaction_command_repo_impl import (
            TransactionCommandRepoImpl,
        )
        from src.service.settlement.driven_adapter.repo.user_query_repo_impl import (
            UserQueryRepoImpl,
        )
        from src.service.settlement.driven_adapter.repo.wallet_command_repo_impl import (
            WalletCommandRepoImpl,
        )

        # Create repositories with shared session
        self.transaction_command_repo = TransactionCommandRepoImpl(session=self.session)
        self.wallet_command_repo = WalletCommandRepoImpl(session=self.session)
        self.ticket_inventory_command_repo = TicketInventoryCommandRepoImpl(session=self.session)
        self.ticket_query_repo = TicketQueryRepoImpl(session_factory=None)
        self.ticket_query_repo.session = self.session  # Inject session for UoW mode
        self.event_query_repo = EventQueryRepoImpl(session_factory=None)
        self.event_query_repo.session = self.session
        self.user_query_repo = UserQueryRepoImpl(session_factory=None)
        self.user_query_repo.session = self.session

        return await super().__aenter__()

    async def __aexit__(self, *args):
        await super().__aexit__(*args)
        # Note: session cleanup handled by get_async_session context manager

    async def _commit(self):
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


def get_unit_of_work(
    session: AsyncSession = Depends(get_async_session),
) -> AbstractUnitOfWork:
    """
    FastAPI dependency for Unit of Work

    Usage:
        async def settle(uow: AbstractUnitOfWork = Depends(get_unit_of_work)):
            async with uow:
                ...
                await uow.commit()
    """
    return SqlAlchemyUnitOfWork(session)
