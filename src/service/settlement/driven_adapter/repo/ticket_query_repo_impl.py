from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, List, Optional

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_ticket_query_repo import ITicketQueryRepo
from src.service.settlement.domain.entity.ticket_entity import Ticket
from src.service.settlement.driven_adapter.model.ticket_category_model import (
    TicketCategoryModel,
)
from src.service.settlement.driven_adapter.model.ticket_model import TicketModel


def ticket_model_to_entity(db_ticket: TicketModel, category_name: Optional[str] = None) -> Ticket:
    return Ticket(
        id=db_ticket.id,
        event_id=db_ticket.event_id,
        ticket_category_id=db_ticket.ticket_category_id,
        user_id=db_ticket.user_id,
        code=db_ticket.code,
        is_issued=db_ticket.is_issued,
        is_used=db_ticket.is_used,
        is_listed=db_ticket.is_listed,
        resale_price=db_ticket.resale_price,
        listed_at=db_ticket.listed_at,
        resale_count=db_ticket.resale_count,
        resale_commission=db_ticket.resale_commission,
        sold_to=db_ticket.sold_to,
        bank_code=db_ticket.bank_code,
        account_number=db_ticket.account_number,
        created_at=db_ticket.created_at,
        updated_at=db_ticket.updated_at,
        category_name=category_name,
    )


class TicketQueryRepoImpl(ITicketQueryRepo):
    def __init__(
        self, session_factory: Callable[..., AsyncContextManager[AsyncSession]] | None = None
    ):
        self.session_factory = session_factory
        self.session: AsyncSession | None = None

    @asynccontextmanager
    async def _get_session(self) -> AsyncIterator[AsyncSession]:
        """
        Get session for query execution.

        If session is injected (from UoW), yield it directly without context management.
        Otherwise, use session_factory context manager.
        """
        if self.session is not None:
            yield self.session
        elif self.session_factory is not None:
            async with self.session_factory() as session:
                yield session
        else:
            raise RuntimeError('No session or session_factory available')

    @staticmethod
    def _base_query() -> Select:
        return (
            select(TicketModel, TicketCategoryModel.name)
            .join(TicketCategoryModel, TicketCategoryModel.id == TicketModel.ticket_category_id)
            .execution_options(populate_existing=True)
        )

    async def _fetch(self, query: Select) -> List[Ticket]:
        async with self._get_session() as session:
            result = await session.execute(query)
            return [
                ticket_model_to_entity(db_ticket, category_name)
                for db_ticket, category_name in result.all()
            ]

    @Logger.io
    async def get_by_ids(self, *, ticket_ids: List[int]) -> List[Ticket]:
        if not ticket_ids:
            return []
        return await self._fetch(
            self._base_query().where(TicketModel.id.in_(ticket_ids)).order_by(TicketModel.id)
        )

    @Logger.io
    async def list_owned_by(self, *, user_id: int) -> List[Ticket]:
        return await self._fetch(
            self._base_query()
            .where(TicketModel.user_id == user_id, TicketModel.is_issued.is_(True))
            .order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
        )

    @Logger.io
    async def list_listed(self, *, event_id: Optional[int] = None) -> List[Ticket]:
        query = self._base_query().where(TicketModel.is_listed.is_(True))
        if event_id is not None:
            query = query.where(TicketModel.event_id == event_id)
        return await self._fetch(query.order_by(TicketModel.listed_at.desc(), TicketModel.id))

    @Logger.io
    async def list_listed_by(self, *, seller_id: int) -> List[Ticket]:
        return await self._fetch(
            self._base_query()
            .where(TicketModel.user_id == seller_id, TicketModel.is_listed.is_(True))
            .order_by(TicketModel.listed_at.desc(), TicketModel.id)
        )

    @Logger.io
    async def list_bought_from_resale(self, *, user_id: int) -> List[Ticket]:
        return await self._fetch(
            self._base_query()
            .where(TicketModel.sold_to == user_id)
            .order_by(TicketModel.updated_at.desc(), TicketModel.id)
        )
