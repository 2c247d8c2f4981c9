from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.settlement.domain.entity.event_entity import Event
from src.service.settlement.domain.entity.ticket_category_entity import TicketCategory
from src.service.settlement.domain.value_object.fee_policy import FeePolicy
from src.service.settlement.driven_adapter.model.event_model import EventModel
from src.service.settlement.driven_adapter.model.ticket_category_model import (
    TicketCategoryModel,
)


class EventQueryRepoImpl(IEventQueryRepo):
    def __init__(
        self, session_factory: Callable[..., AsyncContextManager[AsyncSession]] | None = None
    ):
        self.session_factory = session_factory
        self.session: AsyncSession | None = None

    @asynccontextmanager
    async def _get_session(self) -> AsyncIterator[AsyncSession]:
        if self.session is not None:
            yield self.session
        elif self.session_factory is not None:
            async with self.session_factory() as session:
                yield session
        else:
            raise RuntimeError('No session or session_factory available')

    @Logger.io
    async def get_event(self, *, event_id: int) -> Event | None:
        async with self._get_session() as session:
            result = await session.execute(select(EventModel).where(EventModel.id == event_id))
            db_event = result.scalar_one_or_none()
            if not db_event:
                return None

            return Event(
                id=db_event.id,
                organizer_id=db_event.organizer_id,
                name=db_event.name,
                is_active=db_event.is_active,
                starts_at=db_event.starts_at,
                fee_policy=FeePolicy(
                    primary_fee_bps=db_event.primary_fee_bps,
                    resale_fee_bps=db_event.resale_fee_bps,
                    royalty_fee_bps=db_event.royalty_fee_bps,
                ),
            )

    @Logger.io
    async def get_category(self, *, category_id: int) -> TicketCategory | None:
        async with self._get_session() as session:
            result = await session.execute(
                select(TicketCategoryModel)
                .where(TicketCategoryModel.id == category_id)
                .execution_options(populate_existing=True)
            )
            db_category = result.scalar_one_or_none()
            if not db_category:
                return None

            return TicketCategory(
                id=db_category.id,
                event_id=db_category.event_id,
                name=db_category.name,
                description=db_category.description,
                price=db_category.price,
                max_tickets=db_category.max_tickets,
                minted=db_category.minted,
            )
