from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_ticket_query_repo import ITicketQueryRepo
from src.service.settlement.domain.entity.ticket_entity import Ticket


class ListTicketsUseCase:
    def __init__(self, *, ticket_query_repo: ITicketQueryRepo) -> None:
        self.ticket_query_repo = ticket_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        ticket_query_repo: ITicketQueryRepo = Depends(Provide[Container.ticket_query_repo]),
    ) -> Self:
        return cls(ticket_query_repo=ticket_query_repo)

    @Logger.io
    async def list_my_tickets(self, *, user_id: int) -> List[Ticket]:
        return await self.ticket_query_repo.list_owned_by(user_id=user_id)

    @Logger.io
    async def list_resale_market(self, *, event_id: Optional[int] = None) -> List[Ticket]:
        return await self.ticket_query_repo.list_listed(event_id=event_id)

    @Logger.io
    async def list_my_listings(self, *, user_id: int) -> List[Ticket]:
        return await self.ticket_query_repo.list_listed_by(seller_id=user_id)

    @Logger.io
    async def list_bought_from_resale(self, *, user_id: int) -> List[Ticket]:
        return await self.ticket_query_repo.list_bought_from_resale(user_id=user_id)
