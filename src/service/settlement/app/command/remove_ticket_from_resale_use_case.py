from typing import Self

from fastapi import Depends

from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.logging.loguru_io import Logger
from src.service.settlement.domain.entity.ticket_entity import Ticket


class RemoveTicketFromResaleUseCase:
    def __init__(self, *, uow: AbstractUnitOfWork) -> None:
        self.uow = uow

    @classmethod
    def depends(cls, uow: AbstractUnitOfWork = Depends(get_unit_of_work)) -> Self:
        return cls(uow=uow)

    @Logger.io
    async def remove_ticket_from_resale(self, *, seller_id: int, ticket_id: int) -> Ticket:
        async with self.uow:
            ticket = await self.uow.ticket_inventory_command_repo.remove_from_resale(
                ticket_id=ticket_id, seller_id=seller_id
            )
            await self.uow.commit()
        return ticket
