from typing import List, Self

from fastapi import Depends

from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import DomainError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.settlement.domain.entity.ticket_entity import Ticket
from src.service.settlement.domain.value_object.payout_destination import PayoutDestination


class ListTicketsForResaleUseCase:
    """
    Put owned tickets on the resale market at one price

    The seller re-enters their payout account on every listing; it is stored on the
    ticket and cleared again when the ticket is transferred or unlisted.
    """

    def __init__(self, *, uow: AbstractUnitOfWork) -> None:
        self.uow = uow

    @classmethod
    def depends(cls, uow: AbstractUnitOfWork = Depends(get_unit_of_work)) -> Self:
        return cls(uow=uow)

    @Logger.io
    async def list_tickets_for_resale(
        self,
        *,
        seller_id: int,
        ticket_ids: List[int],
        price: int,
        account_number: str,
        bank_code: str,
    ) -> List[Ticket]:
        ticket_ids = sorted(set(ticket_ids))
        if not ticket_ids:
            raise DomainError('At least one ticket is required')
        if price <= 0:
            raise DomainError('Resale price must be positive')
        destination = PayoutDestination(account_number=account_number, bank_code=bank_code)

        async with self.uow:
            tickets = await self.uow.ticket_query_repo.get_by_ids(ticket_ids=ticket_ids)
            if len(tickets) != len(ticket_ids):
                raise NotFoundError('One or more tickets not found')

            for event_id in {ticket.event_id for ticket in tickets}:
                event = await self.uow.event_query_repo.get_event(event_id=event_id)
                if event is None:
                    raise NotFoundError('Event not found')
                if event.has_started:
                    raise DomainError(f'Event {event.name} has already taken place')

            listed = await self.uow.ticket_inventory_command_repo.list_for_resale(
                ticket_ids=ticket_ids,
                seller_id=seller_id,
                price=price,
                destination=destination,
            )
            await self.uow.commit()

        Logger.base.info(f'🏷️ [RESALE] User {seller_id} listed {ticket_ids} at {price}')
        return listed
