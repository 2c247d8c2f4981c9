"""
Initiate Resale Purchase Use Case

Links listed tickets to a PENDING RESALE transaction priced at the sum of their
listing prices. Ownership only moves at settlement, and only for tickets still listed.
"""

from typing import Any, List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import DomainError, GatewayError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_payment_gateway import IPaymentGateway
from src.service.settlement.domain.entity.transaction_entity import Transaction


class InitiateResalePurchaseUseCase:
    def __init__(self, *, uow: AbstractUnitOfWork, payment_gateway: IPaymentGateway) -> None:
        self.uow = uow
        self.payment_gateway = payment_gateway
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow: AbstractUnitOfWork = Depends(get_unit_of_work),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
    ) -> Self:
        return cls(uow=uow, payment_gateway=payment_gateway)

    @Logger.io
    async def initiate_resale_purchase(
        self, *, buyer_id: int, ticket_ids: List[int]
    ) -> dict[str, Any]:
        ticket_ids = sorted(set(ticket_ids))
        if not ticket_ids:
            raise DomainError('At least one ticket is required')

        with self.tracer.start_as_current_span(
            'use_case.initiate_resale_purchase', attributes={'ticket.count': len(ticket_ids)}
        ):
            async with self.uow:
                buyer = await self.uow.user_query_repo.get_by_id(user_id=buyer_id)
                if buyer is None:
                    raise NotFoundError('User not found')

                tickets = await self.uow.ticket_query_repo.get_by_ids(ticket_ids=ticket_ids)
                if len(tickets) != len(ticket_ids):
                    raise NotFoundError('One or more tickets not found')
                for ticket in tickets:
                    ticket.validate_can_be_bought_by(buyer_id=buyer_id)

                event_ids = {ticket.event_id for ticket in tickets}
                if len(event_ids) != 1:
                    raise DomainError('All tickets must belong to the same event')
                event = await self.uow.event_query_repo.get_event(event_id=event_ids.pop())
                if event is None:
                    raise NotFoundError('Event not found')
                event.validate_open_for_sales()

                transaction = await self.uow.transaction_command_repo.create_pending(
                    transaction=Transaction.create_resale(
                        user_id=buyer_id,
                        event_id=event.id,
                        amount=sum(ticket.resale_price or 0 for ticket in tickets),
                    )
                )
                await self.uow.transaction_command_repo.link_tickets(
                    transaction_id=transaction.id,  # type: ignore[arg-type]
                    ticket_ids=ticket_ids,
                )
                await self.uow.commit()

            try:
                checkout = await self.payment_gateway.initiate(
                    reference=transaction.reference,
                    amount=transaction.amount,
                    customer=buyer.as_customer(),
                    narration=f'Resale of {len(ticket_ids)} tickets for {event.name}',
                    metadata={'user_id': buyer_id, 'event_id': event.id, 'ticket_ids': ticket_ids},
                )
            except GatewayError:
                async with self.uow:
                    await self.uow.transaction_command_repo.delete_pending(
                        reference=transaction.reference
                    )
                    await self.uow.commit()
                raise

            Logger.base.info(f'🛒 [RESALE] {transaction.reference} initiated for {ticket_ids}')
            return {'checkout_url': checkout.checkout_url, 'reference': transaction.reference}
