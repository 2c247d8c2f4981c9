"""
Initiate Ticket Purchase Use Case

Reserves capacity up front: tickets are minted unissued and linked to a PENDING
PURCHASE transaction before the buyer is sent to checkout. Settlement issues them;
a failed initiation hands the capacity back, as does
ExpireStaleCheckoutsUseCase for checkouts never paid.
"""

from typing import Any, List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import DomainError, GatewayError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_payment_gateway import IPaymentGateway
from src.service.settlement.domain.entity.transaction_entity import Transaction


class InitiateTicketPurchaseUseCase:
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
    async def initiate_ticket_purchase(
        self, *, buyer_id: int, event_id: int, ticket_category_id: int, quantity: int
    ) -> dict[str, Any]:
        if not 1 <= quantity <= settings.MAX_TICKETS_PER_PURCHASE:
            raise DomainError(
                f'Quantity must be between 1 and {settings.MAX_TICKETS_PER_PURCHASE}'
            )

        with self.tracer.start_as_current_span(
            'use_case.initiate_ticket_purchase',
            attributes={
                'event.id': event_id,
                'ticket_category.id': ticket_category_id,
                'quantity': quantity,
            },
        ):
            async with self.uow:
                buyer = await self.uow.user_query_repo.get_by_id(user_id=buyer_id)
                if buyer is None:
                    raise NotFoundError('User not found')

                event = await self.uow.event_query_repo.get_event(event_id=event_id)
                if event is None:
                    raise NotFoundError('Event not found')
                event.validate_open_for_sales()

                category = await self.uow.event_query_repo.get_category(
                    category_id=ticket_category_id
                )
                if category is None or category.event_id != event_id:
                    raise NotFoundError('Ticket category not found for this event')
                category.validate_can_mint(quantity)

                transaction = await self.uow.transaction_command_repo.create_pending(
                    transaction=Transaction.create_purchase(
                        user_id=buyer_id,
                        event_id=event_id,
                        ticket_category_id=ticket_category_id,
                        quantity=quantity,
                        amount=category.price * quantity,
                    )
                )
                tickets = await self.uow.ticket_inventory_command_repo.mint(
                    category_id=ticket_category_id,
                    count=quantity,
                    owner_id=buyer_id,
                    event_id=event_id,
                )
                ticket_ids = [ticket.id for ticket in tickets]
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
                    narration=f'{quantity} x {category.name} for {event.name}',
                    metadata={
                        'user_id': buyer_id,
                        'event_id': event_id,
                        'ticket_category_id': ticket_category_id,
                        'quantity': quantity,
                    },
                )
            except GatewayError:
                await self._release(reference=transaction.reference, ticket_ids=ticket_ids)
                raise

            Logger.base.info(
                f'🛒 [PURCHASE] {transaction.reference} initiated for {quantity} tickets'
            )
            return {'checkout_url': checkout.checkout_url, 'reference': transaction.reference}

    async def _release(self, *, reference: str, ticket_ids: List[int]) -> None:
        async with self.uow:
            await self.uow.transaction_command_repo.delete_pending(reference=reference)
            await self.uow.ticket_inventory_command_repo.release_unissued(ticket_ids=ticket_ids)
            await self.uow.commit()
        Logger.base.warning(f'↩️ [PURCHASE] {reference} rolled back after gateway failure')
