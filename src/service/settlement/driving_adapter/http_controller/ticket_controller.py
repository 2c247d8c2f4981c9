from typing import List, Optional

from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.command.initiate_resale_purchase_use_case import (
    InitiateResalePurchaseUseCase,
)
from src.service.settlement.app.command.initiate_ticket_purchase_use_case import (
    InitiateTicketPurchaseUseCase,
)
from src.service.settlement.app.command.list_tickets_for_resale_use_case import (
    ListTicketsForResaleUseCase,
)
from src.service.settlement.app.command.remove_ticket_from_resale_use_case import (
    RemoveTicketFromResaleUseCase,
)
from src.service.settlement.app.query.list_tickets_use_case import ListTicketsUseCase
from src.service.settlement.domain.entity.user_entity import User
from src.service.settlement.driving_adapter.http_controller.auth.role_auth import (
    get_current_user,
)
from src.service.settlement.driving_adapter.http_controller.schema.payment_schema import (
    CheckoutResponse,
)
from src.service.settlement.driving_adapter.http_controller.schema.ticket_schema import (
    BuyResaleRequest,
    BuyTicketRequest,
    ListResaleRequest,
    RemoveResaleRequest,
    TicketResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('/buy', status_code=status.HTTP_201_CREATED)
@Logger.io
async def buy_tickets(
    request: BuyTicketRequest,
    current_user: User = Depends(get_current_user),
    use_case: InitiateTicketPurchaseUseCase = Depends(InitiateTicketPurchaseUseCase.depends),
) -> CheckoutResponse:
    with tracer.start_as_current_span('controller.buy_tickets') as span:
        span.set_attribute('event_id', request.event_id)
        span.set_attribute('buyer_id', current_user.id)
        result = await use_case.initiate_ticket_purchase(
            buyer_id=current_user.id,
            event_id=request.event_id,
            ticket_category_id=request.ticket_category_id,
            quantity=request.quantity,
        )
        return CheckoutResponse(**result)


@router.post('/resale/buy', status_code=status.HTTP_201_CREATED)
@Logger.io
async def buy_resale_tickets(
    request: BuyResaleRequest,
    current_user: User = Depends(get_current_user),
    use_case: InitiateResalePurchaseUseCase = Depends(InitiateResalePurchaseUseCase.depends),
) -> CheckoutResponse:
    result = await use_case.initiate_resale_purchase(
        buyer_id=current_user.id, ticket_ids=request.ticket_ids
    )
    return CheckoutResponse(**result)


@router.post('/resale/list', response_model=List[TicketResponse])
@Logger.io
async def list_for_resale(
    request: ListResaleRequest,
    current_user: User = Depends(get_current_user),
    use_case: ListTicketsForResaleUseCase = Depends(ListTicketsForResaleUseCase.depends),
) -> List[TicketResponse]:
    tickets = await use_case.list_tickets_for_resale(
        seller_id=current_user.id,
        ticket_ids=request.ticket_ids,
        price=request.resale_price,
        account_number=request.account_number,
        bank_code=request.bank_code,
    )
    return [TicketResponse.from_entity(ticket) for ticket in tickets]


@router.post('/resale/remove', response_model=TicketResponse)
@Logger.io
async def remove_from_resale(
    request: RemoveResaleRequest,
    current_user: User = Depends(get_current_user),
    use_case: RemoveTicketFromResaleUseCase = Depends(RemoveTicketFromResaleUseCase.depends),
) -> TicketResponse:
    ticket = await use_case.remove_ticket_from_resale(
        seller_id=current_user.id, ticket_id=request.ticket_id
    )
    return TicketResponse.from_entity(ticket)


@router.get('/resale', response_model=List[TicketResponse])
@Logger.io
async def browse_resale(
    event_id: Optional[int] = None,
    use_case: ListTicketsUseCase = Depends(ListTicketsUseCase.depends),
) -> List[TicketResponse]:
    tickets = await use_case.list_resale_market(event_id=event_id)
    return [TicketResponse.from_entity(ticket) for ticket in tickets]


@router.get('/my', response_model=List[TicketResponse])
@Logger.io
async def list_my_tickets(
    current_user: User = Depends(get_current_user),
    use_case: ListTicketsUseCase = Depends(ListTicketsUseCase.depends),
) -> List[TicketResponse]:
    tickets = await use_case.list_my_tickets(user_id=current_user.id)
    return [TicketResponse.from_entity(ticket) for ticket in tickets]


@router.get('/my/resales', response_model=List[TicketResponse])
@Logger.io
async def list_my_resales(
    current_user: User = Depends(get_current_user),
    use_case: ListTicketsUseCase = Depends(ListTicketsUseCase.depends),
) -> List[TicketResponse]:
    tickets = await use_case.list_my_listings(user_id=current_user.id)
    return [TicketResponse.from_entity(ticket) for ticket in tickets]


@router.get('/bought-from-resale', response_model=List[TicketResponse])
@Logger.io
async def list_bought_from_resale(
    current_user: User = Depends(get_current_user),
    use_case: ListTicketsUseCase = Depends(ListTicketsUseCase.depends),
) -> List[TicketResponse]:
    tickets = await use_case.list_bought_from_resale(user_id=current_user.id)
    return [TicketResponse.from_entity(ticket) for ticket in tickets]
