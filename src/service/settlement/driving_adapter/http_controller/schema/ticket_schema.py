from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from src.service.settlement.domain.entity.ticket_entity import Ticket


class BuyTicketRequest(BaseModel):
    event_id: int
    ticket_category_id: int
    quantity: int = Field(default=1, ge=1)

    model_config = {
        'json_schema_extra': {'example': {'event_id': 1, 'ticket_category_id': 2, 'quantity': 2}}
    }


class BuyResaleRequest(BaseModel):
    ticket_ids: List[int] = Field(min_length=1)


class ListResaleRequest(BaseModel):
    ticket_ids: List[int] = Field(min_length=1)
    resale_price: int = Field(ge=1)
    account_number: str = Field(pattern=r'^\d+$')
    bank_code: str = Field(pattern=r'^\d+$')

    model_config = {
        'json_schema_extra': {
            'example': {
                'ticket_ids': [10, 11],
                'resale_price': 2000,
                'account_number': '0123456789',
                'bank_code': '044',
            }
        }
    }


class RemoveResaleRequest(BaseModel):
    ticket_id: int


class TicketResponse(BaseModel):
    id: int
    event_id: int
    ticket_category_id: int
    category_name: Optional[str] = None
    user_id: int
    code: str
    is_used: bool
    is_listed: bool
    resale_price: Optional[int] = None
    listed_at: Optional[datetime] = None
    resale_count: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, ticket: Ticket) -> 'TicketResponse':
        # Payout details stay out of responses
        return cls(
            id=ticket.id,
            event_id=ticket.event_id,
            ticket_category_id=ticket.ticket_category_id,
            category_name=ticket.category_name,
            user_id=ticket.user_id,
            code=ticket.code,
            is_used=ticket.is_used,
            is_listed=ticket.is_listed,
            resale_price=ticket.resale_price,
            listed_at=ticket.listed_at,
            resale_count=ticket.resale_count,
            created_at=ticket.created_at,
        )
