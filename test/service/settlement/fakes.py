"""
Fakes and builders shared by settlement tests

FakeUnitOfWork exposes every repository as an AsyncMock specced on its port, and
counts commits and rollbacks so tests can assert on the transaction boundary.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.service.settlement.app.dto.gateway_result import (
    InitiateResult,
    PayoutResult,
    VerifyResult,
)
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
from src.service.settlement.domain.entity.event_entity import Event
from src.service.settlement.domain.entity.ticket_category_entity import TicketCategory
from src.service.settlement.domain.entity.ticket_entity import Ticket
from src.service.settlement.domain.entity.transaction_entity import Transaction
from src.service.settlement.domain.entity.user_entity import User
from src.service.settlement.domain.enum.transaction_status import TransactionStatus
from src.service.settlement.domain.enum.transaction_type import TransactionType
from src.service.settlement.domain.enum.user_role import UserRole
from src.service.settlement.domain.value_object.fee_policy import FeePolicy


class FakeUnitOfWork(AbstractUnitOfWork):
    def __init__(self) -> None:
        self.transaction_command_repo = AsyncMock(spec=ITransactionCommandRepo)
        self.wallet_command_repo = AsyncMock(spec=IWalletCommandRepo)
        self.ticket_inventory_command_repo = AsyncMock(spec=ITicketInventoryCommandRepo)
        self.ticket_query_repo = AsyncMock(spec=ITicketQueryRepo)
        self.event_query_repo = AsyncMock(spec=IEventQueryRepo)
        self.user_query_repo = AsyncMock(spec=IUserQueryRepo)
        self.commits = 0
        self.rollbacks = 0

    async def _commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


# ==================== Builders ====================

ADMIN = User(id=1, email='admin@ticketer.local', name='Platform Admin', role=UserRole.ADMIN)
ORGANIZER = User(id=2, email='organizer@example.com', name='Olu Organizer', role=UserRole.ORGANIZER)
BUYER = User(id=3, email='buyer@example.com', name='Bola Buyer', role=UserRole.USER)
SELLER = User(id=4, email='seller@example.com', name='Sade Seller', role=UserRole.USER)
RIVAL = User(id=5, email='rival@example.com', name='Remi Rival', role=UserRole.USER)

USERS_BY_ID = {user.id: user for user in (ADMIN, ORGANIZER, BUYER, SELLER, RIVAL)}

EVENT_ID = 10
CATEGORY_ID = 20


def make_event(
    *,
    event_id: int = 10,
    primary_fee_bps: int = 1000,
    resale_fee_bps: int = 500,
    royalty_fee_bps: int = 200,
    is_active: bool = True,
    starts_at: Optional[datetime] = None,
) -> Event:
    return Event(
        id=event_id,
        organizer_id=ORGANIZER.id,
        name='Lagos Jazz Night',
        fee_policy=FeePolicy(
            primary_fee_bps=primary_fee_bps,
            resale_fee_bps=resale_fee_bps,
            royalty_fee_bps=royalty_fee_bps,
        ),
        is_active=is_active,
        starts_at=starts_at or datetime.now(timezone.utc) + timedelta(days=30),
    )


def make_category(
    *, category_id: int = 20, event_id: int = 10, price: int = 2500, max_tickets: int = 100,
    minted: int = 0,
) -> TicketCategory:
    return TicketCategory(
        id=category_id,
        event_id=event_id,
        name='Regular',
        price=price,
        max_tickets=max_tickets,
        minted=minted,
    )


def make_ticket(
    *,
    ticket_id: int,
    user_id: int = BUYER.id,
    event_id: int = 10,
    category_id: int = 20,
    is_issued: bool = True,
    is_listed: bool = False,
    resale_price: Optional[int] = None,
    resale_count: int = 0,
    bank_code: Optional[str] = None,
    account_number: Optional[str] = None,
) -> Ticket:
    return Ticket(
        id=ticket_id,
        event_id=event_id,
        ticket_category_id=category_id,
        user_id=user_id,
        code=f'TCK-{ticket_id:010d}',
        is_issued=is_issued,
        is_listed=is_listed,
        resale_price=resale_price,
        resale_count=resale_count,
        bank_code=bank_code,
        account_number=account_number,
        category_name='Regular',
    )


def make_transaction(
    *,
    transaction_type: TransactionType = TransactionType.PURCHASE,
    status: TransactionStatus = TransactionStatus.PENDING,
    amount: int = 5000,
    user_id: int = BUYER.id,
    event_id: Optional[int] = 10,
    transaction_id: int = 100,
    reference: str = 'txn_test_reference',
) -> Transaction:
    return Transaction(
        id=transaction_id,
        reference=reference,
        type=transaction_type,
        status=status,
        amount=amount,
        user_id=user_id,
        event_id=event_id,
    )


def verified() -> VerifyResult:
    return VerifyResult(status=True, message='Verification successful')


def checkout(reference: str) -> InitiateResult:
    return InitiateResult(checkout_url=f'https://checkout.test/{reference}', reference=reference)


def payout_accepted(reference: str) -> PayoutResult:
    return PayoutResult(status=True, message='Payout initiated', reference=reference)


async def lookup_user(*, user_id: int) -> Optional[User]:
    return USERS_BY_ID.get(user_id)


async def lookup_users(*, user_ids: list[int]) -> list[User]:
    return [USERS_BY_ID[user_id] for user_id in user_ids if user_id in USERS_BY_ID]


async def lookup_admin(*, email: str) -> Optional[User]:
    return ADMIN if email == ADMIN.email else None


def wire_user_directory(uow: FakeUnitOfWork) -> None:
    uow.user_query_repo.get_by_id.side_effect = lookup_user
    uow.user_query_repo.get_by_ids.side_effect = lookup_users
    uow.user_query_repo.get_by_email.side_effect = lookup_admin
