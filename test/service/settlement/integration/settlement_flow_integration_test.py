"""
End-to-end settlement on a real database

primary purchase -> webhook settlement -> resale listing -> resale purchase ->
resale settlement, with the payment gateway mocked at the port.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import anyio
import pytest
from sqlalchemy import update

from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.platform.exception.exceptions import (
    CapacityExceededError,
    ForbiddenError,
    GatewayError,
    InvariantViolationError,
)
from src.service.settlement.app.command.expire_stale_checkouts_use_case import (
    ExpireStaleCheckoutsUseCase,
)
from src.service.settlement.app.command.initiate_resale_purchase_use_case import (
    InitiateResalePurchaseUseCase,
)
from src.service.settlement.app.command.initiate_ticket_purchase_use_case import (
    InitiateTicketPurchaseUseCase,
)
from src.service.settlement.app.command.list_tickets_for_resale_use_case import (
    ListTicketsForResaleUseCase,
)
from src.service.settlement.app.command.verify_and_settle_use_case import (
    ALREADY_PROCESSED_RESPONSE,
    VerifyAndSettleUseCase,
)
from src.service.settlement.app.dto.gateway_result import VerifyResult
from src.service.settlement.app.service.payout_dispatcher import PayoutDispatcher
from src.service.settlement.domain.enum.transaction_status import TransactionStatus
from src.service.settlement.domain.enum.transaction_type import TransactionType
from src.service.settlement.driven_adapter.model import TicketCategoryModel, TransactionModel
from src.service.settlement.driven_adapter.repo.ticket_query_repo_impl import TicketQueryRepoImpl
from src.service.settlement.driven_adapter.repo.transaction_command_repo_impl import (
    TransactionCommandRepoImpl,
)
from src.service.settlement.driven_adapter.repo.transaction_query_repo_impl import (
    TransactionQueryRepoImpl,
)
from src.service.settlement.driven_adapter.repo.wallet_command_repo_impl import (
    WalletCommandRepoImpl,
)
from src.service.settlement.driving_adapter.scheduler.checkout_expiry_sweeper import (
    CheckoutExpirySweeper,
)
from test.service.settlement.fakes import (
    ADMIN,
    BUYER,
    CATEGORY_ID,
    EVENT_ID,
    ORGANIZER,
    RIVAL,
    SELLER,
    checkout,
    payout_accepted,
    verified,
)


pytestmark = pytest.mark.integration


class TestSettlementFlow:
    @pytest.fixture(autouse=True)
    def setup_gateway(self, session_maker):
        self.session_maker = session_maker
        self.gateway = AsyncMock()
        self.gateway.initiate.side_effect = lambda **kwargs: checkout(kwargs['reference'])
        self.gateway.verify.return_value = verified()
        self.gateway.payout.side_effect = lambda **kwargs: payout_accepted(kwargs['reference'])
        self.notification_dispatcher = AsyncMock()

    async def settle(self, reference: str) -> dict:
        async with self.session_maker() as session:
            use_case = VerifyAndSettleUseCase(
                uow=SqlAlchemyUnitOfWork(session),
                payment_gateway=self.gateway,
                payout_dispatcher=PayoutDispatcher(payment_gateway=self.gateway),
                notification_dispatcher=self.notification_dispatcher,
            )
            return await use_case.verify_and_settle(reference=reference)

    async def buy(self, *, buyer_id: int, quantity: int) -> str:
        async with self.session_maker() as session:
            use_case = InitiateTicketPurchaseUseCase(
                uow=SqlAlchemyUnitOfWork(session), payment_gateway=self.gateway
            )
            result = await use_case.initiate_ticket_purchase(
                buyer_id=buyer_id,
                event_id=EVENT_ID,
                ticket_category_id=CATEGORY_ID,
                quantity=quantity,
            )
        return result['reference']

    async def balance(self, user_id: int) -> int:
        async with self.session_maker() as session:
            wallet = await WalletCommandRepoImpl(session=session).get_wallet(user_id=user_id)
        return wallet.balance if wallet else 0

    async def minted(self) -> int:
        async with self.session_maker() as session:
            category = await session.get(TicketCategoryModel, CATEGORY_ID)
        return category.minted

    async def status(self, reference: str) -> TransactionStatus:
        async with self.session_maker() as session:
            transaction = await TransactionCommandRepoImpl(session=session).lock_and_read(
                reference=reference
            )
        return transaction.status

    async def expire(self, *, now: datetime) -> int:
        async with self.session_maker() as session:
            return await ExpireStaleCheckoutsUseCase(
                uow=SqlAlchemyUnitOfWork(session),
                payment_gateway=self.gateway,
                expiry=timedelta(minutes=30),
            ).expire_stale_checkouts(now=now)

    async def list_for_resale(self, *, seller_id: int, ticket_id: int, price: int) -> None:
        async with self.session_maker() as session:
            await ListTicketsForResaleUseCase(
                uow=SqlAlchemyUnitOfWork(session)
            ).list_tickets_for_resale(
                seller_id=seller_id,
                ticket_ids=[ticket_id],
                price=price,
                account_number='0123456789',
                bank_code='058',
            )

    async def buy_resale(self, *, buyer_id: int, ticket_id: int) -> str:
        async with self.session_maker() as session:
            resale = await InitiateResalePurchaseUseCase(
                uow=SqlAlchemyUnitOfWork(session), payment_gateway=self.gateway
            ).initiate_resale_purchase(buyer_id=buyer_id, ticket_ids=[ticket_id])
        return resale['reference']

    @pytest.mark.asyncio
    async def test_primary_then_resale_settlement(self):
        # Given a primary purchase of 2 x 2500 settled by webhook
        purchase_reference = await self.buy(buyer_id=BUYER.id, quantity=2)
        settled = await self.settle(purchase_reference)
        ticket_ids = settled['ticket_ids']

        # Then organizer and platform are credited 90/10
        assert len(ticket_ids) == 2
        assert await self.balance(ORGANIZER.id) == 4500
        assert await self.balance(ADMIN.id) == 500
        tickets = await TicketQueryRepoImpl(session_factory=self.session_maker).list_owned_by(
            user_id=BUYER.id
        )
        assert sorted(ticket.id for ticket in tickets) == sorted(ticket_ids)

        # When the webhook is delivered again
        replay = await self.settle(purchase_reference)

        # Then nothing moves twice
        assert replay == {'message': 'Already verified', 'success': True}
        assert await self.balance(ORGANIZER.id) == 4500

        # Given the buyer lists one ticket at 3000
        async with self.session_maker() as session:
            await ListTicketsForResaleUseCase(
                uow=SqlAlchemyUnitOfWork(session)
            ).list_tickets_for_resale(
                seller_id=BUYER.id,
                ticket_ids=[ticket_ids[0]],
                price=3000,
                account_number='0123456789',
                bank_code='058',
            )

        # When another user buys it and the resale settles
        async with self.session_maker() as session:
            resale = await InitiateResalePurchaseUseCase(
                uow=SqlAlchemyUnitOfWork(session), payment_gateway=self.gateway
            ).initiate_resale_purchase(buyer_id=SELLER.id, ticket_ids=[ticket_ids[0]])
        await self.settle(resale['reference'])

        # Then 5% platform fee, 2% royalty and the rest paid out to the original buyer
        assert await self.balance(ADMIN.id) == 500 + 150
        assert await self.balance(ORGANIZER.id) == 4500 + 60
        payout = self.gateway.payout.await_args.kwargs
        assert payout['amount'] == 2790
        assert payout['reference'] == f'resale_payout_{resale["reference"]}_{ticket_ids[0]}'
        (transferred,) = await TicketQueryRepoImpl(
            session_factory=self.session_maker
        ).list_bought_from_resale(user_id=SELLER.id)
        assert transferred.id == ticket_ids[0]
        assert transferred.user_id == SELLER.id
        assert transferred.resale_commission == 210

        # And the organizer sees both sales, the resale at royalty value
        views = await TransactionQueryRepoImpl(
            session_factory=self.session_maker
        ).list_for_organizer(organizer_id=ORGANIZER.id)
        amounts = {view.type: view.amount for view in views}
        assert amounts == {TransactionType.PURCHASE: 5000, TransactionType.RESALE: 60}

    @pytest.mark.asyncio
    async def test_capacity_is_reserved_at_checkout(self):
        # Given 2 of 3 tickets reserved by a pending checkout
        await self.buy(buyer_id=BUYER.id, quantity=2)

        # When / Then
        with pytest.raises(CapacityExceededError):
            await self.buy(buyer_id=SELLER.id, quantity=2)
        await self.buy(buyer_id=SELLER.id, quantity=1)

    @pytest.mark.asyncio
    async def test_failed_checkout_releases_capacity(self):
        # Given the gateway is down for the first checkout
        self.gateway.initiate.side_effect = GatewayError('Payment gateway unavailable')
        with pytest.raises(GatewayError):
            await self.buy(buyer_id=BUYER.id, quantity=3)

        # When it recovers
        self.gateway.initiate.side_effect = lambda **kwargs: checkout(kwargs['reference'])

        # Then the full capacity is available again
        assert await self.buy(buyer_id=SELLER.id, quantity=3)

    @pytest.mark.asyncio
    async def test_ticket_resold_to_two_buyers_settles_only_once(self):
        # Given one issued ticket listed at 3000
        (ticket_id,) = (await self.settle(await self.buy(buyer_id=BUYER.id, quantity=1)))[
            'ticket_ids'
        ]
        await self.list_for_resale(seller_id=BUYER.id, ticket_id=ticket_id, price=3000)

        # And two buyers open a checkout for it
        first = await self.buy_resale(buyer_id=SELLER.id, ticket_id=ticket_id)
        second = await self.buy_resale(buyer_id=RIVAL.id, ticket_id=ticket_id)

        # When both pay and the first webhook settles
        await self.settle(first)
        balances = (await self.balance(ADMIN.id), await self.balance(ORGANIZER.id))

        # Then the second settlement is refused and moves nothing
        with pytest.raises(ForbiddenError, match=f'Ticket {ticket_id} is no longer listed'):
            await self.settle(second)
        assert (await self.balance(ADMIN.id), await self.balance(ORGANIZER.id)) == balances
        assert self.gateway.payout.await_count == 1
        assert await self.status(second) == TransactionStatus.PENDING
        (ticket,) = await TicketQueryRepoImpl(
            session_factory=self.session_maker
        ).list_bought_from_resale(user_id=SELLER.id)
        assert ticket.id == ticket_id
        assert not await TicketQueryRepoImpl(
            session_factory=self.session_maker
        ).list_bought_from_resale(user_id=RIVAL.id)

    @pytest.mark.asyncio
    async def test_concurrent_webhooks_settle_once(self):
        # Given
        reference = await self.buy(buyer_id=BUYER.id, quantity=2)
        results = []

        async def deliver():
            results.append(await self.settle(reference))

        # When the gateway delivers the same webhook twice at once
        async with anyio.create_task_group() as tg:
            tg.start_soon(deliver)
            tg.start_soon(deliver)

        # Then exactly one delivery settles it
        assert sum('ticket_ids' in result for result in results) == 1
        assert sum(result == ALREADY_PROCESSED_RESPONSE for result in results) == 1
        assert await self.balance(ORGANIZER.id) == 4500
        assert await self.balance(ADMIN.id) == 500

    @pytest.mark.asyncio
    async def test_concurrent_checkouts_never_oversell(self):
        # Given 3 tickets and two buyers wanting 2 each
        outcomes = []

        async def attempt(buyer_id: int):
            try:
                outcomes.append(await self.buy(buyer_id=buyer_id, quantity=2))
            except CapacityExceededError as e:
                outcomes.append(e)

        # When both check out at once
        async with anyio.create_task_group() as tg:
            tg.start_soon(attempt, BUYER.id)
            tg.start_soon(attempt, SELLER.id)

        # Then one reservation wins and capacity holds
        assert sum(isinstance(outcome, str) for outcome in outcomes) == 1
        assert sum(isinstance(outcome, CapacityExceededError) for outcome in outcomes) == 1
        assert await self.minted() == 2

    @pytest.mark.asyncio
    async def test_unpaid_checkout_expires_and_releases_capacity(self):
        # Given a checkout holding the whole category that is never paid
        reference = await self.buy(buyer_id=BUYER.id, quantity=3)
        self.gateway.verify.return_value = VerifyResult(
            status=False, message='Transaction pending'
        )

        # When the sweep runs before the expiry nothing changes
        assert await self.expire(now=datetime.now(timezone.utc)) == 0
        assert await self.minted() == 3

        # And after it the purchase fails and its tickets are released
        assert await self.expire(now=datetime.now(timezone.utc) + timedelta(hours=2)) == 1
        assert await self.status(reference) == TransactionStatus.FAILED
        assert await self.minted() == 0
        assert not await TicketQueryRepoImpl(session_factory=self.session_maker).list_owned_by(
            user_id=BUYER.id
        )

        # Then the capacity can be sold again
        assert await self.buy(buyer_id=SELLER.id, quantity=3)

        # And a late webhook for the expired checkout is refused
        self.gateway.verify.return_value = verified()
        with pytest.raises(InvariantViolationError, match='has failed'):
            await self.settle(reference)
        assert await self.balance(ORGANIZER.id) == 0

    @pytest.mark.asyncio
    async def test_paid_checkout_survives_expiry(self):
        # Given a stale checkout the buyer did pay
        reference = await self.buy(buyer_id=BUYER.id, quantity=2)

        # When the sweep runs
        assert await self.expire(now=datetime.now(timezone.utc) + timedelta(hours=2)) == 0

        # Then the webhook still settles it
        assert len((await self.settle(reference))['ticket_ids']) == 2
        assert await self.minted() == 2

    @pytest.mark.asyncio
    async def test_sweeper_task_expires_backdated_checkout(self):
        # Given an unpaid checkout opened two hours ago
        reference = await self.buy(buyer_id=BUYER.id, quantity=2)
        async with self.session_maker() as session:
            await session.execute(
                update(TransactionModel)
                .where(TransactionModel.reference == reference)
                .values(created_at=datetime.now(timezone.utc) - timedelta(hours=2))
            )
            await session.commit()
        self.gateway.verify.return_value = VerifyResult(
            status=False, message='Transaction pending'
        )
        sweeper = CheckoutExpirySweeper(
            task_queue=MagicMock(),
            payment_gateway=self.gateway,
            session_maker=lambda: self.session_maker,
        )

        # When the queued sweep task runs
        await sweeper.sweep({})

        # Then
        assert await self.status(reference) == TransactionStatus.FAILED
        assert await self.minted() == 0
