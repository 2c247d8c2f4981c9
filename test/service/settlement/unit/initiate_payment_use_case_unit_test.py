"""
Unit tests for the checkout initiation use cases

A PENDING transaction is committed before the gateway is called, and a gateway
failure is compensated by deleting it (and releasing minted capacity).
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import attrs
import pytest

from src.platform.exception.exceptions import (
    CapacityExceededError,
    DomainError,
    GatewayError,
    NotFoundError,
)
from src.service.settlement.app.command.initiate_resale_purchase_use_case import (
    InitiateResalePurchaseUseCase,
)
from src.service.settlement.app.command.initiate_ticket_purchase_use_case import (
    InitiateTicketPurchaseUseCase,
)
from src.service.settlement.app.command.initiate_wallet_funding_use_case import (
    InitiateWalletFundingUseCase,
)
from src.service.settlement.domain.entity.transaction_entity import Transaction
from src.service.settlement.domain.enum.transaction_type import TransactionType
from test.service.settlement.fakes import (
    BUYER,
    SELLER,
    FakeUnitOfWork,
    checkout,
    make_category,
    make_event,
    make_ticket,
    wire_user_directory,
)


pytestmark = pytest.mark.unit


def persist(*, transaction: Transaction) -> Transaction:
    return attrs.evolve(transaction, id=100)


@pytest.fixture
def uow() -> FakeUnitOfWork:
    uow = FakeUnitOfWork()
    wire_user_directory(uow)
    uow.transaction_command_repo.create_pending.side_effect = persist
    uow.event_query_repo.get_event.return_value = make_event()
    uow.event_query_repo.get_category.return_value = make_category(price=2500)
    uow.ticket_inventory_command_repo.mint.return_value = [
        make_ticket(ticket_id=1, is_issued=False),
        make_ticket(ticket_id=2, is_issued=False),
    ]
    return uow


@pytest.fixture
def payment_gateway() -> AsyncMock:
    gateway = AsyncMock()
    gateway.initiate.side_effect = lambda **kwargs: checkout(kwargs['reference'])
    return gateway


def created_transaction(uow: FakeUnitOfWork) -> Transaction:
    return uow.transaction_command_repo.create_pending.await_args.kwargs['transaction']


class TestInitiateTicketPurchase:
    @pytest.fixture
    def use_case(self, uow, payment_gateway):
        return InitiateTicketPurchaseUseCase(uow=uow, payment_gateway=payment_gateway)

    @pytest.mark.asyncio
    async def test_mints_links_and_returns_checkout(self, use_case, uow, payment_gateway):
        # When
        result = await use_case.initiate_ticket_purchase(
            buyer_id=BUYER.id, event_id=10, ticket_category_id=20, quantity=2
        )

        # Then
        transaction = created_transaction(uow)
        assert transaction.type == TransactionType.PURCHASE
        assert transaction.amount == 5000
        assert result == {
            'checkout_url': f'https://checkout.test/{transaction.reference}',
            'reference': transaction.reference,
        }
        uow.ticket_inventory_command_repo.mint.assert_awaited_once_with(
            category_id=20, count=2, owner_id=BUYER.id, event_id=10
        )
        uow.transaction_command_repo.link_tickets.assert_awaited_once_with(
            transaction_id=100, ticket_ids=[1, 2]
        )
        assert payment_gateway.initiate.await_args.kwargs['amount'] == 5000
        assert uow.commits == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize('quantity', [0, 11])
    async def test_quantity_bounds(self, use_case, uow, quantity):
        with pytest.raises(DomainError):
            await use_case.initiate_ticket_purchase(
                buyer_id=BUYER.id, event_id=10, ticket_category_id=20, quantity=quantity
            )
        uow.transaction_command_repo.create_pending.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sold_out_category(self, use_case, uow, payment_gateway):
        # Given
        uow.event_query_repo.get_category.return_value = make_category(max_tickets=1)

        # When / Then
        with pytest.raises(CapacityExceededError):
            await use_case.initiate_ticket_purchase(
                buyer_id=BUYER.id, event_id=10, ticket_category_id=20, quantity=2
            )
        payment_gateway.initiate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_category_from_another_event(self, use_case, uow):
        # Given
        uow.event_query_repo.get_category.return_value = make_category(event_id=99)

        # When / Then
        with pytest.raises(NotFoundError):
            await use_case.initiate_ticket_purchase(
                buyer_id=BUYER.id, event_id=10, ticket_category_id=20, quantity=1
            )

    @pytest.mark.asyncio
    async def test_past_event_is_closed(self, use_case, uow):
        # Given
        uow.event_query_repo.get_event.return_value = make_event(
            starts_at=datetime.now(timezone.utc) - timedelta(days=1)
        )

        # When / Then
        with pytest.raises(DomainError):
            await use_case.initiate_ticket_purchase(
                buyer_id=BUYER.id, event_id=10, ticket_category_id=20, quantity=1
            )

    @pytest.mark.asyncio
    async def test_gateway_failure_releases_reservation(self, use_case, uow, payment_gateway):
        # Given
        payment_gateway.initiate.side_effect = GatewayError('Payment gateway unavailable')

        # When / Then
        with pytest.raises(GatewayError):
            await use_case.initiate_ticket_purchase(
                buyer_id=BUYER.id, event_id=10, ticket_category_id=20, quantity=2
            )
        reference = created_transaction(uow).reference
        uow.transaction_command_repo.delete_pending.assert_awaited_once_with(reference=reference)
        uow.ticket_inventory_command_repo.release_unissued.assert_awaited_once_with(
            ticket_ids=[1, 2]
        )
        assert uow.commits == 2


class TestInitiateResalePurchase:
    @pytest.fixture
    def use_case(self, uow, payment_gateway):
        uow.ticket_query_repo.get_by_ids.return_value = [
            make_ticket(ticket_id=1, user_id=SELLER.id, is_listed=True, resale_price=2000),
            make_ticket(ticket_id=2, user_id=SELLER.id, is_listed=True, resale_price=3000),
        ]
        return InitiateResalePurchaseUseCase(uow=uow, payment_gateway=payment_gateway)

    @pytest.mark.asyncio
    async def test_amount_is_sum_of_listing_prices(self, use_case, uow):
        # When
        result = await use_case.initiate_resale_purchase(buyer_id=BUYER.id, ticket_ids=[2, 1, 2])

        # Then
        transaction = created_transaction(uow)
        assert transaction.type == TransactionType.RESALE
        assert transaction.amount == 5000
        assert result['reference'] == transaction.reference
        uow.ticket_query_repo.get_by_ids.assert_awaited_once_with(ticket_ids=[1, 2])
        uow.transaction_command_repo.link_tickets.assert_awaited_once_with(
            transaction_id=100, ticket_ids=[1, 2]
        )

    @pytest.mark.asyncio
    async def test_cannot_buy_own_listing(self, use_case, uow):
        with pytest.raises(DomainError):
            await use_case.initiate_resale_purchase(buyer_id=SELLER.id, ticket_ids=[1, 2])
        uow.transaction_command_repo.create_pending.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_ticket(self, use_case, uow):
        with pytest.raises(NotFoundError):
            await use_case.initiate_resale_purchase(buyer_id=BUYER.id, ticket_ids=[1, 2, 3])

    @pytest.mark.asyncio
    async def test_tickets_from_different_events(self, use_case, uow):
        # Given
        uow.ticket_query_repo.get_by_ids.return_value = [
            make_ticket(ticket_id=1, user_id=SELLER.id, is_listed=True, resale_price=2000),
            make_ticket(
                ticket_id=2, user_id=SELLER.id, event_id=11, is_listed=True, resale_price=2000
            ),
        ]

        # When / Then
        with pytest.raises(DomainError):
            await use_case.initiate_resale_purchase(buyer_id=BUYER.id, ticket_ids=[1, 2])

    @pytest.mark.asyncio
    async def test_gateway_failure_deletes_pending(self, use_case, uow, payment_gateway):
        # Given
        payment_gateway.initiate.side_effect = GatewayError('Payment gateway unavailable')

        # When / Then
        with pytest.raises(GatewayError):
            await use_case.initiate_resale_purchase(buyer_id=BUYER.id, ticket_ids=[1, 2])
        uow.transaction_command_repo.delete_pending.assert_awaited_once_with(
            reference=created_transaction(uow).reference
        )


class TestInitiateWalletFunding:
    @pytest.fixture
    def use_case(self, uow, payment_gateway):
        return InitiateWalletFundingUseCase(uow=uow, payment_gateway=payment_gateway)

    @pytest.mark.asyncio
    async def test_creates_fund_transaction(self, use_case, uow):
        # When
        result = await use_case.initiate_wallet_funding(user_id=BUYER.id, amount=10_000)

        # Then
        transaction = created_transaction(uow)
        assert transaction.type == TransactionType.FUND
        assert transaction.reference.startswith('fund_')
        assert result['checkout_url'].endswith(transaction.reference)

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, use_case, uow):
        with pytest.raises(DomainError):
            await use_case.initiate_wallet_funding(user_id=BUYER.id, amount=0)

    @pytest.mark.asyncio
    async def test_unknown_user(self, use_case, uow):
        with pytest.raises(NotFoundError):
            await use_case.initiate_wallet_funding(user_id=404, amount=100)

    @pytest.mark.asyncio
    async def test_gateway_failure_deletes_pending(self, use_case, uow, payment_gateway):
        # Given
        payment_gateway.initiate.side_effect = GatewayError('Payment gateway unavailable')

        # When / Then
        with pytest.raises(GatewayError):
            await use_case.initiate_wallet_funding(user_id=BUYER.id, amount=100)
        uow.transaction_command_repo.delete_pending.assert_awaited_once()
        assert uow.commits == 2
