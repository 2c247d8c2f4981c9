from datetime import datetime, timedelta, timezone

import pytest

from src.platform.exception.exceptions import (
    CapacityExceededError,
    DomainError,
    ForbiddenError,
    InsufficientFundsError,
    InvariantViolationError,
)
from src.service.settlement.app.dto.gateway_result import VerifyResult
from src.service.settlement.domain.entity.transaction_entity import Transaction
from src.service.settlement.domain.entity.wallet_entity import Wallet
from src.service.settlement.domain.enum.transaction_status import TransactionStatus
from src.service.settlement.domain.enum.transaction_type import TransactionType
from src.service.settlement.domain.ticket_code import (
    generate_ticket_code,
    generate_verification_code,
)
from src.service.settlement.domain.value_object.fee_policy import FeePolicy
from src.service.settlement.domain.value_object.payout_destination import PayoutDestination
from src.service.settlement.domain.value_object.ticket_qr_payload import TicketQrPayload
from test.service.settlement.fakes import BUYER, SELLER, make_category, make_event, make_ticket


pytestmark = pytest.mark.unit


class TestTransaction:
    def test_create_purchase_is_pending_with_prefixed_reference(self):
        transaction = Transaction.create_purchase(
            user_id=BUYER.id, event_id=10, ticket_category_id=20, quantity=2, amount=5000
        )

        assert transaction.status == TransactionStatus.PENDING
        assert transaction.type == TransactionType.PURCHASE
        assert transaction.reference.startswith('txn_')
        assert transaction.quantity == 2

    @pytest.mark.parametrize(
        'factory,prefix',
        [
            (lambda: Transaction.create_resale(user_id=1, event_id=1, amount=10), 'resale_'),
            (lambda: Transaction.create_fund(user_id=1, amount=10), 'fund_'),
            (lambda: Transaction.create_withdrawal(user_id=1, amount=10), 'withdraw_'),
        ],
    )
    def test_reference_prefix_by_type(self, factory, prefix):
        assert factory().reference.startswith(prefix)

    def test_references_are_unique(self):
        first = Transaction.create_fund(user_id=1, amount=10)
        second = Transaction.create_fund(user_id=1, amount=10)

        assert first.reference != second.reference

    @pytest.mark.parametrize('amount', [0, -100])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(InvariantViolationError):
            Transaction.create_fund(user_id=1, amount=amount)

    def test_failed_transaction_cannot_settle(self):
        transaction = Transaction.create_fund(user_id=1, amount=10).mark_as_failed()

        with pytest.raises(InvariantViolationError):
            transaction.validate_can_settle()

    def test_mark_as_success_settles(self):
        transaction = Transaction.create_fund(user_id=1, amount=10)

        settled = transaction.mark_as_success()

        assert settled.is_settled
        assert transaction.is_pending


class TestTicket:
    def test_owner_can_list_issued_ticket(self):
        make_ticket(ticket_id=1, user_id=SELLER.id).validate_can_list(seller_id=SELLER.id)

    def test_cannot_list_someone_elses_ticket(self):
        with pytest.raises(ForbiddenError):
            make_ticket(ticket_id=1, user_id=SELLER.id).validate_can_list(seller_id=BUYER.id)

    @pytest.mark.parametrize(
        'overrides',
        [{'is_issued': False}, {'is_listed': True, 'resale_price': 100}, {'resale_count': 1}],
    )
    def test_cannot_list_ineligible_ticket(self, overrides):
        ticket = make_ticket(ticket_id=1, user_id=SELLER.id, **overrides)

        with pytest.raises(DomainError):
            ticket.validate_can_list(seller_id=SELLER.id)

    def test_cannot_buy_own_listing(self):
        ticket = make_ticket(ticket_id=1, user_id=BUYER.id, is_listed=True, resale_price=100)

        with pytest.raises(DomainError):
            ticket.validate_can_be_bought_by(buyer_id=BUYER.id)

    def test_cannot_buy_unlisted_ticket(self):
        ticket = make_ticket(ticket_id=1, user_id=SELLER.id)

        with pytest.raises(DomainError):
            ticket.validate_can_be_bought_by(buyer_id=BUYER.id)

    def test_payout_destination_requires_both_fields(self):
        assert make_ticket(ticket_id=1, bank_code='058').payout_destination is None
        destination = make_ticket(
            ticket_id=1, bank_code='058', account_number='0123456789'
        ).payout_destination
        assert destination == PayoutDestination(account_number='0123456789', bank_code='058')


class TestEventAndCategory:
    def test_inactive_event_is_closed(self):
        with pytest.raises(DomainError):
            make_event(is_active=False).validate_open_for_sales()

    def test_started_event_is_closed(self):
        event = make_event(starts_at=datetime.now(timezone.utc) - timedelta(hours=1))

        assert event.has_started
        with pytest.raises(DomainError):
            event.validate_open_for_sales()

    def test_naive_start_time_is_treated_as_utc(self):
        tomorrow = datetime.now(timezone.utc) + timedelta(days=1)
        event = make_event(starts_at=tomorrow.replace(tzinfo=None))

        assert not event.has_started

    def test_category_capacity(self):
        category = make_category(max_tickets=5, minted=4)

        assert category.remaining == 1
        category.validate_can_mint(1)
        with pytest.raises(CapacityExceededError):
            category.validate_can_mint(2)

    def test_fee_policy_rejects_out_of_range_rates(self):
        with pytest.raises(InvariantViolationError):
            FeePolicy(primary_fee_bps=10_001, resale_fee_bps=0, royalty_fee_bps=0)
        with pytest.raises(InvariantViolationError):
            FeePolicy(primary_fee_bps=0, resale_fee_bps=8000, royalty_fee_bps=3000)


class TestWalletAndValueObjects:
    def test_withdraw_beyond_balance(self):
        with pytest.raises(InsufficientFundsError):
            Wallet(user_id=1, balance=100).validate_can_withdraw(101)

    def test_withdraw_exact_balance(self):
        Wallet(user_id=1, balance=100).validate_can_withdraw(100)

    def test_payout_destination_requires_digits(self):
        with pytest.raises(DomainError):
            PayoutDestination(account_number='01234abc', bank_code='058')

    @pytest.mark.parametrize(
        'status,message,expected',
        [
            (True, 'Verification successful', True),
            (True, 'verification SUCCESSFUL', True),
            (True, 'Pending', False),
            (False, 'Verification successful', False),
        ],
    )
    def test_verify_result_success_requires_status_and_message(self, status, message, expected):
        assert VerifyResult(status=status, message=message).is_successful is expected


class TestTicketCode:
    def test_ticket_code_format(self):
        code = generate_ticket_code()

        prefix, token = code.split('-')
        assert prefix == 'TCK'
        assert token == token.upper()

    def test_verification_code_is_deterministic(self):
        kwargs = {'code': 'TCK-ABC', 'event_id': 1, 'user_id': 2, 'timestamp': 1700000000000}

        assert generate_verification_code(**kwargs) == generate_verification_code(**kwargs)
        assert len(generate_verification_code(**kwargs)) == 12

    def test_qr_payload_url_embeds_encoded_json(self):
        payload = TicketQrPayload(
            ticket_id=1, event_id=2, user_id=3, code='TCK-1', verification_code='ABC', timestamp=5
        )

        url = payload.verification_url('https://tickets.test/')

        assert url.startswith('https://tickets.test/verify-ticket?data=')
        assert '%22ticketId%22%3A1' in url
