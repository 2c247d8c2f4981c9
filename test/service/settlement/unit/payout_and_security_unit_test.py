from unittest.mock import AsyncMock

import pytest
from pydantic import SecretStr

from src.platform.exception.exceptions import GatewayError, InvariantViolationError
from src.service.settlement.app.service.payout_dispatcher import (
    PayoutDispatcher,
    resale_payout_reference,
)
from src.service.settlement.domain.value_object.payout_destination import (
    Customer,
    PayoutDestination,
)
from src.service.settlement.driven_adapter.security.bcrypt_pin_hasher import BcryptPinHasher
from test.service.settlement.fakes import payout_accepted


pytestmark = pytest.mark.unit

DESTINATION = PayoutDestination(account_number='0123456789', bank_code='058')
CUSTOMER = Customer(email='seller@example.com', name='Sade Seller')


class TestPayoutDispatcher:
    def setup_method(self):
        self.gateway = AsyncMock()
        self.gateway.payout.side_effect = lambda **kwargs: payout_accepted(kwargs['reference'])
        self.dispatcher = PayoutDispatcher(payment_gateway=self.gateway)

    def test_resale_reference_is_stable_per_ticket(self):
        assert (
            resale_payout_reference(transaction_reference='resale_abc', ticket_id=7)
            == 'resale_payout_resale_abc_7'
        )

    @pytest.mark.asyncio
    async def test_forwards_payout_to_gateway(self):
        result = await self.dispatcher.initiate_withdrawal(
            customer=CUSTOMER,
            amount=1860,
            destination=DESTINATION,
            reference='resale_payout_resale_abc_7',
            narration='Resale payout for ticket 7',
            kind='resale',
        )

        assert result.reference == 'resale_payout_resale_abc_7'
        assert self.gateway.payout.await_args.kwargs['metadata'] == {}

    @pytest.mark.asyncio
    async def test_non_positive_amount_is_never_sent(self):
        with pytest.raises(InvariantViolationError):
            await self.dispatcher.initiate_withdrawal(
                customer=CUSTOMER,
                amount=0,
                destination=DESTINATION,
                reference='withdraw_1',
                narration='x',
            )
        self.gateway.payout.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gateway_error_propagates(self):
        self.gateway.payout.side_effect = GatewayError('Payout failed')

        with pytest.raises(GatewayError):
            await self.dispatcher.initiate_withdrawal(
                customer=CUSTOMER,
                amount=100,
                destination=DESTINATION,
                reference='withdraw_1',
                narration='x',
            )


class TestBcryptPinHasher:
    def setup_method(self):
        self.hasher = BcryptPinHasher()

    def test_hash_and_verify(self):
        pin_hash = self.hasher.hash_pin(pin=SecretStr('1234'))

        assert pin_hash != '1234'
        assert self.hasher.verify_pin(pin=SecretStr('1234'), pin_hash=pin_hash)
        assert not self.hasher.verify_pin(pin=SecretStr('4321'), pin_hash=pin_hash)

    def test_non_bcrypt_hash_does_not_verify(self):
        assert not self.hasher.verify_pin(pin=SecretStr('1234'), pin_hash='plaintext')
