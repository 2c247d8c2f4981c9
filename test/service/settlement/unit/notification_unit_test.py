from unittest.mock import Mock

import httpx
import orjson
import pytest

from src.service.settlement.app.dto.settlement_notice import SellerPayout, SettlementNotice
from src.service.settlement.app.interface.i_task_queue import ITaskQueue
from src.service.settlement.domain.enum.transaction_type import TransactionType
from src.service.settlement.domain.value_object.ticket_qr_payload import TicketQrPayload
from src.service.settlement.driven_adapter.notification.notification_dispatcher_impl import (
    NOTIFICATION_TASK,
    NotificationDispatcherImpl,
)
from src.service.settlement.driven_adapter.notification.notification_messages import (
    build_settlement_messages,
)
from src.service.settlement.driven_adapter.notification.notification_sender import (
    NotificationSender,
)
from test.service.settlement.fakes import (
    ADMIN,
    BUYER,
    ORGANIZER,
    SELLER,
    make_event,
    make_ticket,
    make_transaction,
)


pytestmark = pytest.mark.unit


def purchase_notice() -> SettlementNotice:
    tickets = [make_ticket(ticket_id=1), make_ticket(ticket_id=2)]
    return SettlementNotice(
        transaction=make_transaction(amount=5000),
        buyer=BUYER,
        admin=ADMIN,
        event=make_event(),
        organizer=ORGANIZER,
        tickets=tickets,
        qr_payloads=[
            TicketQrPayload(
                ticket_id=ticket.id,
                event_id=ticket.event_id,
                user_id=ticket.user_id,
                code=ticket.code,
                verification_code='ABC123',
                timestamp=1,
            )
            for ticket in tickets
        ],
        platform_cut=500,
        organizer_amount=4500,
    )


def resale_notice() -> SettlementNotice:
    return SettlementNotice(
        transaction=make_transaction(transaction_type=TransactionType.RESALE, amount=4000),
        buyer=BUYER,
        admin=ADMIN,
        event=make_event(),
        organizer=ORGANIZER,
        tickets=[make_ticket(ticket_id=1), make_ticket(ticket_id=2)],
        platform_cut=200,
        organizer_amount=80,
        seller_payouts=[
            SellerPayout(seller=SELLER, ticket_id=1, amount=1860, reference='p1'),
            SellerPayout(seller=SELLER, ticket_id=2, amount=1860, reference='p2'),
        ],
    )


class TestSettlementMessages:
    def test_purchase_messages_per_role(self):
        messages = build_settlement_messages(purchase_notice())

        by_template = {message['template']: message for message in messages}
        assert set(by_template) == {
            'ticket_purchase_buyer',
            'ticket_purchase_admin',
            'ticket_purchase_organizer',
        }
        buyer_message = by_template['ticket_purchase_buyer']
        assert buyer_message['to_email'] == BUYER.email
        assert [ticket['ticket_id'] for ticket in buyer_message['context']['tickets']] == [1, 2]
        assert buyer_message['context']['tickets'][0]['verification_url'].startswith(
            'https://tickets.test/verify-ticket?data='
        )
        assert by_template['ticket_purchase_admin']['context']['platform_cut'] == 500
        assert by_template['ticket_purchase_organizer']['context']['proceeds'] == 4500

    def test_resale_sums_proceeds_per_seller(self):
        messages = build_settlement_messages(resale_notice())

        seller_messages = [m for m in messages if m['template'] == 'ticket_resale_seller']
        assert len(seller_messages) == 1
        assert seller_messages[0]['to_email'] == SELLER.email
        assert seller_messages[0]['context']['proceeds'] == 3720
        assert seller_messages[0]['context']['ticket_count'] == 2

    def test_fund_message(self):
        notice = SettlementNotice(
            transaction=make_transaction(transaction_type=TransactionType.FUND, amount=900),
            buyer=BUYER,
            admin=ADMIN,
        )

        (message,) = build_settlement_messages(notice)

        assert message['template'] == 'wallet_funded'
        assert message['context']['amount'] == 900


class TestNotificationDispatcher:
    def setup_method(self):
        self.task_queue = Mock(spec=ITaskQueue)
        self.task_queue.enqueue.return_value = True
        self.sender = NotificationSender(service_url='')
        self.dispatcher = NotificationDispatcherImpl(task_queue=self.task_queue, sender=self.sender)

    def test_registers_sender_as_handler(self):
        self.task_queue.register_handler.assert_called_once_with(
            task_name=NOTIFICATION_TASK, handler=self.sender.send
        )

    @pytest.mark.asyncio
    async def test_enqueues_one_task_per_message(self):
        await self.dispatcher.notify_settlement(notice=purchase_notice())

        assert self.task_queue.enqueue.call_count == 3
        assert all(
            call.kwargs['task_name'] == NOTIFICATION_TASK
            for call in self.task_queue.enqueue.call_args_list
        )

    @pytest.mark.asyncio
    async def test_full_queue_does_not_raise(self):
        self.task_queue.enqueue.return_value = False

        await self.dispatcher.notify_withdrawal(user=ORGANIZER, amount=100, reference='w_1')

        self.task_queue.enqueue.assert_called_once()


class TestNotificationSender:
    @pytest.mark.asyncio
    async def test_posts_message_to_service(self):
        # Given
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(orjson.loads(request.content))
            return httpx.Response(202)

        sender = NotificationSender(
            service_url='http://mail.test/send', transport=httpx.MockTransport(handler)
        )
        message = build_settlement_messages(purchase_notice())[0]

        # When
        await sender.send(message)

        # Then
        assert received[0]['template'] == message['template']

    @pytest.mark.asyncio
    async def test_service_error_raises_for_retry(self):
        sender = NotificationSender(
            service_url='http://mail.test/send',
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )

        with pytest.raises(httpx.HTTPStatusError):
            await sender.send(build_settlement_messages(purchase_notice())[0])
