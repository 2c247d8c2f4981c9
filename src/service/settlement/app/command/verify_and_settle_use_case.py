import time
from typing import Any, List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import (
    ForbiddenError,
    InvariantViolationError,
    NotFoundError,
    VerificationFailedError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.settlement_metrics import metrics
from src.service.settlement.app.dto.settlement_notice import SellerPayout, SettlementNotice
from src.service.settlement.app.interface.i_notification_dispatcher import (
    INotificationDispatcher,
)
from src.service.settlement.app.interface.i_payment_gateway import IPaymentGateway
from src.service.settlement.app.service.payout_dispatcher import (
    PayoutDispatcher,
    resale_payout_reference,
)
from src.service.settlement.domain.entity.event_entity import Event
from src.service.settlement.domain.entity.ticket_entity import Ticket
from src.service.settlement.domain.entity.transaction_entity import Transaction
from src.service.settlement.domain.entity.user_entity import User
from src.service.settlement.domain.enum.transaction_type import TransactionType
from src.service.settlement.domain.fee_calculator import split_primary, split_resale
from src.service.settlement.domain.ticket_code import generate_verification_code
from src.service.settlement.domain.value_object.payout_destination import PayoutDestination
from src.service.settlement.domain.value_object.ticket_qr_payload import TicketQrPayload


ALREADY_PROCESSED_RESPONSE: dict[str, Any] = {'message': 'Already verified', 'success': True}
SETTLED_MESSAGE = 'Transaction verified and processed successfully'


class VerifyAndSettleUseCase:
    """
    Turn a gateway payment confirmation into its economic effects, exactly once

    Flow:
    1. Verify the reference with the gateway (no local writes before this succeeds)
    2. Lock the transaction row and flip PENDING -> SUCCESS (single winner)
    3. Apply the PURCHASE / RESALE / FUND effects in the same unit of work
    4. Commit, then queue notifications (best effort)

    Re-delivered webhooks find SUCCESS and get the already-processed response.
    Any failure before the commit rolls back the status flip with everything
    else, so the same reference can simply be retried.

    Resale payouts are sent while the transaction row lock is still held. A slow
    gateway therefore stalls other settlement attempts for that reference for up
    to PAYMENT_GATEWAY_TIMEOUT_SECONDS per payout. Payout references derive from
    the transaction reference, so a retry after a rollback re-sends the same
    reference and the gateway deduplicates it.
    """

    def __init__(
        self,
        *,
        uow: AbstractUnitOfWork,
        payment_gateway: IPaymentGateway,
        payout_dispatcher: PayoutDispatcher,
        notification_dispatcher: INotificationDispatcher,
    ) -> None:
        self.uow = uow
        self.payment_gateway = payment_gateway
        self.payout_dispatcher = payout_dispatcher
        self.notification_dispatcher = notification_dispatcher
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow: AbstractUnitOfWork = Depends(get_unit_of_work),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        payout_dispatcher: PayoutDispatcher = Depends(Provide[Container.payout_dispatcher]),
        notification_dispatcher: INotificationDispatcher = Depends(
            Provide[Container.notification_dispatcher]
        ),
    ) -> Self:
        return cls(
            uow=uow,
            payment_gateway=payment_gateway,
            payout_dispatcher=payout_dispatcher,
            notification_dispatcher=notification_dispatcher,
        )

    @Logger.io
    async def verify_and_settle(self, *, reference: str) -> dict[str, Any]:
        started = time.perf_counter()
        with self.tracer.start_as_current_span(
            'use_case.verify_and_settle', attributes={'transaction.reference': reference}
        ) as span:
            verification = await self.payment_gateway.verify(reference=reference)
            if not verification.is_successful:
                Logger.base.warning(
                    f'❌ [SETTLE] Gateway rejected {reference}: {verification.message}'
                )
                metrics.record_settlement(
                    transaction_type='unknown',
                    result='rejected',
                    duration=time.perf_counter() - started,
                )
                raise VerificationFailedError('Transaction verification failed')

            async with self.uow:
                transaction = await self.uow.transaction_command_repo.lock_and_read(
                    reference=reference
                )
                if transaction is None:
                    raise NotFoundError(f'Transaction {reference} not found')
                span.set_attribute('transaction.type', transaction.type.value)

                if transaction.is_settled:
                    return self._already_processed(transaction, started)
                transaction.validate_can_settle()

                flipped = await self.uow.transaction_command_repo.mark_success_if_pending(
                    reference=reference
                )
                if not flipped:
                    return self._already_processed(transaction, started)

                if transaction.type == TransactionType.PURCHASE:
                    notice = await self._settle_purchase(transaction)
                elif transaction.type == TransactionType.RESALE:
                    notice = await self._settle_resale(transaction)
                elif transaction.type == TransactionType.FUND:
                    notice = await self._settle_fund(transaction)
                else:
                    raise InvariantViolationError(
                        f'Invalid transaction type for settlement: {transaction.type}'
                    )

                await self.uow.commit()

            metrics.record_settlement(
                transaction_type=transaction.type.value,
                result='settled',
                duration=time.perf_counter() - started,
            )
            Logger.base.info(f'✅ [SETTLE] {transaction.type} {reference} settled')

            await self._notify(notice)
            return {
                'message': SETTLED_MESSAGE,
                'ticket_ids': [ticket.id for ticket in notice.tickets],
            }

    def _already_processed(self, transaction: Transaction, started: float) -> dict[str, Any]:
        Logger.base.info(f'🔁 [SETTLE] {transaction.reference} already processed')
        metrics.record_settlement(
            transaction_type=transaction.type.value,
            result='already_settled',
            duration=time.perf_counter() - started,
        )
        return dict(ALREADY_PROCESSED_RESPONSE)

    # ========== Branches ==========

    async def _settle_purchase(self, transaction: Transaction) -> SettlementNotice:
        with self.tracer.start_as_current_span('settle.purchase'):
            tickets = await self._linked_tickets(transaction)
            if len({ticket.ticket_category_id for ticket in tickets}) != 1:
                raise InvariantViolationError('All tickets must belong to the same category')

            event = await self._event(transaction.event_id)
            split = split_primary(transaction.amount, event.fee_policy.primary_fee_bps)
            ticket_ids = [ticket.id for ticket in tickets]
            await self.uow.ticket_inventory_command_repo.issue(ticket_ids=ticket_ids)

            admin = await self._platform_admin()
            await self.uow.wallet_command_repo.credit_wallet(
                user_id=event.organizer_id, amount=split.organizer_proceeds
            )
            await self.uow.wallet_command_repo.credit_wallet(
                user_id=admin.id, amount=split.platform_cut
            )
            metrics.record_credit(role='organizer', amount=split.organizer_proceeds)
            metrics.record_credit(role='platform', amount=split.platform_cut)

            issued = await self.uow.ticket_query_repo.get_by_ids(ticket_ids=ticket_ids)
            return SettlementNotice(
                transaction=transaction,
                buyer=await self._user(transaction.user_id),
                admin=admin,
                event=event,
                organizer=await self.uow.user_query_repo.get_by_id(user_id=event.organizer_id),
                tickets=issued,
                qr_payloads=[self._qr_payload(ticket) for ticket in issued],
                platform_cut=split.platform_cut,
                organizer_amount=split.organizer_proceeds,
            )

    async def _settle_resale(self, transaction: Transaction) -> SettlementNotice:
        with self.tracer.start_as_current_span('settle.resale'):
            tickets = await self._linked_tickets(transaction)
            if len({ticket.event_id for ticket in tickets}) != 1:
                raise InvariantViolationError('All resale tickets must belong to the same event')

            event = await self._event(tickets[0].event_id)
            fee_policy = event.fee_policy
            sellers = {
                seller.id: seller
                for seller in await self.uow.user_query_repo.get_by_ids(
                    user_ids=sorted({ticket.user_id for ticket in tickets})
                )
            }

            total_platform_cut = 0
            total_royalty = 0
            commission_by_ticket: dict[int, int] = {}
            payouts: List[tuple[SellerPayout, PayoutDestination]] = []
            for ticket in tickets:
                if not ticket.is_listed:
                    raise ForbiddenError(f'Ticket {ticket.id} is no longer listed for resale')
                seller = sellers.get(ticket.user_id)
                if seller is None:
                    raise NotFoundError(f'Seller not found for ticket {ticket.id}')
                destination = ticket.payout_destination
                if ticket.resale_price is None or destination is None:
                    raise InvariantViolationError(
                        f'Ticket {ticket.id} is missing resale price or payout info'
                    )

                split = split_resale(
                    ticket.resale_price, fee_policy.resale_fee_bps, fee_policy.royalty_fee_bps
                )
                total_platform_cut += split.platform_cut
                total_royalty += split.organizer_royalty
                commission_by_ticket[ticket.id] = split.platform_cut + split.organizer_royalty
                payouts.append(
                    (
                        SellerPayout(
                            seller=seller,
                            ticket_id=ticket.id,
                            amount=split.seller_proceeds,
                            reference=resale_payout_reference(
                                transaction_reference=transaction.reference, ticket_id=ticket.id
                            ),
                        ),
                        destination,
                    )
                )

            if sum(ticket.resale_price or 0 for ticket in tickets) != transaction.amount:
                raise InvariantViolationError(
                    f'Resale prices changed after checkout for {transaction.reference}'
                )

            ticket_ids = [ticket.id for ticket in tickets]
            await self.uow.ticket_inventory_command_repo.transfer_ownership(
                ticket_ids=ticket_ids,
                to_user_id=transaction.user_id,
                commission_by_ticket=commission_by_ticket,
            )

            admin = await self._platform_admin()
            await self.uow.wallet_command_repo.credit_wallet(
                user_id=event.organizer_id, amount=total_royalty
            )
            await self.uow.wallet_command_repo.credit_wallet(
                user_id=admin.id, amount=total_platform_cut
            )
            metrics.record_credit(role='organizer', amount=total_royalty)
            metrics.record_credit(role='platform', amount=total_platform_cut)

            # Money leaves last: any earlier failure rolls back before a payout is sent.
            # The row lock is held across these calls.
            for payout, destination in payouts:
                if payout.amount <= 0:
                    continue
                await self.payout_dispatcher.initiate_withdrawal(
                    customer=payout.seller.as_customer(),
                    amount=payout.amount,
                    destination=destination,
                    reference=payout.reference,
                    narration=f'Resale payout for ticket {payout.ticket_id}',
                    metadata={
                        'user_id': payout.seller.id,
                        'ticket_id': payout.ticket_id,
                        'transaction_reference': transaction.reference,
                    },
                    kind='resale',
                )
                metrics.record_credit(role='seller', amount=payout.amount)

            transferred = await self.uow.ticket_query_repo.get_by_ids(ticket_ids=ticket_ids)
            return SettlementNotice(
                transaction=transaction,
                buyer=await self._user(transaction.user_id),
                admin=admin,
                event=event,
                organizer=await self.uow.user_query_repo.get_by_id(user_id=event.organizer_id),
                tickets=transferred,
                qr_payloads=[self._qr_payload(ticket) for ticket in transferred],
                platform_cut=total_platform_cut,
                organizer_amount=total_royalty,
                seller_payouts=[payout for payout, _ in payouts],
            )

    async def _settle_fund(self, transaction: Transaction) -> SettlementNotice:
        with self.tracer.start_as_current_span('settle.fund'):
            user = await self._user(transaction.user_id)
            await self.uow.wallet_command_repo.credit_wallet(
                user_id=user.id, amount=transaction.amount
            )
            metrics.record_credit(role='user', amount=transaction.amount)
            return SettlementNotice(
                transaction=transaction, buyer=user, admin=await self._platform_admin()
            )

    # ========== Helpers ==========

    async def _linked_tickets(self, transaction: Transaction) -> List[Ticket]:
        if transaction.id is None:
            raise InvariantViolationError(f'Transaction {transaction.reference} has no id')
        ticket_ids = await self.uow.transaction_command_repo.get_linked_ticket_ids(
            transaction_id=transaction.id
        )
        if not ticket_ids:
            raise InvariantViolationError(f'No tickets linked to {transaction.reference}')

        tickets = await self.uow.ticket_query_repo.get_by_ids(ticket_ids=ticket_ids)
        if len(tickets) != len(ticket_ids):
            raise NotFoundError('One or more tickets not found')
        return tickets

    async def _event(self, event_id: int | None) -> Event:
        if event_id is None:
            raise InvariantViolationError('Transaction is not tied to an event')
        event = await self.uow.event_query_repo.get_event(event_id=event_id)
        if event is None:
            raise NotFoundError(f'Event {event_id} not found')
        return event

    async def _user(self, user_id: int) -> User:
        user = await self.uow.user_query_repo.get_by_id(user_id=user_id)
        if user is None:
            raise NotFoundError(f'User {user_id} not found')
        return user

    async def _platform_admin(self) -> User:
        admin = await self.uow.user_query_repo.get_by_email(email=settings.PLATFORM_ADMIN_EMAIL)
        if admin is None:
            raise NotFoundError('Platform admin account not found')
        return admin

    @staticmethod
    def _qr_payload(ticket: Ticket) -> TicketQrPayload:
        timestamp = int(time.time() * 1000)
        return TicketQrPayload(
            ticket_id=ticket.id,
            event_id=ticket.event_id,
            user_id=ticket.user_id,
            code=ticket.code,
            verification_code=generate_verification_code(
                code=ticket.code,
                event_id=ticket.event_id,
                user_id=ticket.user_id,
                timestamp=timestamp,
            ),
            timestamp=timestamp,
        )

    async def _notify(self, notice: SettlementNotice) -> None:
        try:
            await self.notification_dispatcher.notify_settlement(notice=notice)
        except Exception as e:
            Logger.base.error(
                f'❌ [SETTLE] Notifications failed for {notice.transaction.reference}: {e}'
            )
