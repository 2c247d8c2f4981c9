"""
Withdraw From Wallet Use Case

The wallet row stays locked from the balance check until the debit commits, so two
withdrawals for the same user are serialized. The balance is only debited after the
gateway accepts the payout; a rejected payout leaves a FAILED ledger row and the
balance untouched.
"""

import time
from typing import Any, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from pydantic import SecretStr

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import (
    AuthenticationError,
    DomainError,
    ForbiddenError,
    GatewayError,
    NotFoundError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.settlement_metrics import metrics
from src.service.settlement.app.interface.i_notification_dispatcher import (
    INotificationDispatcher,
)
from src.service.settlement.app.interface.i_pin_hasher import IPinHasher
from src.service.settlement.app.service.payout_dispatcher import PayoutDispatcher
from src.service.settlement.domain.entity.transaction_entity import Transaction
from src.service.settlement.domain.value_object.payout_destination import PayoutDestination


class WithdrawFromWalletUseCase:
    def __init__(
        self,
        *,
        uow: AbstractUnitOfWork,
        payout_dispatcher: PayoutDispatcher,
        pin_hasher: IPinHasher,
        notification_dispatcher: INotificationDispatcher,
    ) -> None:
        self.uow = uow
        self.payout_dispatcher = payout_dispatcher
        self.pin_hasher = pin_hasher
        self.notification_dispatcher = notification_dispatcher
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow: AbstractUnitOfWork = Depends(get_unit_of_work),
        payout_dispatcher: PayoutDispatcher = Depends(Provide[Container.payout_dispatcher]),
        pin_hasher: IPinHasher = Depends(Provide[Container.pin_hasher]),
        notification_dispatcher: INotificationDispatcher = Depends(
            Provide[Container.notification_dispatcher]
        ),
    ) -> Self:
        return cls(
            uow=uow,
            payout_dispatcher=payout_dispatcher,
            pin_hasher=pin_hasher,
            notification_dispatcher=notification_dispatcher,
        )

    @Logger.io
    async def withdraw(
        self,
        *,
        user_id: int,
        amount: int,
        pin: SecretStr,
        account_number: str,
        bank_code: str,
        narration: Optional[str] = None,
    ) -> dict[str, Any]:
        if amount <= 0:
            raise DomainError('Amount must be positive')
        destination = PayoutDestination(account_number=account_number, bank_code=bank_code)

        started = time.perf_counter()
        with self.tracer.start_as_current_span(
            'use_case.withdraw_from_wallet', attributes={'user.id': user_id}
        ):
            async with self.uow:
                user = await self.uow.user_query_repo.get_by_id(user_id=user_id)
                if user is None:
                    raise NotFoundError('User not found')
                if not user.can_withdraw:
                    raise ForbiddenError('Only organizers and admins can withdraw funds')

                wallet = await self.uow.wallet_command_repo.get_wallet_for_update(user_id=user_id)
                if not wallet.has_pin:
                    raise DomainError('Please set your wallet PIN before withdrawing')
                if not self.pin_hasher.verify_pin(pin=pin, pin_hash=wallet.pin_hash or ''):
                    raise AuthenticationError('Invalid PIN provided')
                wallet.validate_can_withdraw(amount)

                transaction = await self.uow.transaction_command_repo.create_pending(
                    transaction=Transaction.create_withdrawal(user_id=user_id, amount=amount)
                )
                try:
                    payout = await self.payout_dispatcher.initiate_withdrawal(
                        customer=user.as_customer(),
                        amount=amount,
                        destination=destination,
                        reference=transaction.reference,
                        narration=narration or 'Wallet withdrawal',
                        metadata={'user_id': user_id},
                    )
                except GatewayError:
                    await self.uow.transaction_command_repo.mark_failed_if_pending(
                        reference=transaction.reference
                    )
                    await self.uow.commit()
                    metrics.record_settlement(
                        transaction_type=transaction.type.value,
                        result='failed',
                        duration=time.perf_counter() - started,
                    )
                    raise

                await self.uow.wallet_command_repo.debit_wallet(user_id=user_id, amount=amount)
                await self.uow.transaction_command_repo.mark_success_if_pending(
                    reference=transaction.reference
                )
                await self.uow.commit()

            metrics.record_settlement(
                transaction_type=transaction.type.value,
                result='settled',
                duration=time.perf_counter() - started,
            )
            Logger.base.info(f'💸 [WITHDRAW] {transaction.reference} for user {user_id}')

            try:
                await self.notification_dispatcher.notify_withdrawal(
                    user=user, amount=amount, reference=transaction.reference
                )
            except Exception as e:
                Logger.base.error(f'❌ [WITHDRAW] Notification failed: {e}')

            return {
                'message': 'Withdrawal initiated successfully',
                'reference': transaction.reference,
                'payout': {
                    'status': payout.status,
                    'message': payout.message,
                    'reference': payout.reference,
                },
            }
