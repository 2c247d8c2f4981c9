from typing import Any, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import DomainError, GatewayError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_payment_gateway import IPaymentGateway
from src.service.settlement.domain.entity.transaction_entity import Transaction


class InitiateWalletFundingUseCase:
    def __init__(self, *, uow: AbstractUnitOfWork, payment_gateway: IPaymentGateway) -> None:
        self.uow = uow
        self.payment_gateway = payment_gateway

    @classmethod
    @inject
    def depends(
        cls,
        uow: AbstractUnitOfWork = Depends(get_unit_of_work),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
    ) -> Self:
        return cls(uow=uow, payment_gateway=payment_gateway)

    @Logger.io
    async def initiate_wallet_funding(self, *, user_id: int, amount: int) -> dict[str, Any]:
        if amount <= 0:
            raise DomainError('Amount must be positive')

        async with self.uow:
            user = await self.uow.user_query_repo.get_by_id(user_id=user_id)
            if user is None:
                raise NotFoundError('User not found')

            transaction = await self.uow.transaction_command_repo.create_pending(
                transaction=Transaction.create_fund(user_id=user_id, amount=amount)
            )
            await self.uow.commit()

        try:
            checkout = await self.payment_gateway.initiate(
                reference=transaction.reference,
                amount=amount,
                customer=user.as_customer(),
                narration='Wallet funding',
                metadata={'user_id': user_id},
            )
        except GatewayError:
            async with self.uow:
                await self.uow.transaction_command_repo.delete_pending(
                    reference=transaction.reference
                )
                await self.uow.commit()
            raise

        return {'checkout_url': checkout.checkout_url, 'reference': transaction.reference}
