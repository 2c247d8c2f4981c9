import re
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from pydantic import SecretStr

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import AuthenticationError, DomainError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_pin_hasher import IPinHasher


PIN_PATTERN = re.compile(r'^\d{4}$')


class SetWalletPinUseCase:
    def __init__(self, *, uow: AbstractUnitOfWork, pin_hasher: IPinHasher) -> None:
        self.uow = uow
        self.pin_hasher = pin_hasher

    @classmethod
    @inject
    def depends(
        cls,
        uow: AbstractUnitOfWork = Depends(get_unit_of_work),
        pin_hasher: IPinHasher = Depends(Provide[Container.pin_hasher]),
    ) -> Self:
        return cls(uow=uow, pin_hasher=pin_hasher)

    @Logger.io
    async def set_wallet_pin(
        self, *, user_id: int, new_pin: SecretStr, old_pin: Optional[SecretStr] = None
    ) -> dict[str, str]:
        if not PIN_PATTERN.match(new_pin.get_secret_value()):
            raise DomainError('PIN must be exactly 4 digits')

        async with self.uow:
            if await self.uow.user_query_repo.get_by_id(user_id=user_id) is None:
                raise NotFoundError('User not found')

            wallet = await self.uow.wallet_command_repo.get_wallet_for_update(user_id=user_id)
            had_pin = wallet.has_pin
            if had_pin:
                if old_pin is None:
                    raise DomainError('Old PIN is required to change your PIN')
                if not self.pin_hasher.verify_pin(pin=old_pin, pin_hash=wallet.pin_hash or ''):
                    raise AuthenticationError('Old PIN is incorrect')

            await self.uow.wallet_command_repo.set_pin_hash(
                user_id=user_id, pin_hash=self.pin_hasher.hash_pin(pin=new_pin)
            )
            await self.uow.commit()

        return {'message': f'Wallet PIN {"updated" if had_pin else "set"} successfully'}
