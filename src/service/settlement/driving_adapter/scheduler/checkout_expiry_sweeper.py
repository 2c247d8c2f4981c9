"""
Checkout Expiry Sweeper

Periodically queues an expiry sweep onto the task queue; a queue worker then runs
ExpireStaleCheckoutsUseCase on its own database session.

Usage (main.py lifespan):
    async with anyio.create_task_group() as tg:
        await tg.start(task_queue.run)
        await tg.start(sweeper.run)
        ...
        sweeper.stop()
        await task_queue.close()
"""

from typing import Any, Callable, Optional

import anyio
from anyio.abc import TaskStatus
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.platform.config.core_setting import settings
from src.platform.database.db_setting import get_session_maker
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.command.expire_stale_checkouts_use_case import (
    ExpireStaleCheckoutsUseCase,
)
from src.service.settlement.app.interface.i_payment_gateway import IPaymentGateway
from src.service.settlement.app.interface.i_task_queue import ITaskQueue


CHECKOUT_EXPIRY_TASK = 'checkout.expire'


class CheckoutExpirySweeper:
    def __init__(
        self,
        *,
        task_queue: ITaskQueue,
        payment_gateway: IPaymentGateway,
        session_maker: Callable[[], async_sessionmaker[AsyncSession]] = get_session_maker,
        interval_seconds: Optional[float] = None,
    ) -> None:
        self.task_queue = task_queue
        self.payment_gateway = payment_gateway
        self.session_maker = session_maker
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.CHECKOUT_EXPIRY_SWEEP_SECONDS
        )
        self._cancel_scope: Optional[anyio.CancelScope] = None
        self.task_queue.register_handler(task_name=CHECKOUT_EXPIRY_TASK, handler=self.sweep)

    async def sweep(self, payload: dict[str, Any]) -> None:
        """Task handler: expire one batch of stale checkouts"""
        async with self.session_maker()() as session:
            await ExpireStaleCheckoutsUseCase(
                uow=SqlAlchemyUnitOfWork(session), payment_gateway=self.payment_gateway
            ).expire_stale_checkouts()

    async def run(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        with anyio.CancelScope() as scope:
            self._cancel_scope = scope
            Logger.base.info(f'⌛ [EXPIRY] Sweeping every {self.interval_seconds}s')
            task_status.started()
            while True:
                await anyio.sleep(self.interval_seconds)
                self.task_queue.enqueue(task_name=CHECKOUT_EXPIRY_TASK, payload={})
        Logger.base.info('🛑 [EXPIRY] Sweeper stopped')

    def stop(self) -> None:
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()
