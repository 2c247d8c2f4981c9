"""
Expire Stale Checkouts Use Case

A PURCHASE reserves capacity when the checkout opens. Buyers who never pay would
hold it forever, so purchases still PENDING after CHECKOUT_EXPIRY_MINUTES are
failed and their unissued tickets released.

A stale reference is first checked with the gateway. Paid ones are left PENDING
for the webhook (or a retry) to settle. A gateway error skips the reference
until the next sweep, unless the purchase is older than
CHECKOUT_EXPIRY_FORCE_MINUTES.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import GatewayError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.settlement_metrics import metrics
from src.service.settlement.app.interface.i_payment_gateway import IPaymentGateway
from src.service.settlement.domain.enum.transaction_status import TransactionStatus
from src.service.settlement.domain.enum.transaction_type import TransactionType


class ExpireStaleCheckoutsUseCase:
    def __init__(
        self,
        *,
        uow: AbstractUnitOfWork,
        payment_gateway: IPaymentGateway,
        expiry: Optional[timedelta] = None,
        force_expiry: Optional[timedelta] = None,
        batch_size: Optional[int] = None,
    ) -> None:
        self.uow = uow
        self.payment_gateway = payment_gateway
        self.expiry = expiry or timedelta(minutes=settings.CHECKOUT_EXPIRY_MINUTES)
        self.force_expiry = force_expiry or timedelta(
            minutes=settings.CHECKOUT_EXPIRY_FORCE_MINUTES
        )
        self.batch_size = batch_size or settings.CHECKOUT_EXPIRY_BATCH_SIZE
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def expire_stale_checkouts(self, *, now: Optional[datetime] = None) -> int:
        """
        Fail one batch of stale PENDING purchases

        Returns:
            Number of purchases failed by this call
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - self.expiry
        force_cutoff = now - self.force_expiry
        with self.tracer.start_as_current_span(
            'use_case.expire_stale_checkouts', attributes={'cutoff': cutoff.isoformat()}
        ) as span:
            async with self.uow:
                stale = await self.uow.transaction_command_repo.list_stale_pending(
                    transaction_type=TransactionType.PURCHASE,
                    created_before=cutoff,
                    limit=self.batch_size,
                )

            expired = 0
            for transaction in stale:
                if await self._was_paid(
                    transaction.reference,
                    forced=_as_utc(transaction.created_at) < force_cutoff,
                ):
                    continue
                if await self._expire(transaction.reference):
                    expired += 1

            span.set_attribute('expired', expired)
            if expired:
                metrics.checkouts_expired.inc(expired)
                Logger.base.info(f'⌛ [EXPIRY] Failed {expired} unpaid checkouts')
            return expired

    async def _was_paid(self, reference: str, *, forced: bool) -> bool:
        try:
            verification = await self.payment_gateway.verify(reference=reference)
        except GatewayError as e:
            if forced:
                Logger.base.warning(
                    f'⚠️ [EXPIRY] Could not verify {reference}, expiring anyway: {e}'
                )
                return False
            Logger.base.warning(f'⚠️ [EXPIRY] Could not verify {reference}, skipping: {e}')
            return True
        if verification.is_successful:
            Logger.base.warning(f'⚠️ [EXPIRY] {reference} was paid, leaving it for settlement')
            return True
        return False

    async def _expire(self, reference: str) -> bool:
        async with self.uow:
            transaction = await self.uow.transaction_command_repo.lock_and_read(
                reference=reference
            )
            if transaction is None or transaction.status != TransactionStatus.PENDING:
                return False

            # Settlement may have won the lock first
            if not await self.uow.transaction_command_repo.mark_failed_if_pending(
                reference=reference
            ):
                return False

            ticket_ids = await self.uow.transaction_command_repo.get_linked_ticket_ids(
                transaction_id=transaction.id  # type: ignore[arg-type]
            )
            released = await self.uow.ticket_inventory_command_repo.release_unissued(
                ticket_ids=ticket_ids
            )
            await self.uow.commit()

        Logger.base.info(f'⌛ [EXPIRY] {reference} failed, released {released} tickets')
        return True


def _as_utc(value: Optional[datetime]) -> datetime:
    # SQLite hands back naive UTC timestamps
    if value is None:
        return datetime.now(timezone.utc)
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
