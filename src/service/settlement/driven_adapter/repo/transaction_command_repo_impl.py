"""
Transaction Command Repository Implementation (Ledger Store)

Always runs on the session of the caller's Unit of Work. Status transitions are
conditional UPDATEs; rowcount tells the caller whether it won the race.
"""

from datetime import datetime
from typing import List

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_transaction_command_repo import (
    ITransactionCommandRepo,
)
from src.service.settlement.domain.entity.transaction_entity import Transaction
from src.service.settlement.domain.enum.transaction_status import TransactionStatus
from src.service.settlement.domain.enum.transaction_type import TransactionType
from src.service.settlement.driven_adapter.model.transaction_model import TransactionModel
from src.service.settlement.driven_adapter.model.transaction_ticket_model import (
    TransactionTicketModel,
)


class TransactionCommandRepoImpl(ITransactionCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_transaction: TransactionModel) -> Transaction:
        return Transaction(
            id=db_transaction.id,
            reference=db_transaction.reference,
            type=TransactionType(db_transaction.type),
            status=TransactionStatus(db_transaction.status),
            amount=db_transaction.amount,
            user_id=db_transaction.user_id,
            event_id=db_transaction.event_id,
            ticket_category_id=db_transaction.ticket_category_id,
            quantity=db_transaction.quantity,
            created_at=db_transaction.created_at,
            updated_at=db_transaction.updated_at,
        )

    @Logger.io
    async def create_pending(self, *, transaction: Transaction) -> Transaction:
        existing = await self.session.execute(
            select(TransactionModel.id).where(TransactionModel.reference == transaction.reference)
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f'Transaction {transaction.reference} already exists')

        db_transaction = TransactionModel(
            reference=transaction.reference,
            type=transaction.type.value,
            status=TransactionStatus.PENDING.value,
            amount=transaction.amount,
            user_id=transaction.user_id,
            event_id=transaction.event_id,
            ticket_category_id=transaction.ticket_category_id,
            quantity=transaction.quantity,
        )
        self.session.add(db_transaction)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent insert of the same reference
            raise ConflictError(f'Transaction {transaction.reference} already exists') from e

        await self.session.refresh(db_transaction)
        return self._to_entity(db_transaction)

    @Logger.io
    async def lock_and_read(self, *, reference: str) -> Transaction | None:
        result = await self.session.execute(
            select(TransactionModel)
            .where(TransactionModel.reference == reference)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        db_transaction = result.scalar_one_or_none()
        return self._to_entity(db_transaction) if db_transaction else None

    async def _flip_if_pending(self, *, reference: str, status: TransactionStatus) -> bool:
        result = await self.session.execute(
            update(TransactionModel)
            .where(
                TransactionModel.reference == reference,
                TransactionModel.status == TransactionStatus.PENDING.value,
            )
            .values(status=status.value, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    @Logger.io
    async def mark_success_if_pending(self, *, reference: str) -> bool:
        return await self._flip_if_pending(reference=reference, status=TransactionStatus.SUCCESS)

    @Logger.io
    async def mark_failed_if_pending(self, *, reference: str) -> bool:
        return await self._flip_if_pending(reference=reference, status=TransactionStatus.FAILED)

    @Logger.io
    async def list_stale_pending(
        self, *, transaction_type: TransactionType, created_before: datetime, limit: int
    ) -> List[Transaction]:
        result = await self.session.execute(
            select(TransactionModel)
            .where(
                TransactionModel.type == transaction_type.value,
                TransactionModel.status == TransactionStatus.PENDING.value,
                TransactionModel.created_at < created_before,
            )
            .order_by(TransactionModel.created_at, TransactionModel.id)
            .limit(limit)
        )
        return [self._to_entity(db_transaction) for db_transaction in result.scalars().all()]

    @Logger.io
    async def link_tickets(self, *, transaction_id: int, ticket_ids: List[int]) -> None:
        if not ticket_ids:
            return
        self.session.add_all(
            [
                TransactionTicketModel(transaction_id=transaction_id, ticket_id=ticket_id)
                for ticket_id in ticket_ids
            ]
        )
        await self.session.flush()

    @Logger.io
    async def get_linked_ticket_ids(self, *, transaction_id: int) -> List[int]:
        result = await self.session.execute(
            select(TransactionTicketModel.ticket_id)
            .where(TransactionTicketModel.transaction_id == transaction_id)
            .order_by(TransactionTicketModel.ticket_id)
        )
        return list(result.scalars().all())

    @Logger.io
    async def delete_pending(self, *, reference: str) -> bool:
        result = await self.session.execute(
            select(TransactionModel.id).where(
                TransactionModel.reference == reference,
                TransactionModel.status == TransactionStatus.PENDING.value,
            )
        )
        transaction_id = result.scalar_one_or_none()
        if transaction_id is None:
            Logger.base.warning(f'⚠️ [LEDGER] No pending transaction {reference} to delete')
            return False

        await self.session.execute(
            delete(TransactionTicketModel).where(
                TransactionTicketModel.transaction_id == transaction_id
            )
        )
        deleted = await self.session.execute(
            delete(TransactionModel)
            .where(
                TransactionModel.id == transaction_id,
                TransactionModel.status == TransactionStatus.PENDING.value,
            )
            .execution_options(synchronize_session=False)
        )
        return deleted.rowcount == 1  # type: ignore[attr-defined]
