from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, List

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.dto.wallet_transaction_view import WalletTransactionView
from src.service.settlement.app.interface.i_transaction_query_repo import ITransactionQueryRepo
from src.service.settlement.domain.enum.transaction_status import TransactionStatus
from src.service.settlement.domain.enum.transaction_type import TransactionType
from src.service.settlement.domain.fee_calculator import compute_cut
from src.service.settlement.driven_adapter.model.event_model import EventModel
from src.service.settlement.driven_adapter.model.ticket_model import TicketModel
from src.service.settlement.driven_adapter.model.transaction_model import TransactionModel
from src.service.settlement.driven_adapter.model.transaction_ticket_model import (
    TransactionTicketModel,
)
from src.service.settlement.driven_adapter.model.user_model import UserModel


class TransactionQueryRepoImpl(ITransactionQueryRepo):
    def __init__(
        self, session_factory: Callable[..., AsyncContextManager[AsyncSession]] | None = None
    ):
        self.session_factory = session_factory
        self.session: AsyncSession | None = None

    @asynccontextmanager
    async def _get_session(self) -> AsyncIterator[AsyncSession]:
        if self.session is not None:
            yield self.session
        elif self.session_factory is not None:
            async with self.session_factory() as session:
                yield session
        else:
            raise RuntimeError('No session or session_factory available')

    @Logger.io
    async def list_for_organizer(self, *, organizer_id: int) -> List[WalletTransactionView]:
        async with self._get_session() as session:
            result = await session.execute(
                select(TransactionModel, EventModel, UserModel)
                .outerjoin(EventModel, EventModel.id == TransactionModel.event_id)
                .outerjoin(UserModel, UserModel.id == TransactionModel.user_id)
                .where(
                    or_(
                        and_(
                            EventModel.organizer_id == organizer_id,
                            TransactionModel.type.in_(
                                [TransactionType.PURCHASE.value, TransactionType.RESALE.value]
                            ),
                            TransactionModel.status == TransactionStatus.SUCCESS.value,
                        ),
                        and_(
                            TransactionModel.user_id == organizer_id,
                            TransactionModel.type == TransactionType.WITHDRAW.value,
                            TransactionModel.status.in_(
                                [TransactionStatus.SUCCESS.value, TransactionStatus.FAILED.value]
                            ),
                        ),
                    )
                )
                .order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
            )
            rows = result.all()

            transaction_ids = [db_transaction.id for db_transaction, _, _ in rows]
            codes_by_transaction: dict[int, list[str]] = defaultdict(list)
            if transaction_ids:
                code_rows = await session.execute(
                    select(TransactionTicketModel.transaction_id, TicketModel.code)
                    .join(TicketModel, TicketModel.id == TransactionTicketModel.ticket_id)
                    .where(TransactionTicketModel.transaction_id.in_(transaction_ids))
                    .order_by(TicketModel.id)
                )
                for transaction_id, code in code_rows.all():
                    codes_by_transaction[transaction_id].append(code)

        views = []
        for db_transaction, db_event, db_user in rows:
            transaction_type = TransactionType(db_transaction.type)
            amount = db_transaction.amount
            if transaction_type == TransactionType.RESALE and db_event is not None:
                amount = compute_cut(amount, db_event.royalty_fee_bps)

            is_sale = transaction_type != TransactionType.WITHDRAW
            views.append(
                WalletTransactionView(
                    id=db_transaction.id,
                    reference=db_transaction.reference,
                    type=transaction_type,
                    status=TransactionStatus(db_transaction.status),
                    amount=amount,
                    event_id=db_transaction.event_id,
                    event_name=db_event.name if db_event else None,
                    buyer_id=db_user.id if db_user and is_sale else None,
                    buyer_name=db_user.name if db_user and is_sale else None,
                    buyer_email=db_user.email if db_user and is_sale else None,
                    ticket_codes=codes_by_transaction.get(db_transaction.id, []),
                    created_at=db_transaction.created_at,
                )
            )
        return views
