from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import InsufficientFundsError, InvariantViolationError
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_wallet_command_repo import IWalletCommandRepo
from src.service.settlement.domain.entity.wallet_entity import Wallet
from src.service.settlement.driven_adapter.model.wallet_model import WalletModel


class WalletCommandRepoImpl(IWalletCommandRepo):
    """
    Wallet writes on the Unit of Work session

    Balances are never written as absolute values read earlier; credits are
    upserts with balance = balance + :amount and debits are guarded by
    balance >= :amount in the same statement.
    """

    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_wallet: WalletModel) -> Wallet:
        return Wallet(
            id=db_wallet.id,
            user_id=db_wallet.user_id,
            balance=db_wallet.balance,
            pin_hash=db_wallet.pin_hash,
            created_at=db_wallet.created_at,
            updated_at=db_wallet.updated_at,
        )

    def _insert(self):
        # ON CONFLICT is dialect specific; tests run on SQLite
        dialect = self.session.get_bind().dialect.name
        return sqlite.insert(WalletModel) if dialect == 'sqlite' else postgresql.insert(WalletModel)

    @Logger.io
    async def credit_wallet(self, *, user_id: int, amount: int) -> None:
        if amount < 0:
            raise InvariantViolationError('Credit amount cannot be negative')
        if amount == 0:
            return

        stmt = self._insert().values(user_id=user_id, balance=amount)
        stmt = stmt.on_conflict_do_update(
            index_elements=[WalletModel.user_id],
            set_={
                'balance': WalletModel.balance + stmt.excluded.balance,
                'updated_at': func.now(),
            },
        )
        await self.session.execute(stmt)

    @Logger.io
    async def debit_wallet(self, *, user_id: int, amount: int) -> None:
        if amount <= 0:
            raise InvariantViolationError('Debit amount must be positive')

        result = await self.session.execute(
            update(WalletModel)
            .where(WalletModel.user_id == user_id, WalletModel.balance >= amount)
            .values(balance=WalletModel.balance - amount, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise InsufficientFundsError('Insufficient wallet balance')

    @Logger.io
    async def get_wallet(self, *, user_id: int) -> Wallet | None:
        result = await self.session.execute(
            select(WalletModel)
            .where(WalletModel.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        db_wallet = result.scalar_one_or_none()
        return self._to_entity(db_wallet) if db_wallet else None

    @Logger.io
    async def get_wallet_for_update(self, *, user_id: int) -> Wallet:
        await self.session.execute(
            self._insert()
            .values(user_id=user_id, balance=0)
            .on_conflict_do_nothing(index_elements=[WalletModel.user_id])
        )
        result = await self.session.execute(
            select(WalletModel)
            .where(WalletModel.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._to_entity(result.scalar_one())

    @Logger.io
    async def set_pin_hash(self, *, user_id: int, pin_hash: str) -> None:
        await self.session.execute(
            self._insert()
            .values(user_id=user_id, balance=0, pin_hash=pin_hash)
            .on_conflict_do_update(
                index_elements=[WalletModel.user_id],
                set_={'pin_hash': pin_hash, 'updated_at': func.now()},
            )
        )
