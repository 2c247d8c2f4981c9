from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_user_query_repo import IUserQueryRepo
from src.service.settlement.domain.entity.user_entity import User
from src.service.settlement.domain.enum.user_role import UserRole
from src.service.settlement.driven_adapter.model.user_model import UserModel


class UserQueryRepoImpl(IUserQueryRepo):
    def __init__(
        self, session_factory: Callable[..., AsyncContextManager[AsyncSession]] | None = None
    ) -> None:
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

    @staticmethod
    def _model_to_entity(user_model: UserModel) -> User:
        return User(
            id=user_model.id,
            email=user_model.email,
            name=user_model.name,
            role=UserRole(user_model.role.lower()),
            phone=user_model.phone,
        )

    @Logger.io
    async def get_by_id(self, *, user_id: int) -> Optional[User]:
        async with self._get_session() as session:
            result = await session.execute(select(UserModel).where(UserModel.id == user_id))
            user_model = result.scalar_one_or_none()

            if not user_model:
                return None

            return self._model_to_entity(user_model)

    @Logger.io
    async def get_by_ids(self, *, user_ids: List[int]) -> List[User]:
        if not user_ids:
            return []
        async with self._get_session() as session:
            result = await session.execute(select(UserModel).where(UserModel.id.in_(user_ids)))
            return [self._model_to_entity(user_model) for user_model in result.scalars().all()]

    @Logger.io
    async def get_by_email(self, *, email: str) -> Optional[User]:
        async with self._get_session() as session:
            result = await session.execute(select(UserModel).where(UserModel.email == email))
            user_model = result.scalar_one_or_none()

            if not user_model:
                return None

            return self._model_to_entity(user_model)
