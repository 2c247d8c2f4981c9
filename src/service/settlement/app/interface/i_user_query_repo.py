from abc import ABC, abstractmethod
from typing import List

from src.service.settlement.domain.entity.user_entity import User


class IUserQueryRepo(ABC):
    """Read-only view of the user directory"""

    @abstractmethod
    async def get_by_id(self, *, user_id: int) -> User | None:
        pass

    @abstractmethod
    async def get_by_ids(self, *, user_ids: List[int]) -> List[User]:
        pass

    @abstractmethod
    async def get_by_email(self, *, email: str) -> User | None:
        pass
