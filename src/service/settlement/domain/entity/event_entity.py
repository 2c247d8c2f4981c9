from datetime import datetime, timezone
from typing import Optional

import attrs

from src.platform.exception.exceptions import DomainError
from src.service.settlement.domain.value_object.fee_policy import FeePolicy


@attrs.define
class Event:
    id: int
    organizer_id: int
    name: str
    fee_policy: FeePolicy
    is_active: bool = True
    starts_at: Optional[datetime] = None

    @property
    def has_started(self) -> bool:
        if self.starts_at is None:
            return False
        starts_at = self.starts_at
        if starts_at.tzinfo is None:
            starts_at = starts_at.replace(tzinfo=timezone.utc)
        return starts_at <= datetime.now(timezone.utc)

    def validate_open_for_sales(self) -> None:
        if not self.is_active:
            raise DomainError(f'Event {self.name} is not active')
        if self.has_started:
            raise DomainError(f'Event {self.name} has already taken place')
