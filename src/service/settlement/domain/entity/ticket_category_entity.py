from typing import Optional

import attrs

from src.platform.exception.exceptions import CapacityExceededError


@attrs.define
class TicketCategory:
    id: int
    event_id: int
    name: str
    price: int
    max_tickets: int
    minted: int = 0
    description: Optional[str] = None

    @property
    def remaining(self) -> int:
        return max(self.max_tickets - self.minted, 0)

    def validate_can_mint(self, count: int) -> None:
        """Fail fast check; the authoritative guard is the conditional update at mint time"""
        if count > self.remaining:
            raise CapacityExceededError(
                f'Only {self.remaining} tickets left in category {self.name}'
            )
