"""
Ticket Inventory Command Repository Implementation

Runs on the Unit of Work session. Two races are decided here:
- capacity: minted is raised by a conditional UPDATE before any ticket row exists;
  minted tickets stay unissued until their purchase settles
- double sale: a transfer only updates rows that are still listed
"""

from datetime import datetime, timezone
from typing import Dict, List

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import (
    CapacityExceededError,
    ForbiddenError,
    InvariantViolationError,
    NotFoundError,
)
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_ticket_inventory_command_repo import (
    ITicketInventoryCommandRepo,
)
from src.service.settlement.domain.entity.ticket_entity import Ticket
from src.service.settlement.domain.ticket_code import generate_ticket_code
from src.service.settlement.domain.value_object.payout_destination import PayoutDestination
from src.service.settlement.driven_adapter.model.ticket_category_model import (
    TicketCategoryModel,
)
from src.service.settlement.driven_adapter.model.ticket_model import TicketModel
from src.service.settlement.driven_adapter.repo.ticket_query_repo_impl import (
    ticket_model_to_entity,
)


class TicketInventoryCommandRepoImpl(ITicketInventoryCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    async def _generate_unique_codes(self, count: int) -> List[str]:
        codes: List[str] = []
        for _ in range(count):
            for _attempt in range(settings.TICKET_CODE_MAX_ATTEMPTS):
                code = generate_ticket_code()
                if code in codes:
                    continue
                result = await self.session.execute(
                    select(TicketModel.id).where(TicketModel.code == code)
                )
                if result.scalar_one_or_none() is None:
                    codes.append(code)
                    break
            else:
                raise InvariantViolationError('Could not generate a unique ticket code')
        return codes

    async def _load_for_update(self, ticket_ids: List[int]) -> Dict[int, TicketModel]:
        result = await self.session.execute(
            select(TicketModel)
            .where(TicketModel.id.in_(ticket_ids))
            .order_by(TicketModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        db_tickets = {db_ticket.id: db_ticket for db_ticket in result.scalars().all()}
        missing = sorted(set(ticket_ids) - set(db_tickets))
        if missing:
            raise NotFoundError(f'Tickets not found: {missing}')
        return db_tickets

    async def _reload(self, ticket_ids: List[int]) -> List[Ticket]:
        result = await self.session.execute(
            select(TicketModel)
            .where(TicketModel.id.in_(ticket_ids))
            .order_by(TicketModel.id)
            .execution_options(populate_existing=True)
        )
        return [ticket_model_to_entity(db_ticket) for db_ticket in result.scalars().all()]

    @Logger.io
    async def mint(
        self, *, category_id: int, count: int, owner_id: int, event_id: int
    ) -> List[Ticket]:
        if count <= 0:
            raise InvariantViolationError('Ticket count must be positive')

        reserved = await self.session.execute(
            update(TicketCategoryModel)
            .where(
                TicketCategoryModel.id == category_id,
                TicketCategoryModel.event_id == event_id,
                TicketCategoryModel.minted + count <= TicketCategoryModel.max_tickets,
            )
            .values(minted=TicketCategoryModel.minted + count)
            .execution_options(synchronize_session=False)
        )
        if reserved.rowcount != 1:  # type: ignore[attr-defined]
            exists = await self.session.execute(
                select(TicketCategoryModel.id).where(
                    TicketCategoryModel.id == category_id,
                    TicketCategoryModel.event_id == event_id,
                )
            )
            if exists.scalar_one_or_none() is None:
                raise NotFoundError(f'Ticket category {category_id} not found for event {event_id}')
            raise CapacityExceededError(f'Not enough tickets left in category {category_id}')

        codes = await self._generate_unique_codes(count)
        db_tickets = [
            TicketModel(
                event_id=event_id,
                ticket_category_id=category_id,
                user_id=owner_id,
                code=code,
                is_issued=False,
                is_used=False,
                is_listed=False,
                resale_count=0,
            )
            for code in codes
        ]
        self.session.add_all(db_tickets)
        await self.session.flush()

        Logger.base.info(
            f'🎫 [INVENTORY] Minted {count} tickets in category {category_id} for user {owner_id}'
        )
        return await self._reload([db_ticket.id for db_ticket in db_tickets])

    @Logger.io
    async def issue(self, *, ticket_ids: List[int]) -> List[Ticket]:
        await self._load_for_update(ticket_ids)
        await self.session.execute(
            update(TicketModel)
            .where(TicketModel.id.in_(ticket_ids))
            .values(is_issued=True, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return await self._reload(ticket_ids)

    @Logger.io
    async def release_unissued(self, *, ticket_ids: List[int]) -> int:
        if not ticket_ids:
            return 0

        result = await self.session.execute(
            select(TicketModel.ticket_category_id, func.count(TicketModel.id))
            .where(TicketModel.id.in_(ticket_ids), TicketModel.is_issued.is_(False))
            .group_by(TicketModel.ticket_category_id)
        )
        released_by_category = dict(result.all())

        await self.session.execute(
            delete(TicketModel)
            .where(TicketModel.id.in_(ticket_ids), TicketModel.is_issued.is_(False))
            .execution_options(synchronize_session=False)
        )
        for category_id, released in released_by_category.items():
            await self.session.execute(
                update(TicketCategoryModel)
                .where(TicketCategoryModel.id == category_id)
                .values(minted=TicketCategoryModel.minted - released)
                .execution_options(synchronize_session=False)
            )
        return sum(released_by_category.values())

    @Logger.io
    async def transfer_ownership(
        self, *, ticket_ids: List[int], to_user_id: int, commission_by_ticket: Dict[int, int]
    ) -> List[Ticket]:
        await self._load_for_update(ticket_ids)
        codes = await self._generate_unique_codes(len(ticket_ids))

        for ticket_id, new_code in zip(ticket_ids, codes):
            transferred = await self.session.execute(
                update(TicketModel)
                .where(TicketModel.id == ticket_id, TicketModel.is_listed.is_(True))
                .values(
                    user_id=to_user_id,
                    sold_to=to_user_id,
                    is_listed=False,
                    resale_price=None,
                    listed_at=None,
                    bank_code=None,
                    account_number=None,
                    resale_count=TicketModel.resale_count + 1,
                    resale_commission=commission_by_ticket.get(ticket_id),
                    code=new_code,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session=False)
            )
            if transferred.rowcount != 1:  # type: ignore[attr-defined]
                raise ForbiddenError(f'Ticket {ticket_id} is no longer listed for resale')

        Logger.base.info(f'🔁 [INVENTORY] Transferred tickets {ticket_ids} to user {to_user_id}')
        return await self._reload(ticket_ids)

    @Logger.io
    async def list_for_resale(
        self,
        *,
        ticket_ids: List[int],
        seller_id: int,
        price: int,
        destination: PayoutDestination,
    ) -> List[Ticket]:
        if price <= 0:
            raise InvariantViolationError('Resale price must be positive')

        db_tickets = await self._load_for_update(ticket_ids)
        for ticket_id in ticket_ids:
            ticket_model_to_entity(db_tickets[ticket_id]).validate_can_list(seller_id=seller_id)

        await self.session.execute(
            update(TicketModel)
            .where(TicketModel.id.in_(ticket_ids), TicketModel.is_listed.is_(False))
            .values(
                is_listed=True,
                resale_price=price,
                listed_at=datetime.now(timezone.utc),
                bank_code=destination.bank_code,
                account_number=destination.account_number,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        return await self._reload(ticket_ids)

    @Logger.io
    async def remove_from_resale(self, *, ticket_id: int, seller_id: int) -> Ticket:
        db_tickets = await self._load_for_update([ticket_id])
        ticket_model_to_entity(db_tickets[ticket_id]).validate_can_unlist(seller_id=seller_id)

        await self.session.execute(
            update(TicketModel)
            .where(TicketModel.id == ticket_id)
            .values(
                is_listed=False,
                resale_price=None,
                listed_at=None,
                bank_code=None,
                account_number=None,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        (ticket,) = await self._reload([ticket_id])
        return ticket
