"""
Integration fixtures: a fresh schema on TEST_DATABASE_URL for every test

Repositories run on real AsyncSessions; only the payment gateway and the
notification dispatcher are mocked.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.platform.database.db_setting import Base
from src.service.settlement.driven_adapter.model import (
    EventModel,
    TicketCategoryModel,
    UserModel,
)
from test.service.settlement.fakes import (
    ADMIN,
    BUYER,
    CATEGORY_ID,
    EVENT_ID,
    ORGANIZER,
    RIVAL,
    SELLER,
)


@pytest_asyncio.fixture
async def session_maker() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(os.environ['TEST_DATABASE_URL'])
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        session.add_all(
            [
                UserModel(id=user.id, email=user.email, name=user.name, role=user.role.value)
                for user in (ADMIN, ORGANIZER, BUYER, SELLER, RIVAL)
            ]
        )
        session.add(
            EventModel(
                id=EVENT_ID,
                organizer_id=ORGANIZER.id,
                name='Lagos Jazz Night',
                is_active=True,
                starts_at=datetime.now(timezone.utc) + timedelta(days=30),
                primary_fee_bps=1000,
                resale_fee_bps=500,
                royalty_fee_bps=200,
            )
        )
        session.add(
            TicketCategoryModel(
                id=CATEGORY_ID,
                event_id=EVENT_ID,
                name='Regular',
                price=2500,
                max_tickets=3,
                minted=0,
            )
        )
        await session.commit()

    yield maker

    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_maker) -> AsyncIterator[AsyncSession]:
    async with session_maker() as session:
        yield session
