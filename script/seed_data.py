#!/usr/bin/env python3
"""
Database Seed Script
Populate settlement test data into the database

Features:
1. Create Users - platform admin (fee collection wallet), one organizer, two buyers
2. Create Event - one upcoming event with fee rates and two ticket categories

Notes:
- Users and events normally belong to other services; they are seeded here so the
  settlement flow can run end to end against a local database
- Creates missing tables first, so a fresh SQLite file works without Alembic
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from src.platform.config.core_setting import settings
from src.platform.database.db_setting import create_db_and_tables, get_session_maker
from src.service.settlement.domain.enum.user_role import UserRole
from src.service.settlement.driven_adapter.model.event_model import EventModel
from src.service.settlement.driven_adapter.model.ticket_category_model import (
    TicketCategoryModel,
)
from src.service.settlement.driven_adapter.model.user_model import UserModel


@dataclass
class UserConfig:
    """User seed configuration"""

    email: str
    name: str
    role: UserRole


TEST_USERS = [
    UserConfig(email=settings.PLATFORM_ADMIN_EMAIL, name='Platform Admin', role=UserRole.ADMIN),
    UserConfig(email='o@t.com', name='init organizer', role=UserRole.ORGANIZER),
    UserConfig(email='b@t.com', name='init buyer', role=UserRole.USER),
    UserConfig(email='b_1@t.com', name='resale buyer', role=UserRole.USER),
]

# (name, price in minor units, capacity)
TEST_CATEGORIES = [
    ('Regular', 5_000, 200),
    ('VIP', 25_000, 20),
]


async def create_users(session) -> int:
    """Create initial test users

    Returns:
        int: organizer_id
    """
    print(f'👥 Creating {len(TEST_USERS)} users...')

    organizer_id = None
    for config in TEST_USERS:
        db_user = UserModel(email=config.email, name=config.name, role=config.role.value)
        session.add(db_user)
        await session.flush()
        print(f'   ✅ Created {config.role.value}: ID={db_user.id}, Email={db_user.email}')

        if config.role == UserRole.ORGANIZER:
            organizer_id = db_user.id

    if organizer_id is None:
        raise Exception('Failed to create organizer: ID is None')
    return organizer_id


async def create_event(session, organizer_id: int) -> int:
    """Create initial test event with its ticket categories"""
    print('🎫 Creating initial event...')

    db_event = EventModel(
        organizer_id=organizer_id,
        name='Concert Event',
        is_active=True,
        starts_at=datetime.now(timezone.utc) + timedelta(days=30),
        primary_fee_bps=500,
        resale_fee_bps=500,
        royalty_fee_bps=250,
    )
    session.add(db_event)
    await session.flush()
    print(f'   ✅ Created event: ID={db_event.id}, Name={db_event.name}')

    for name, price, capacity in TEST_CATEGORIES:
        db_category = TicketCategoryModel(
            event_id=db_event.id, name=name, price=price, max_tickets=capacity, minted=0
        )
        session.add(db_category)
        await session.flush()
        print(f'   ✅ Created category: ID={db_category.id}, {name} @ {price} x {capacity}')

    return db_event.id


async def verify_data():
    """Verify seeded data"""
    print('🔍 Verifying seeded data...')

    async with get_session_maker()() as session:
        for table in ['user', 'event', 'ticket_category']:
            table_name = f'"{table}"' if table == 'user' else table
            result = await session.execute(text(f'SELECT COUNT(*) FROM {table_name}'))
            print(f'   {table} count: {result.scalar()}')

        result = await session.execute(text('SELECT id, email, role FROM "user" ORDER BY id'))
        for user in result.fetchall():
            print(f'      User ID={user[0]}, Email={user[1]}, Role={user[2]}')

    print('   ✅ Data verification completed!')


async def _seed_data():
    """Seed users and event in a single transaction"""
    async with get_session_maker()() as session:
        try:
            organizer_id = await create_users(session)
            print()

            await create_event(session, organizer_id)
            print()

            await session.commit()
            print('✅ All data committed successfully!')

        except Exception as e:
            await session.rollback()
            print(f'❌ Rolling back: {e}')
            raise


async def main():
    print('🌱 Starting data seeding...')
    print('=' * 50)

    try:
        await create_db_and_tables()
        await _seed_data()
        await verify_data()

        print()
        print('=' * 50)
        print('🌱 Data seeding completed!')
        print('📋 Test accounts:')
        for user in TEST_USERS:
            print(f'   {user.role.value}: {user.email}')

    except Exception as e:
        print(f'❌ Seeding failed: {e}')
        exit(1)


if __name__ == '__main__':
    asyncio.run(main())
