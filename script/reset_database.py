#!/usr/bin/env python3
"""
Database Reset Script
Reset PostgreSQL database structure

Features:
1. Drop & Recreate Database - completely wipe the database
2. Run Alembic Migrations - create the latest settlement schema

Notes:
- This script only resets database structure, does not seed test data
- To seed test data, run `python script/seed_data.py`
"""

import os
import subprocess
import time

from sqlalchemy import create_engine, text

from src.platform.alembic.commands import ALEMBIC_INI
from src.platform.config.core_setting import settings
from src.platform.constant.path import BASE_DIR


DB_WAIT_SECONDS = 1


def _get_sync_url(async_url: str) -> str:
    """Convert async database URL to sync URL"""
    if async_url.startswith('postgresql+asyncpg://'):
        return async_url.replace('postgresql+asyncpg://', 'postgresql://')
    return async_url


def _parse_db_connection(database_url: str) -> tuple[str, str]:
    """Parse database URL and return (server_url, db_name)"""
    sync_url = _get_sync_url(database_url)
    db_name = sync_url.split('/')[-1]
    server_url = sync_url.rsplit('/', 1)[0]
    return server_url, db_name


def _drop_and_create_db(server_url: str, db_name: str) -> None:
    """Drop and recreate database"""
    admin_engine = create_engine(f'{server_url}/postgres', isolation_level='AUTOCOMMIT')

    try:
        with admin_engine.connect() as conn:
            conn.execute(
                text(
                    'SELECT pg_terminate_backend(pid) FROM pg_stat_activity '
                    'WHERE datname = :db_name AND pid <> pg_backend_pid()'
                ),
                {'db_name': db_name},
            )

            conn.execute(text(f'DROP DATABASE IF EXISTS {db_name};'))
            print(f"   ✅ Database '{db_name}' dropped")
            time.sleep(DB_WAIT_SECONDS)

            conn.execute(text(f'CREATE DATABASE {db_name};'))
            print(f"   ✅ Database '{db_name}' created")
            time.sleep(DB_WAIT_SECONDS)
    finally:
        admin_engine.dispose()


def _run_alembic_migrations() -> None:
    """Run Alembic migrations"""
    print("   🔄 Running 'alembic upgrade head'...")

    result = subprocess.run(
        ['alembic', '-c', str(ALEMBIC_INI), 'upgrade', 'head'],
        cwd=BASE_DIR,
        capture_output=True,
        text=True,
        env=os.environ.copy(),
    )

    if result.returncode != 0:
        print(f'   ❌ Migration failed (return code: {result.returncode})')
        if result.stdout:
            print(f'   📋 STDOUT: {result.stdout}')
        if result.stderr:
            print(f'   📋 STDERR: {result.stderr}')
        raise Exception(f'Alembic migration failed with return code {result.returncode}')

    print('   ✅ Database migrations completed')


def main():
    print('🔄 Starting database reset...')
    print('=' * 50)

    database_url = settings.DATABASE_URL_ASYNC
    if not database_url.startswith('postgresql'):
        print(f'❌ Reset only supports PostgreSQL, got: {database_url}')
        exit(1)

    server_url, db_name = _parse_db_connection(database_url)
    print(f'Server URL: {server_url}')
    print(f'Database name: {db_name}')

    try:
        print('🗑️ Dropping database...')
        _drop_and_create_db(server_url, db_name)

        print('🏗️ Running database migrations...')
        _run_alembic_migrations()

        print('=' * 50)
        print('✅ Database reset completed!')
        print('💡 To seed test data, run: python script/seed_data.py')

    except Exception as e:
        print(f'❌ Reset failed: {e}')
        exit(1)


if __name__ == '__main__':
    main()
