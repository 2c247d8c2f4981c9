"""
Database configuration entry point

Re-exports the SQLAlchemy engine/session helpers from orm_db_setting.py so that
models and repositories import from one place.
"""

from src.platform.database.orm_db_setting import (
    Base,
    Database,
    create_db_and_tables,
    dispose_engines,
    get_async_session,
    get_engine,
    get_session_maker,
)

__all__ = [
    'Base',
    'Database',
    'create_db_and_tables',
    'dispose_engines',
    'get_async_session',
    'get_engine',
    'get_session_maker',
]
