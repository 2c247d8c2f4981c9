"""
Test Configuration and Fixtures

This module provides:
- Environment setup before any application module reads settings
- A SQLite (aiosqlite) database per test session for integration tests

Architecture:
- Unit tests (test/**/unit/): every port is an AsyncMock or a fake
- Integration tests (test/**/integration/): real SQLAlchemy repositories on an async engine
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings are read at import time (src.platform.config.core_setting)
# =============================================================================
import os
from pathlib import Path
import tempfile


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    test_db_dir = Path(tempfile.mkdtemp(prefix='settlement_test_'))
    os.environ.setdefault(
        'TEST_DATABASE_URL', f'sqlite+aiosqlite:///{test_db_dir / "settlement_test.db"}'
    )
    os.environ['DATABASE_URL'] = os.environ['TEST_DATABASE_URL']

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ.setdefault('SECRET_KEY', 'test_secret_key')
    os.environ.setdefault('PLATFORM_ADMIN_EMAIL', 'admin@ticketer.local')
    os.environ.setdefault('PAYMENT_GATEWAY_URL', 'http://gateway.test')
    os.environ.setdefault('APP_BASE_URL', 'https://tickets.test')
    os.environ.pop('NOTIFICATION_SERVICE_URL', None)


# Call immediately to set env vars before any imports
_early_setup_test_environment()
