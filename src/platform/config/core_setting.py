from pathlib import Path
from typing import List, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Ticket Settlement Service'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # ASGI server (granian)
    SERVER_HOST: str = '0.0.0.0'
    SERVER_PORT: int = 8100
    SERVER_WORKERS: int = 1

    # Security
    SECRET_KEY: SecretStr = SecretStr('test_secret_key_change_in_production')
    ALGORITHM: str = 'HS256'

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',')]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'ticket_settlement'
    POSTGRES_REPLICA_SERVER: Optional[str] = None
    POSTGRES_REPLICA_PORT: Optional[int] = None
    DATABASE_URL: Optional[str] = None  # Full override (e.g. sqlite+aiosqlite for tests)

    # Connection pool
    DB_POOL_SIZE_WRITE: int = 10
    DB_POOL_SIZE_READ: int = 20
    DB_POOL_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800
    DB_POOL_PRE_PING: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@{self.POSTGRES_SERVER}:'
            f'{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    @property
    def DATABASE_READ_URL_ASYNC(self) -> str:
        if self.DATABASE_URL or not self.POSTGRES_REPLICA_SERVER:
            return self.DATABASE_URL_ASYNC
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@{self.POSTGRES_REPLICA_SERVER}:'
            f'{self.POSTGRES_REPLICA_PORT or self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Payment Gateway
    PAYMENT_GATEWAY_URL: str = 'http://localhost:9000'
    PAYMENT_GATEWAY_SECRET: SecretStr = SecretStr('test_gateway_secret')
    PAYMENT_PROCESSOR: str = 'kora'
    PAYMENT_CURRENCY: str = 'NGN'
    PAYMENT_GATEWAY_TIMEOUT_SECONDS: float = 15.0
    NOTIFICATION_URL: str = 'http://localhost:8000/api/payment/notification'

    # Platform collection account
    PLATFORM_ADMIN_EMAIL: str = 'admin@ticketer.local'

    # Ticket codes / QR
    TICKET_CODE_PREFIX: str = 'TCK'
    TICKET_CODE_BYTES: int = 5
    TICKET_CODE_MAX_ATTEMPTS: int = 10
    MAX_TICKETS_PER_PURCHASE: int = 10
    APP_BASE_URL: str = 'https://ticket-er.com'

    # Unpaid checkouts (capacity held by PENDING purchases)
    CHECKOUT_EXPIRY_MINUTES: int = 30  # Keep above the gateway's checkout session lifetime
    CHECKOUT_EXPIRY_SWEEP_SECONDS: float = 60.0
    CHECKOUT_EXPIRY_FORCE_MINUTES: int = 24 * 60  # Past this, gateway errors no longer block
    CHECKOUT_EXPIRY_BATCH_SIZE: int = 100

    # Side-effect task queue (notifications)
    TASK_QUEUE_MAX_SIZE: int = 1000
    TASK_QUEUE_WORKERS: int = 2
    TASK_QUEUE_MAX_ATTEMPTS: int = 3
    TASK_QUEUE_RETRY_BACKOFF_SECONDS: float = 0.5
    NOTIFICATION_SERVICE_URL: Optional[str] = None  # Logged only when unset


settings = Settings()  # type: ignore
