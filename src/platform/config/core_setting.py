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

    PROJECT_NAME: str = 'Cinema Booking System'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # Security (tokens are issued by the user service, only verified here)
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
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'cinema_booking'
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None  # Full URL override (e.g. sqlite+aiosqlite:// in tests)

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'

    # Connection pool
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30  # seconds
    DB_POOL_RECYCLE: int = 3600  # seconds
    DB_POOL_PRE_PING: bool = True

    # Booking rules
    SEAT_HOLD_TTL_MINUTES: int = 15
    CANCELLATION_CUTOFF_HOURS: int = 3
    MAX_SEATS_PER_BOOKING: int = 10
    SHOWTIME_BUFFER_MINUTES: int = 30  # ads, trailers and cleaning after the movie

    # Payment
    PAYMENT_CURRENCY: str = 'VND'
    PAYMENT_TIMEOUT_SECONDS: float = 30.0

    # Reservation ledger
    LEDGER_MAX_RETRIES: int = 5
    HOLD_SWEEP_INTERVAL_SECONDS: int = 60  # 0 disables the background sweep


settings = Settings()  # type: ignore
