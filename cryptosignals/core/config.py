"""Application settings, read from the environment and an optional .env file."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Optional
import logging

MIN_JWT_SECRET_LENGTH = 32
MIN_NOTIFICATION_INTERVAL_SECONDS = 10


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Every tunable of the API and the notification processor."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    database_url: str = "sqlite+aiosqlite:///./data/cryptosignals.db"
    log_level: str = "INFO"

    # Bearer tokens are verified here and issued by scripts/provision_admin.py
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # TradingView webhook (comma-separated allow-lists)
    webhook_secret: str = "default_secret"
    webhook_tickers: str = "BTCUSDT"
    webhook_timeframes: str = "1M,1W,1D,12h,4h,1h,30m"

    notification_interval_seconds: int = 30
    notification_batch_size: int = 50
    notification_max_retries: int = 3

    seed_tickers_on_startup: bool = True

    backend_port: int = 5000
    api_version: str = "1.0"
    cors_origins: str = "http://localhost:3000,http://localhost:5000,http://localhost:5173"
    rate_limit_api: str = "100/15minutes"

    admin_email: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if len(v) < MIN_JWT_SECRET_LENGTH:
            raise ValueError(f"jwt_secret must be at least {MIN_JWT_SECRET_LENGTH} characters")
        return v

    @field_validator("notification_interval_seconds")
    @classmethod
    def validate_notification_interval(cls, v: int) -> int:
        if v < MIN_NOTIFICATION_INTERVAL_SECONDS:
            raise ValueError(
                f"notification_interval_seconds cannot be less than {MIN_NOTIFICATION_INTERVAL_SECONDS}"
            )
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        return _split_csv(self.cors_origins)

    @property
    def webhook_tickers_list(self) -> List[str]:
        return _split_csv(self.webhook_tickers)

    @property
    def webhook_timeframes_list(self) -> List[str]:
        return _split_csv(self.webhook_timeframes)


settings = Settings()
