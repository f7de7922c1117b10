"""Application configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "Beauty Coworking"
    debug: bool = True
    log_level: str = "INFO"
    secret_key: str = "dev-secret-change-in-production"
    api_prefix: str = "/api/v1"

    # Database
    database_url: str = "postgresql+asyncpg://coworking:coworking@db:5432/coworking"
    database_echo: bool = False

    # Auth (tokens are issued upstream; we only verify them)
    access_token_expire_minutes: int = 60
    jwt_algorithm: str = "HS256"

    # Local time for human-readable booking windows and HH:MM slots
    timezone: str = "Europe/Moscow"

    # Wallet
    currency: str = "RUB"
    top_up_min_amount: int = 100
    top_up_max_amount: int = 100_000
    sbp_payment_url: str = "https://qr.nspk.ru/AD100004BAG7KT1IADG6P0A8UIRN4F1"

    model_config = {"env_prefix": "CW_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
