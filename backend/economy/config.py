from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "rabit-economy-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Rabit Economy")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/rabit_dev")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # Stripe configuration (coin purchases)
    stripe_secret_key: str = os.getenv("STRIPE_SECRET_KEY", "")
    stripe_webhook_secret: str = os.getenv("STRIPE_WEBHOOK_SECRET", "")
    coin_price_usd_cents: int = int(os.getenv("COIN_PRICE_USD_CENTS", "1"))
    max_purchase_coins_day: int = int(os.getenv("MAX_PURCHASE_COINS_DAY", "100000"))

    # Read views
    default_page_limit: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "50"))
    max_page_limit: int = int(os.getenv("MAX_PAGE_LIMIT", "200"))

    # Expo push
    push_notifications_enabled: bool = os.getenv("PUSH_NOTIFICATIONS_ENABLED", "1") == "1"
    expo_push_url: str = os.getenv("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
    expo_push_timeout_seconds: float = float(os.getenv("EXPO_PUSH_TIMEOUT_SECONDS", "10"))

settings = Settings()
