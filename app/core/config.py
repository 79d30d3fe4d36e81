from typing import Optional, List
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    ENVIRONMENT: str = "development"  # "development" or "production"
    ROOT_DOMAIN: str = "storeflow.app"
    APP_URL: str = "http://localhost:3000"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Cron endpoints (expiry checker, payment reminders)
    CRON_SECRET_TOKEN: Optional[str] = None
    SUBSCRIPTION_GRACE_PERIOD_DAYS: int = 7
    PAYMENT_REMINDER_DAYS: int = 7

    # Inventory
    DEFAULT_LOW_STOCK_THRESHOLD: int = 10

    # Vercel domain management
    VERCEL_TOKEN: Optional[str] = None
    VERCEL_PROJECT_ID: Optional[str] = None
    VERCEL_TEAM_ID: Optional[str] = None
    VERCEL_API_URL: str = "https://api.vercel.com"

    # SendGrid
    SENDGRID_API_KEY: Optional[str] = None
    SENDGRID_API_URL: str = "https://api.sendgrid.com/v3/mail/send"
    SENDGRID_FROM_EMAIL: str = "noreply@storeflow.app"
    SENDGRID_FROM_NAME: str = "StoreFlow"
    LANDLORD_SUPPORT_EMAIL: str = "support@storeflow.app"

    # Optional shared cart store; carts stay in process memory when unset
    REDIS_URL: Optional[str] = None
    CART_TTL_SECONDS: int = 60 * 60 * 24 * 30

    @property
    def is_production(self):
        return self.ENVIRONMENT == "production"

    @property
    def cookie_secure(self):
        return self.is_production

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
