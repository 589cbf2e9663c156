from pathlib import Path
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# -------------------------------------------------
# Explicitly load .env (CRITICAL)
# -------------------------------------------------

BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_PATH = BASE_DIR / ".env"

load_dotenv(dotenv_path=ENV_PATH)


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./rental_backoffice.db"
    DB_ECHO: bool = False
    SECRET_KEY: str = "change-me-in-production"
    ENVIRONMENT: str = "development"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    ALGORITHM: str = "HS256"

    # Storage backend selected once at startup: "database" or "memory"
    STORAGE_BACKEND: str = Field(default="database", description="database | memory")

    # Spare vehicle worklist: how far ahead placeholders count as "due soon"
    PLACEHOLDER_LOOKAHEAD_DAYS: int = Field(default=7, ge=0)

    # Mail: accept MAIL_* or SMTP_* (e.g. .env uses SMTP_*). Empty server disables outbound mail.
    MAIL_FROM: str = Field(default="", validation_alias=AliasChoices("MAIL_FROM", "SMTP_FROM_EMAIL"))
    MAIL_FROM_NAME: str = Field(default="Rental Back-Office", validation_alias=AliasChoices("MAIL_FROM_NAME", "SMTP_FROM_NAME"))
    MAIL_USERNAME: str = Field(default="", validation_alias=AliasChoices("MAIL_USERNAME", "SMTP_USER"))
    MAIL_PASSWORD: str = Field(default="", validation_alias=AliasChoices("MAIL_PASSWORD", "SMTP_PASSWORD"))
    MAIL_SERVER: str = Field(default="", validation_alias=AliasChoices("MAIL_SERVER", "SMTP_HOST"))
    MAIL_PORT: int = Field(default=587, validation_alias=AliasChoices("MAIL_PORT", "SMTP_PORT"))
    STAFF_ALERT_EMAIL: str = Field(default="", description="Recipient of spare-assignment digests")

    # Spare assignment reminder cron (env: CRON_ENABLED, CRON_SPARE_REMINDER_INTERVAL_HOURS)
    CRON_ENABLED: bool = True
    CRON_SPARE_REMINDER_INTERVAL_HOURS: float = Field(default=6.0, description="Cron run interval in hours")

    # Seeded on first start when no user exists
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "Admin@123"
    DEFAULT_ADMIN_EMAIL: str = "admin@example.com"

    class Config:
        extra = "ignore"
        env_file = str(ENV_PATH)
        env_file_encoding = "utf-8"


settings = Settings()
