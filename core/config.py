# ==================================================================================
# core/config.py: Bandflow Configuration (Pydantic v2 Settings + SendGrid + Stripe)
# ==================================================================================
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import EmailStr, ValidationError
import sys


class Settings(BaseSettings):
    # ------------------------
    # DATABASE CONFIG
    # ------------------------
    DATABASE_URL: str = "sqlite:///./bandflow.db"

    # ------------------------
    # SECURITY CONFIG
    # ------------------------
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ------------------------
    # SENDGRID EMAIL CONFIG
    # ------------------------
    SENDGRID_API_KEY: str | None = None
    MAIL_FROM: EmailStr | None = None

    # ------------------------
    # FRONTEND CONFIG
    # ------------------------
    FRONTEND_URL: str = "http://localhost:3000"

    # ------------------------
    # STRIPE CONNECT (member subscriptions)
    # ------------------------
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_CONNECT_WEBHOOK_SECRET: str | None = None

    # ------------------------
    # DUES POLICY DEFAULTS
    # ------------------------
    MANUAL_PAYMENT_AUTO_CONFIRM_DAYS: int = 7
    DEFAULT_NEW_MEMBER_GRACE_DAYS: int = 7
    DEFAULT_LAPSED_MEMBER_GRACE_DAYS: int = 3

    # ------------------------
    # ENVIRONMENT SETTINGS
    # ------------------------
    ENVIRONMENT: str = "development"  # 'development' | 'production'
    DEBUG: bool = True

    @property
    def IS_PRODUCTION(self) -> bool:
        """Convenience helper to check if running in production"""
        return self.ENVIRONMENT.lower() == "production"

    def frontend_link(self, path: str) -> str:
        """Absolute frontend URL for a notification action path."""
        return f"{self.FRONTEND_URL.rstrip('/')}/{path.lstrip('/')}"

    # ------------------------
    # Pydantic v2 Settings
    # ------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# ------------------------
# Global Settings Loader
# ------------------------
try:
    settings = Settings()
    print("✅ Environment variables loaded successfully.")
    print(f"🌍 Environment: {settings.ENVIRONMENT}, Debug: {settings.DEBUG}")
except ValidationError as e:
    print("❌ Environment configuration error — missing or invalid settings!")
    print(e)
    sys.exit(1)
