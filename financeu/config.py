"""Configuration settings for FinanceU."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _normalize_database_url(url: str) -> str:
    # Hosted Postgres providers still hand out the pre-SQLAlchemy-1.4 scheme
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://") :]
    return url


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = _normalize_database_url(os.getenv("DATABASE_URL", "sqlite:///./financeu.db"))

    # JWT sessions
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    SESSION_EXPIRE_MINUTES: int = int(os.getenv("SESSION_EXPIRE_MINUTES", str(7 * 24 * 60)))

    # Passwords and reset codes
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    PASSWORD_MIN_LENGTH: int = int(os.getenv("PASSWORD_MIN_LENGTH", "6"))
    RESET_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("RESET_TOKEN_EXPIRE_MINUTES", "60"))
    VERIFICATION_TOKEN_EXPIRE_HOURS: int = int(os.getenv("VERIFICATION_TOKEN_EXPIRE_HOURS", "24"))

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")
    CORS_ORIGINS: list[str] = [
        origin.strip() for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if origin.strip()
    ]

    # Optional HTTP Basic admin account (disabled unless both are set)
    ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")

    # Optional SMTP delivery for reset codes and verification links
    MAIL_SERVER: str = os.getenv("MAIL_SERVER", "")
    MAIL_PORT: int = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USERNAME: str = os.getenv("MAIL_USERNAME", "")
    MAIL_PASSWORD: str = os.getenv("MAIL_PASSWORD", "")
    MAIL_FROM: str = os.getenv("MAIL_FROM", "no-reply@financeu.com")
    MAIL_STARTTLS: bool = os.getenv("MAIL_STARTTLS", "true").lower() == "true"
    MAIL_SSL_TLS: bool = os.getenv("MAIL_SSL_TLS", "false").lower() == "true"

    def __init__(self) -> None:
        self.secret_generated = not self.JWT_SECRET_KEY
        if self.secret_generated:
            self.JWT_SECRET_KEY = secrets.token_urlsafe(32)
        expose = os.getenv("EXPOSE_RESET_CODE")
        if expose is None:
            self.EXPOSE_RESET_CODE = not self.is_production
        else:
            self.EXPOSE_RESET_CODE = expose.lower() == "true"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def mail_enabled(self) -> bool:
        return bool(self.MAIL_SERVER)

    @property
    def basic_admin_enabled(self) -> bool:
        return bool(self.ADMIN_USERNAME and self.ADMIN_PASSWORD)

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if self.secret_generated:
            errors.append("JWT_SECRET_KEY is not set - using auto-generated key (not persistent across restarts)")
        if self.is_production and self.EXPOSE_RESET_CODE:
            errors.append("EXPOSE_RESET_CODE is enabled in production - reset codes are returned to any caller")
        if self.is_production and not self.mail_enabled:
            errors.append("MAIL_SERVER is not set - reset codes are only written to the server log")
        if self.PASSWORD_MIN_LENGTH < 6:
            errors.append("PASSWORD_MIN_LENGTH is below 6")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
