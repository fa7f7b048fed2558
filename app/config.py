"""Configuration settings for Chirp."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./chirp.db")

    # JWT
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", secrets.token_urlsafe(32))
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", "480"))

    # Credentials
    BCRYPT_MIN_COST: bool = os.getenv("BCRYPT_MIN_COST", "false").lower() == "true"
    PASSWORD_MIN_LENGTH: int = int(os.getenv("PASSWORD_MIN_LENGTH", "6"))
    PASSWORD_RESET_EXPIRE_HOURS: int = int(os.getenv("PASSWORD_RESET_EXPIRE_HOURS", "2"))

    # User validation
    NAME_MAX_LENGTH: int = int(os.getenv("NAME_MAX_LENGTH", "50"))
    EMAIL_MAX_LENGTH: int = int(os.getenv("EMAIL_MAX_LENGTH", "255"))
    EMAIL_REGEX: str = os.getenv("EMAIL_REGEX", r"[\w+\-.]+@[a-z\d\-]+(\.[a-z\d\-]+)*\.[a-z]+")

    # Microposts
    MICROPOST_MAX_LENGTH: int = int(os.getenv("MICROPOST_MAX_LENGTH", "140"))

    # Application
    APP_BASE_URL: str = os.getenv("APP_BASE_URL", "http://localhost:8000")
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if not os.getenv("JWT_SECRET_KEY"):
            errors.append("JWT_SECRET_KEY is not set - using auto-generated key (not persistent across restarts)")
        if self.BCRYPT_MIN_COST and self.APP_ENV == "production":
            errors.append("BCRYPT_MIN_COST is enabled in production - digests use the minimum bcrypt cost")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
