"""
Configuration management for the tours API.

Loads and validates environment variables for the application.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or a `.env` file.
    """

    # Service
    APP_NAME: str = "Tours API"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "mongodb://localhost:27017"
    DATABASE_PASSWORD: Optional[str] = None
    DATABASE_NAME: str = "tours"

    # JWT
    JWT_SECRET: str = "dev-secret-key-change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN_DAYS: int = 90

    # Passwords
    BCRYPT_ROUNDS: int = 12
    PASSWORD_RESET_EXPIRES_MINUTES: int = 10

    # Email
    EMAIL_HOST: str = "localhost"
    EMAIL_PORT: int = 2525
    EMAIL_USERNAME: Optional[str] = None
    EMAIL_PASSWORD: Optional[str] = None
    EMAIL_FROM: str = "Tours API <noreply@tours.local>"

    # CORS (comma-separated)
    CORS_ORIGINS: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    def get_database_url(self) -> str:
        """Connection string with the `<PASSWORD>` placeholder filled in."""
        if self.DATABASE_PASSWORD is None:
            return self.DATABASE_URL
        return self.DATABASE_URL.replace("<PASSWORD>", self.DATABASE_PASSWORD)

    def get_cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
