from typing import List, Optional
from uuid import UUID
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import EmailStr, Field, field_validator
import secrets


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or .env.

    Loaded once at import time and frozen afterwards, so the signing
    secret cannot change under a running process.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra fields in .env file
        frozen=True,
    )

    # -------------------------
    # Database
    # -------------------------
    DATABASE_URL: str = "sqlite+aiosqlite:///./social_auth.db"
    SQLALCHEMY_ECHO: bool = False
    DB_POOL_SIZE: Optional[int] = None
    DB_MAX_OVERFLOW: Optional[int] = None

    # -------------------------
    # Security / Auth
    # -------------------------
    SECRET_KEY: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN_MINUTES: int = Field(
        default=90 * 24 * 60,
        ge=1,
        description="Session token lifetime in minutes"
    )
    JWT_COOKIE_EXPIRES_IN: int = Field(
        default=90,
        ge=1,
        description="Lifetime of the jwt cookie in days"
    )
    BCRYPT_ROUNDS: int = Field(
        default=12,
        ge=10,
        le=31,
        description="bcrypt cost factor"
    )

    # -------------------------
    # Password reset
    # -------------------------
    RESET_CODE_EXPIRE_SECONDS: int = Field(
        default=300,
        ge=1,
        description="How long an emailed reset code stays valid"
    )

    # Platform account every new user follows on signup (None disables it)
    DEFAULT_FOLLOW_USER_ID: Optional[UUID] = None

    # -------------------------
    # Email / SMTP
    # -------------------------
    EMAIL_BACKEND: str = Field(
        default="smtp",
        description="Email backend: 'smtp' or 'console'"
    )
    SMTP_EMAIL: Optional[EmailStr] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: Optional[int] = None

    # -------------------------
    # Application
    # -------------------------
    PROJECT_NAME: str = "Social Auth API"
    API_V1_PREFIX: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @field_validator("ALGORITHM")
    def validate_algorithm(cls, v):
        """Tokens are signed with a shared secret, so only HMAC algorithms apply."""
        allowed = {"HS256", "HS384", "HS512"}
        if v not in allowed:
            raise ValueError(f"ALGORITHM must be one of: {allowed}")
        return v

    @field_validator("EMAIL_BACKEND")
    def validate_email_backend(cls, v):
        allowed = {"smtp", "console"}
        if v not in allowed:
            raise ValueError(f"EMAIL_BACKEND must be one of: {allowed}")
        return v


settings = Settings()
