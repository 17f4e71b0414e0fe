from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AnyUrl, EmailStr, Field, field_validator
import secrets


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or .env.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Ignore extra fields in .env file
    )

    # -------------------------
    # Database
    # -------------------------
    DATABASE_URL: AnyUrl

    # -------------------------
    # Security / Auth
    # -------------------------
    SECRET_KEY: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    ALGORITHM: str = "HS256"
    # Lifetime of the login token kept in the session cookie
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 14
    SESSION_COOKIE_NAME: str = "storefinder_session"

    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # -------------------------
    # Email / SMTP
    # -------------------------
    SMTP_EMAIL: Optional[EmailStr] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: Optional[int] = None

    # -------------------------
    # Application
    # -------------------------
    PROJECT_NAME: str = "Store Finder"
    API_PREFIX: str = "/api"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    SQLALCHEMY_ECHO: bool = False

    # Google Maps key used by the map page and static store maps
    MAP_KEY: Optional[str] = None

    # -------------------------
    # File Storage
    # -------------------------
    UPLOAD_DIR: str = Field(
        default="public/uploads",
        description="Directory for uploaded store photos, served at /uploads"
    )
    MAX_FILE_SIZE_MB: int = Field(
        default=10,
        ge=1,           # Minimum 1 MB
        le=100,         # Maximum 100 MB (sanity limit)
        description="Maximum photo upload size in megabytes"
    )

    # Computed property for bytes (used in validation)
    @property
    def MAX_FILE_SIZE_BYTES(self) -> int:
        """Convert MB to bytes for file size validation."""
        return self.MAX_FILE_SIZE_MB * 1024 * 1024

    PHOTO_WIDTH: int = Field(
        default=800,
        ge=1,
        description="Width in pixels that uploaded photos are resized to"
    )

    @field_validator("ALGORITHM")
    def validate_algorithm(cls, v):
        if not v or not isinstance(v, str):
            raise ValueError("ALGORITHM must be a non-empty string.")
        return v

settings = Settings()
