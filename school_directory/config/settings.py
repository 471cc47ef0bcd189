from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "school_directory"
    driver: str = "postgresql+asyncpg"
    override_url: Optional[str] = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Full SQLAlchemy async URL; takes precedence over the parts above.",
    )
    pool_size: int = Field(default=5, ge=1)
    max_overflow: int = Field(default=0, ge=0)
    pool_timeout: float = Field(default=30.0, gt=0)

    @property
    def url(self) -> str:
        """Get database URL"""
        if self.override_url:
            return self.override_url
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            f"{self.driver}://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


class UploadConfig(BaseSettings):
    """Limits applied to school photo uploads."""

    max_files: int = Field(default=10, ge=1)
    min_files: int = Field(default=1, ge=0)
    max_file_size: int = Field(default=5 * 1024 * 1024, ge=1)
    allowed_mime_types: list[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
    ]

    model_config = SettingsConfigDict(
        env_prefix="UPLOAD_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "School Directory Backend"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", validation_alias="APP_ENV")
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080
    log_file: str = "logs/app.log"
    phone_country_code: str = Field(default="91", pattern=r"^\d{1,3}$")

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # Uploads
    uploads: UploadConfig = Field(default_factory=UploadConfig)

    # CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# Global settings instance
settings = Settings()
