"""
Environment configuration for the attendance backend.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

import json
from typing import List, Optional, Union
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    @staticmethod
    def get_secret_key_default() -> str:
        """Generate a default secret key if not provided"""
        import secrets
        import string
        alphabet = string.ascii_letters + string.digits
        return ''.join(secrets.choice(alphabet) for _ in range(32))

    # Application configuration
    APP_NAME: str = Field(default="AttendEase", alias="PROJECT_NAME")
    API_VERSION: str = Field(default="1.0.0", alias="PROJECT_VERSION")
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = Field(default=["*"], alias="BACKEND_CORS_ORIGINS")

    # Database configuration - support both individual fields and DATABASE_URL
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "attendease"
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    DB_ECHO: bool = False
    DB_SLOW_QUERY_SECONDS: float = 0.5

    # Redis configuration (real-time fan-out)
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_POOL_SIZE: int = 10
    REALTIME_CHANNEL_PREFIX: str = "attendease:room:"

    # Security configuration (token verification only)
    JWT_SECRET_KEY: str = Field(default_factory=lambda: Settings.get_secret_key_default())
    JWT_ALGORITHM: str = "HS256"

    # Email configuration
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = Field(default=None, alias="SMTP_USERNAME")
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TLS: bool = True
    EMAIL_FROM_NAME: str = "AttendEase"
    EMAIL_FROM_ADDRESS: Optional[str] = Field(default=None, alias="FROM_EMAIL")

    # Push notifications
    FIREBASE_CREDENTIALS_FILE: Optional[str] = None

    # Attendance business rules
    ATTENDANCE_CRITICAL_THRESHOLD: float = 65.0
    ATTENDANCE_GOOD_THRESHOLD: float = 75.0
    DEFAULT_EDIT_REASON: str = "No reason provided"
    TEACHER_SESSIONS_LIMIT: int = 20
    RECENT_SESSIONS_LIMIT: int = 10
    DASHBOARD_AVERAGE_SESSIONS: int = 5
    DASHBOARD_RECENT_SESSIONS: int = 5
    DASHBOARD_LOW_ATTENDANCE_LIMIT: int = 10

    # Notification fan-out
    NOTIFICATION_CALL_TIMEOUT_SECONDS: float = 5.0

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    SENTRY_DSN: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS_ORIGINS from string to list"""
        if isinstance(v, str):
            # Handle JSON string format from .env
            if v.startswith('[') and v.endswith(']'):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator('ATTENDANCE_GOOD_THRESHOLD')
    @classmethod
    def validate_good_threshold(cls, v: float) -> float:
        if not 0 < v < 100:
            raise ValueError("ATTENDANCE_GOOD_THRESHOLD must be between 0 and 100")
        return v

    def get_database_url(self) -> str:
        """Construct database URL from components or use provided URL"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # Construct from individual components
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
