"""
Configuration management for DoseKeeper
"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "DoseKeeper"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # Backend API
    API_BASE_URL: str = "http://localhost:8090"
    API_PREFIX: str = "/api/v1"
    API_TIMEOUT_SECONDS: float = 15.0
    API_ACCESS_TOKEN: Optional[str] = None

    # Local store (device registration cache)
    DATABASE_URL: str = "sqlite:///./dosekeeper.db"
    DATABASE_ECHO: bool = False
    DEVICE_REGISTRY_KEY: str = "push_device_registry_v1"

    # Reminders
    DEVICE_TIMEZONE: Optional[str] = None  # None = host local time
    REMINDER_CHANNEL_ID: str = "med-reminders"
    REMINDER_CHANNEL_NAME: str = "Medicine Reminders"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class AdherenceConfig:
    """Constants for adherence reporting"""

    TOP_MISSED_LIMIT: int = 5
    UNKNOWN_LABEL: str = "Unknown"
    DEFAULT_PERIOD: str = "week"


class TableNames:
    LOCAL_STORE = "local_store"


settings = get_settings()
adherence_config = AdherenceConfig()
