"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()

# Names the driver explicitly; psycopg2-binary is the installed DBAPI.
DEFAULT_DATABASE_URL = "postgresql+psycopg2://localhost:5432/cylinder_audit"


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Cylinder Audit Service"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        DEFAULT_DATABASE_URL
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Operational logging (where audit write failures are reported)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Audit trail
    AUDIT_ASYNC_WRITES: bool = os.getenv("AUDIT_ASYNC_WRITES", "true").lower() == "true"
    AUDIT_QUEUE_MAX_SIZE: int = int(os.getenv("AUDIT_QUEUE_MAX_SIZE", "1000"))
    AUDIT_QUERY_DEFAULT_LIMIT: int = int(os.getenv("AUDIT_QUERY_DEFAULT_LIMIT", "50"))
    AUDIT_QUERY_MAX_LIMIT: int = int(os.getenv("AUDIT_QUERY_MAX_LIMIT", "100"))

    # Retention horizons are advisory. Nothing in this service deletes rows.
    AUDIT_RETENTION_DAYS: int = int(os.getenv("AUDIT_RETENTION_DAYS", "90"))
    AUDIT_SENSITIVE_RETENTION_DAYS: int = int(
        os.getenv("AUDIT_SENSITIVE_RETENTION_DAYS", "365")
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls. This avoids reading
    environment variables repeatedly.
    """
    return Settings()
