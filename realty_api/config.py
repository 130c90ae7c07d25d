"""
Configuration management using Pydantic settings.
Reads the listen port, MongoDB connection string and Cloudinary credentials
from the environment once, at process start.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """
    Immutable application settings.

    Built once by the application factory and handed to the components that
    need it (database gateway, media service, middleware) instead of being
    looked up from the environment inside request handlers.
    """

    # Application configuration
    app_name: str = "Realty API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Server configuration
    host: str = "0.0.0.0"
    port: int

    # MongoDB configuration
    mongodb_url: str
    mongodb_db_name: str = "realty"
    mongodb_timeout_ms: int = 10000
    transaction_timeout_seconds: float = 30.0

    # Cloudinary credentials
    cloudinary_cloud_name: str
    cloudinary_api_key: str
    cloudinary_api_secret: str

    # API configuration
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Embedded base64 images travel inside JSON bodies
    max_request_size: int = 50 * 1024 * 1024  # 50MB

    # Listing defaults
    default_page_size: int = 10

    @field_validator("mongodb_url")
    @classmethod
    def validate_mongodb_url(cls, v):
        """Require a MongoDB connection string."""
        if not v or not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("MONGODB_URL must be a mongodb:// or mongodb+srv:// connection string")
        return v

    @field_validator("cloudinary_cloud_name", "cloudinary_api_key", "cloudinary_api_secret")
    @classmethod
    def validate_cloudinary_credentials(cls, v):
        """Reject blank Cloudinary credentials."""
        if not v or not v.strip():
            raise ValueError("Cloudinary credentials cannot be empty")
        return v.strip()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "frozen": True,
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Raises a pydantic ValidationError naming every missing variable when the
    environment is incomplete.
    """
    return Settings()
