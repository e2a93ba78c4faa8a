"""
Application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "LegatePro"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_FORMAT: str = "text"

    # Database (MongoDB)
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "legatepro"

    # Public origin used when building invite links. Derived from the
    # request headers when unset.
    PUBLIC_BASE_URL: Optional[str] = None
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Collaborator invites
    INVITE_TTL_DAYS: int = 7
    MAX_ACTIVE_INVITES_PER_ESTATE: int = 50
    INVITE_RATE_LIMIT_WINDOW_SECONDS: int = 60
    INVITE_RATE_LIMIT_MAX_WRITES: int = 40

    # Request bodies
    MAX_JSON_BODY_BYTES: int = 25_000

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
