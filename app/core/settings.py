"""
Core settings and environment variables for the Civic Issue Portal.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "Civic Issue Portal"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_STORAGE_BUCKET: Optional[str] = None

    # In-memory store for local development without Firebase credentials
    USE_MOCK_DB: bool = False
    STAFF_SEED_PATH: Optional[str] = None  # JSON list of staff accounts loaded into the in-memory directory

    # Workflow
    WORKFLOW_PROFILE: str = "four_party"  # "four_party" or "three_party"
    REWARD_POINTS: int = 50

    # Dashboards reload on this interval or on a pushed event
    POLL_INTERVAL_SECONDS: int = 10
    EVENT_BUFFER_SIZE: int = 200

    # Signed photo URLs
    IMAGE_URL_EXPIRY_MINUTES: int = 60

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins_list(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
